"""
Bot Policy - Interface for automated decision-making.

A DecisionProvider takes a sanitized PlayerView and returns a Decision.
It is asked for one decision at a time, only when the game waits on its
seat: a turn action, a response to a claim, or a card to lose.

Providers never see the GameState, so they cannot peek at hidden cards.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
import random

from ..engine_core.action import ActionKind, Move, MoveType
from ..engine_core.cards import Role, COPIES_PER_ROLE
from ..engine_core.state import GamePhase
from .decision import Decision, PassDecision, decision_for
from .personality import Personality, BALANCED
from .view import PlayerView, OpponentView, targets_of


class DecisionProvider(ABC):
    """
    Abstract base class for decision providers.

    Implementations range from trivial baselines to remote services.
    A provider may raise or be slow; the game loop treats both as Pass.
    """

    @abstractmethod
    def decide(self, view: PlayerView) -> Decision:
        """
        Choose what the seat does next.

        Args:
            view: What the seat may see, including its legal moves

        Returns:
            A Decision; illegal decisions are replaced by a safe default
        """
        pass

    def get_name(self) -> str:
        """Get the provider's name/identifier."""
        return self.__class__.__name__


class RandomPolicy(DecisionProvider):
    """
    Random policy - picks a legal move uniformly at random.

    Used for:
    - Testing
    - Baseline comparison
    """

    def __init__(self, seed: int | None = None):
        self.rng = random.Random(seed)

    def decide(self, view: PlayerView) -> Decision:
        if not view.legal:
            return PassDecision(explanation="Nothing to do")
        move = self.rng.choice(view.legal)
        return decision_for(move, "Selected randomly")


class PassivePolicy(DecisionProvider):
    """
    Passive policy - Income on its turn, always passes, loses its first card.

    Used for deterministic tests.
    """

    def decide(self, view: PlayerView) -> Decision:
        if not view.legal:
            return PassDecision(explanation="Nothing to do")
        income = Move.declare(view.seat_id, ActionKind.INCOME)
        if income in view.legal:
            return decision_for(income, "Income")
        pass_move = Move.pass_(view.seat_id)
        if pass_move in view.legal:
            return decision_for(pass_move, "Passing")
        return decision_for(view.legal[0], "First legal move")


# Lower value is given up first.
_ROLE_VALUE = {
    Role.DUKE: 5,
    Role.ASSASSIN: 4,
    Role.CAPTAIN: 3,
    Role.CONTESSA: 2,
    Role.AMBASSADOR: 1,
}


class HeuristicPolicy(DecisionProvider):
    """
    Rule-of-thumb play shaped by a Personality.

    Claims roles it holds, bluffs at the personality's rate, challenges
    claims that are provably false (all copies of the role visible) or
    on a hunch, blocks with roles it holds, and gives up its least
    useful card.
    """

    def __init__(self, personality: Personality | None = None, seed: int | None = None):
        self.personality = personality or BALANCED
        self.rng = random.Random(seed)

    def get_name(self) -> str:
        return f"Heuristic({self.personality.name})"

    def decide(self, view: PlayerView) -> Decision:
        if not view.legal:
            return PassDecision(explanation="Nothing to do")
        if self.rng.random() < self.personality.randomness:
            return decision_for(self.rng.choice(view.legal), "Random impulse")

        if view.phase == GamePhase.TURN_START:
            return self._take_turn(view)
        if view.phase == GamePhase.ACTION_DECLARED:
            return self._respond_to_action(view)
        if view.phase == GamePhase.BLOCK_DECLARED:
            return self._respond_to_block(view)
        if view.phase == GamePhase.CHALLENGE_LOSS:
            return self._choose_loss(view)
        return PassDecision()

    # -------------------------------------------------------------------------
    # Turn
    # -------------------------------------------------------------------------

    def _take_turn(self, view: PlayerView) -> Decision:
        p = self.personality
        seat = view.seat_id

        coup_targets = targets_of(view, ActionKind.COUP)
        if coup_targets and (len(view.legal) == len(coup_targets) or self.rng.random() < 0.5 + p.aggression / 2):
            return self._declare(view, ActionKind.COUP, self._pick_victim(view, coup_targets), "Coup the strongest rival")

        assassin_targets = targets_of(view, ActionKind.ASSASSINATE)
        if assassin_targets and self._will_claim(view, Role.ASSASSIN) and self.rng.random() < p.aggression:
            return self._declare(view, ActionKind.ASSASSINATE, self._pick_victim(view, assassin_targets), "Assassinate")

        if self._will_claim(view, Role.DUKE):
            return self._declare(view, ActionKind.TAX, None, "Tax")

        steal_targets = [t for t in targets_of(view, ActionKind.STEAL) if view.opponent(t).coins >= 2]
        if steal_targets and self._will_claim(view, Role.CAPTAIN):
            richest = max(steal_targets, key=lambda t: view.opponent(t).coins)
            return self._declare(view, ActionKind.STEAL, richest, "Steal from the richest")

        if view.holds(Role.AMBASSADOR) and not any(view.holds(r) for r in (Role.DUKE, Role.CAPTAIN, Role.ASSASSIN)):
            return self._declare(view, ActionKind.EXCHANGE, None, "Look for better cards")

        # Foreign Aid is risky when a Duke is likely out there.
        if view.visible_count(Role.DUKE) == COPIES_PER_ROLE or self.rng.random() < p.risk_tolerance:
            return self._declare(view, ActionKind.FOREIGN_AID, None, "Foreign Aid")
        return decision_for(Move.declare(seat, ActionKind.INCOME), "Safe Income")

    def _will_claim(self, view: PlayerView, role: Role) -> bool:
        return view.holds(role) or self.rng.random() < self.personality.bluff_rate

    def _declare(self, view: PlayerView, action: ActionKind, target: str | None, why: str) -> Decision:
        move = Move.declare(view.seat_id, action, target)
        if move not in view.legal:
            move = view.legal[0]
        return decision_for(move, why)

    def _pick_victim(self, view: PlayerView, candidates: list[str]) -> str:
        """Most influence first, then most coins."""
        def threat(opp: OpponentView) -> tuple[int, int]:
            return (opp.influence, opp.coins)
        return max(candidates, key=lambda t: threat(view.opponent(t)))

    # -------------------------------------------------------------------------
    # Responses
    # -------------------------------------------------------------------------

    def _respond_to_action(self, view: PlayerView) -> Decision:
        pending = view.pending_action
        seat = view.seat_id
        legal = set(view.legal)

        # Survive an assassination first.
        if pending.action == ActionKind.ASSASSINATE and pending.target_id == seat:
            block = Move.block(seat, Role.CONTESSA)
            if view.holds(Role.CONTESSA) and block in legal:
                return decision_for(block, "Contessa blocks the assassin")
            if self._provably_false(view, Role.ASSASSIN) and Move.challenge(seat) in legal:
                return decision_for(Move.challenge(seat), "No assassin left to hold")
            if len(view.hidden_roles) == 1 and block in legal:
                return decision_for(block, "Nothing to lose by bluffing Contessa")

        for role in pending.action.blocking_roles:
            block = Move.block(seat, role)
            if block in legal and view.holds(role):
                return decision_for(block, f"Block with {role.value}")

        claimed = pending.action.claimed_role
        if claimed is not None and Move.challenge(seat) in legal and self._doubts(view, claimed):
            return decision_for(Move.challenge(seat), f"Doubt the {claimed.value}")

        return decision_for(Move.pass_(seat), "Let it through")

    def _respond_to_block(self, view: PlayerView) -> Decision:
        seat = view.seat_id
        block = view.pending_block
        challenge = Move.challenge(seat)
        # Only the actor has a real stake in a block.
        stake = view.pending_action is not None and view.pending_action.actor_id == seat
        if challenge in view.legal and (self._provably_false(view, block.claimed_role) or (stake and self._doubts(view, block.claimed_role))):
            return decision_for(challenge, f"Doubt the {block.claimed_role.value}")
        return decision_for(Move.pass_(seat), "Accept the block")

    def _provably_false(self, view: PlayerView, role: Role) -> bool:
        return view.visible_count(role) >= COPIES_PER_ROLE

    def _doubts(self, view: PlayerView, role: Role) -> bool:
        if self._provably_false(view, role):
            return True
        if len(view.hidden_roles) == 1 and self.personality.risk_tolerance < 0.5:
            return False
        # More copies accounted for makes the claim less likely.
        odds = self.personality.challenge_rate * (1 + view.visible_count(role))
        return self.rng.random() < odds

    # -------------------------------------------------------------------------
    # Influence loss
    # -------------------------------------------------------------------------

    def _choose_loss(self, view: PlayerView) -> Decision:
        choices = [m for m in view.legal if m.move_type == MoveType.LOSE_CARD]
        if not choices:
            return decision_for(view.legal[0])
        roles = {c.card_id: c.role for c in view.hand}
        cheapest = min(choices, key=lambda m: _ROLE_VALUE[roles[m.payload.card_id]])
        return decision_for(cheapest, f"Give up {roles[cheapest.payload.card_id].value}")
