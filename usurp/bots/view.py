"""
Player View - What one seat is allowed to see.

Decision providers never receive the full GameState. They get a
PlayerView: their own hand, public facts about everyone else, the
pending action/block, the moves open to them, and the last few log
lines.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any

from ..engine_core.action import ActionKind, Move
from ..engine_core.action_generator import legal_moves
from ..engine_core.cards import Card, Role
from ..engine_core.state import GameState, GamePhase, PendingAction, PendingBlock


DEFAULT_HISTORY = 6


@dataclass(frozen=True)
class OpponentView:
    """Public information about another seat."""
    player_id: str
    name: str
    coins: int
    influence: int  # hidden-card count only
    revealed: tuple[Role, ...] = ()
    eliminated: bool = False


@dataclass(frozen=True)
class PlayerView:
    """Sanitized perspective of a single seat."""
    seat_id: str
    name: str
    phase: GamePhase
    coins: int
    hand: tuple[Card, ...]
    opponents: tuple[OpponentView, ...]
    current_player_id: str
    pending_action: PendingAction | None = None
    pending_block: PendingBlock | None = None
    player_to_lose_influence: str | None = None
    legal: tuple[Move, ...] = ()
    history: tuple[str, ...] = ()
    deck_size: int = 0
    turn: int = 0

    @property
    def is_my_turn(self) -> bool:
        return self.phase == GamePhase.TURN_START and self.current_player_id == self.seat_id

    @property
    def hidden_roles(self) -> tuple[Role, ...]:
        return tuple(c.role for c in self.hand if c.hidden)

    def holds(self, role: Role) -> bool:
        return role in self.hidden_roles

    def opponent(self, player_id: str | None) -> OpponentView | None:
        for opp in self.opponents:
            if opp.player_id == player_id:
                return opp
        return None

    def visible_count(self, role: Role) -> int:
        """Copies of a role this seat can account for: own hand plus every revealed card."""
        own = sum(1 for c in self.hand if c.role == role)
        public = sum(opp.revealed.count(role) for opp in self.opponents)
        return own + public

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly form, for providers that talk to external services."""
        return {
            "phase": self.phase.value,
            "me": {
                "id": self.seat_id,
                "name": self.name,
                "coins": self.coins,
                "cards": [
                    {"id": c.card_id, "type": c.role.value, "isRevealed": c.revealed}
                    for c in self.hand
                ],
            },
            "opponents": [
                {
                    "id": o.player_id,
                    "name": o.name,
                    "coins": o.coins,
                    "influenceCount": o.influence,
                    "revealedCards": [r.value for r in o.revealed],
                    "isEliminated": o.eliminated,
                }
                for o in self.opponents
            ],
            "pendingAction": _action_dict(self.pending_action),
            "pendingBlock": (
                {"blockerId": self.pending_block.blocker_id, "cardClaimed": self.pending_block.claimed_role.value}
                if self.pending_block else None
            ),
            "playerToLoseInfluence": self.player_to_lose_influence,
            "history": list(self.history),
        }


def _action_dict(pending: PendingAction | None) -> dict[str, Any] | None:
    if pending is None:
        return None
    return {"actorId": pending.actor_id, "action": pending.action.value, "targetId": pending.target_id}


def build_view(state: GameState, seat_id: str, history: int = DEFAULT_HISTORY) -> PlayerView:
    """
    Build the sanitized view for a seat.

    Opponents' hidden roles are never included; only how many hidden
    cards they hold.
    """
    me = state.get_player(seat_id)
    if me is None:
        raise KeyError(f"Unknown seat {seat_id}")

    opponents = tuple(
        OpponentView(
            player_id=p.player_id,
            name=p.name,
            coins=p.coins,
            influence=p.influence,
            revealed=tuple(c.role for c in p.revealed_cards),
            eliminated=p.eliminated,
        )
        for p in state.players
        if p.player_id != seat_id
    )
    recent = state.log[-history:] if history > 0 else ()

    return PlayerView(
        seat_id=seat_id,
        name=me.name,
        phase=state.phase_name,
        coins=me.coins,
        hand=me.cards,
        opponents=opponents,
        current_player_id=state.current_player.player_id,
        pending_action=state.pending_action,
        pending_block=state.pending_block,
        player_to_lose_influence=state.player_to_lose_influence,
        legal=tuple(legal_moves(state, seat_id)),
        history=tuple(entry.text for entry in recent),
        deck_size=len(state.deck),
        turn=state.turn,
    )


def targets_of(view: PlayerView, action: ActionKind) -> list[str]:
    """Targets the seat may legally pick for an action."""
    return [
        m.payload.target_id for m in view.legal
        if m.payload.action == action and m.payload.target_id is not None
    ]
