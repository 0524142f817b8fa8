"""
Game State - Immutable state container for one game.

Design principles:
- Immutable: all mutations return new state
- Serializable: can be saved/loaded as a document
- One phase value: each phase variant carries only the data valid in it
- Observable: every transition appends to the game log
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Union
import random
import time
import uuid

from .cards import Card, Role, build_deck, draw
from .action import ActionKind


STARTING_COINS = 2
MIN_SEATS = 2
MAX_SEATS = 6


class GamePhase(Enum):
    """Phase names, as exposed to callers and documents."""
    TURN_START = "TURN_START"
    ACTION_DECLARED = "ACTION_DECLARED"
    BLOCK_DECLARED = "BLOCK_DECLARED"
    CHALLENGE_LOSS = "CHALLENGE_LOSS"
    GAME_OVER = "GAME_OVER"


class LossCause(Enum):
    """
    Why a seat owes a card.

    Decides what follows once the card is revealed. Failed/succeeded
    is from the challenger's point of view.
    """
    COUP_TARGET = "coup_target"
    ASSASSINATE_TARGET = "assassinate_target"
    FAILED_ACTION_CHALLENGE = "failed_action_challenge"
    FAILED_BLOCK_CHALLENGE = "failed_block_challenge"
    SUCCEEDED_ACTION_CHALLENGE = "succeeded_action_challenge"
    SUCCEEDED_BLOCK_CHALLENGE = "succeeded_block_challenge"


class LogKind(Enum):
    INFO = "info"
    ALERT = "alert"
    SUCCESS = "success"
    DANGER = "danger"


@dataclass(frozen=True)
class LogEntry:
    """One line of the game log."""
    entry_id: str
    text: str
    kind: LogKind = LogKind.INFO
    timestamp: float = 0.0


@dataclass(frozen=True)
class Player:
    """
    One seat at the table.

    Cards are never removed from a hand; losing influence flips a card
    face up.
    """
    player_id: str
    name: str
    is_automated: bool = False
    coins: int = STARTING_COINS
    cards: tuple[Card, ...] = ()
    eliminated: bool = False
    placement: int | None = None

    @property
    def hidden_cards(self) -> tuple[Card, ...]:
        return tuple(c for c in self.cards if c.hidden)

    @property
    def revealed_cards(self) -> tuple[Card, ...]:
        return tuple(c for c in self.cards if c.revealed)

    @property
    def influence(self) -> int:
        """Number of hidden cards."""
        return len(self.hidden_cards)

    def holds(self, role: Role) -> bool:
        """Whether a hidden card of this role is in hand."""
        return any(c.role == role for c in self.hidden_cards)

    def card_index(self, card_id: str) -> int | None:
        for i, card in enumerate(self.cards):
            if card.card_id == card_id:
                return i
        return None

    def hidden_index(self, role: Role) -> int | None:
        """Slot of the first hidden card of a role."""
        for i, card in enumerate(self.cards):
            if card.hidden and card.role == role:
                return i
        return None

    def with_card(self, index: int, card: Card) -> Player:
        """Return new player with one slot replaced."""
        cards = list(self.cards)
        cards[index] = card
        return replace(self, cards=tuple(cards))

    def with_coins(self, coins: int) -> Player:
        return replace(self, coins=coins)

    def placed(self, placement: int) -> Player:
        return replace(self, placement=placement)

    def eliminate(self, placement: int) -> Player:
        """Return the eliminated version of this seat."""
        return replace(self, eliminated=True, placement=placement)


@dataclass(frozen=True)
class PendingAction:
    """A declared, not yet resolved, turn action."""
    actor_id: str
    action: ActionKind
    target_id: str | None = None


@dataclass(frozen=True)
class PendingBlock:
    """An in-flight counter-claim."""
    blocker_id: str
    claimed_role: Role


# =============================================================================
# Phase variants
# =============================================================================

@dataclass(frozen=True)
class TurnStart:
    """The current seat must declare an action."""
    name = GamePhase.TURN_START


@dataclass(frozen=True)
class ActionDeclared:
    """An action is on the table; responders may challenge, block, or pass."""
    action: PendingAction
    responders: tuple[str, ...] = ()
    name = GamePhase.ACTION_DECLARED


@dataclass(frozen=True)
class BlockDeclared:
    """A block is on the table; responders may challenge it or pass."""
    action: PendingAction
    block: PendingBlock
    responders: tuple[str, ...] = ()
    name = GamePhase.BLOCK_DECLARED


@dataclass(frozen=True)
class InfluenceLoss:
    """
    A seat must reveal a card.

    `action` is the action still waiting to resolve afterwards (or the
    Coup/Assassinate that caused the loss); None when it was cancelled.
    """
    seat_id: str
    cause: LossCause
    action: PendingAction | None = None
    name = GamePhase.CHALLENGE_LOSS


@dataclass(frozen=True)
class GameOver:
    winner_id: str
    name = GamePhase.GAME_OVER


Phase = Union[TurnStart, ActionDeclared, BlockDeclared, InfluenceLoss, GameOver]


@dataclass(frozen=True)
class GameState:
    """
    Complete game state at a point in time.

    This is the canonical state the engine operates on.
    All state changes go through the reducer.
    """
    game_id: str
    players: tuple[Player, ...] = ()
    current_index: int = 0
    phase: Phase = field(default_factory=TurnStart)
    deck: tuple[Card, ...] = ()
    log: tuple[LogEntry, ...] = ()
    turn: int = 1
    started_at: float = 0.0

    # -------------------------------------------------------------------------
    # Derived views of the phase
    # -------------------------------------------------------------------------

    @property
    def phase_name(self) -> GamePhase:
        return self.phase.name

    @property
    def pending_action(self) -> PendingAction | None:
        return getattr(self.phase, "action", None)

    @property
    def pending_block(self) -> PendingBlock | None:
        return getattr(self.phase, "block", None)

    @property
    def waiting_for_response_from(self) -> tuple[str, ...]:
        if isinstance(self.phase, InfluenceLoss):
            return (self.phase.seat_id,)
        return getattr(self.phase, "responders", ())

    @property
    def player_to_lose_influence(self) -> str | None:
        if isinstance(self.phase, InfluenceLoss):
            return self.phase.seat_id
        return None

    @property
    def winner(self) -> str | None:
        if isinstance(self.phase, GameOver):
            return self.phase.winner_id
        return None

    @property
    def is_over(self) -> bool:
        return isinstance(self.phase, GameOver)

    # -------------------------------------------------------------------------
    # Players
    # -------------------------------------------------------------------------

    @property
    def current_player(self) -> Player:
        return self.players[self.current_index]

    @property
    def num_players(self) -> int:
        return len(self.players)

    @property
    def active_players(self) -> tuple[Player, ...]:
        return tuple(p for p in self.players if not p.eliminated)

    def get_player(self, player_id: str | None) -> Player | None:
        """Get player by ID."""
        for p in self.players:
            if p.player_id == player_id:
                return p
        return None

    def is_active(self, player_id: str | None) -> bool:
        player = self.get_player(player_id)
        return player is not None and not player.eliminated

    def responders_except(self, *player_ids: str) -> tuple[str, ...]:
        """Active seats in seat order, minus the given ones."""
        return tuple(
            p.player_id for p in self.players
            if not p.eliminated and p.player_id not in player_ids
        )

    # -------------------------------------------------------------------------
    # Copy helpers
    # -------------------------------------------------------------------------

    def with_player(self, player: Player) -> GameState:
        """Return new state with updated player."""
        new_players = tuple(
            player if p.player_id == player.player_id else p
            for p in self.players
        )
        return self._copy_with(players=new_players)

    def with_phase(self, phase: Phase) -> GameState:
        return self._copy_with(phase=phase)

    def with_deck(self, deck: tuple[Card, ...]) -> GameState:
        return self._copy_with(deck=deck)

    def with_log(self, text: str, kind: LogKind = LogKind.INFO) -> GameState:
        """Return new state with one more log line."""
        entry = LogEntry(
            entry_id=uuid.uuid4().hex[:9],
            text=text,
            kind=kind,
            timestamp=time.time(),
        )
        return self._copy_with(log=self.log + (entry,))

    def _copy_with(self, **kwargs) -> GameState:
        """Create a copy with some fields replaced."""
        return replace(self, **kwargs)


def new_game(
    seats: list[tuple[str, str, bool]],
    rng: random.Random | None = None,
    game_id: str | None = None,
    starting_coins: int = STARTING_COINS,
) -> GameState:
    """
    Create a fresh game.

    Args:
        seats: (player_id, name, is_automated) in turn order
        rng: Source of randomness for the shuffle
        game_id: Optional explicit id
        starting_coins: Coins dealt to every seat

    Returns:
        GameState at TURN_START with the first seat to act
    """
    if not MIN_SEATS <= len(seats) <= MAX_SEATS:
        raise ValueError(f"A game needs {MIN_SEATS}-{MAX_SEATS} seats, got {len(seats)}")
    ids = [seat[0] for seat in seats]
    if len(set(ids)) != len(ids):
        raise ValueError("Seat ids must be unique")

    deck = build_deck(rng)
    players = []
    for player_id, name, automated in seats:
        first, deck = draw(deck)
        second, deck = draw(deck)
        players.append(Player(
            player_id=player_id,
            name=name,
            is_automated=automated,
            coins=starting_coins,
            cards=(first, second),
        ))

    state = GameState(
        game_id=game_id or uuid.uuid4().hex[:9],
        players=tuple(players),
        deck=deck,
        started_at=time.time(),
    )
    return state.with_log("Game started. Good luck.")
