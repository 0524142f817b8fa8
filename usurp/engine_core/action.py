"""
Action System - Action kinds, move requests, and results.

Two layers:
1. ActionKind: the seven things a seat can do on its turn, plus their
   rule table (cost, claimed role, target, who may block)
2. Move: any request made to the engine (declare, challenge, block,
   pass, lose a card)

All state changes flow through moves.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .cards import Role


COUP_COST = 7
ASSASSINATE_COST = 3
MANDATORY_COUP_COINS = 10


class ActionKind(Enum):
    """Turn actions."""
    INCOME = "Income"
    FOREIGN_AID = "Foreign Aid"
    COUP = "Coup"
    TAX = "Tax"
    ASSASSINATE = "Assassinate"
    STEAL = "Steal"
    EXCHANGE = "Exchange"

    @property
    def cost(self) -> int:
        """Coins paid when the action is declared."""
        return _COSTS.get(self, 0)

    @property
    def claimed_role(self) -> Role | None:
        """Role the actor implicitly claims, if any."""
        return _CLAIMS.get(self)

    @property
    def requires_target(self) -> bool:
        return self in _TARGETED

    @property
    def challengeable(self) -> bool:
        return self.claimed_role is not None

    @property
    def blocking_roles(self) -> tuple[Role, ...]:
        """Roles that may be claimed to block this action."""
        return _BLOCKERS.get(self, ())

    @property
    def blockable(self) -> bool:
        return bool(self.blocking_roles)

    @property
    def only_target_blocks(self) -> bool:
        """Whether only the targeted seat may block (Steal, Assassinate)."""
        return self.blockable and self.requires_target


_COSTS = {
    ActionKind.COUP: COUP_COST,
    ActionKind.ASSASSINATE: ASSASSINATE_COST,
}

_CLAIMS = {
    ActionKind.TAX: Role.DUKE,
    ActionKind.ASSASSINATE: Role.ASSASSIN,
    ActionKind.STEAL: Role.CAPTAIN,
    ActionKind.EXCHANGE: Role.AMBASSADOR,
}

_TARGETED = {ActionKind.COUP, ActionKind.ASSASSINATE, ActionKind.STEAL}

_BLOCKERS = {
    ActionKind.FOREIGN_AID: (Role.DUKE,),
    ActionKind.STEAL: (Role.CAPTAIN, Role.AMBASSADOR),
    ActionKind.ASSASSINATE: (Role.CONTESSA,),
}


class MoveType(Enum):
    """Types of requests the engine accepts."""
    DECLARE_ACTION = "declare_action"
    CHALLENGE = "challenge"
    BLOCK = "block"
    PASS = "pass"
    LOSE_CARD = "lose_card"


@dataclass(frozen=True)
class MovePayload:
    """
    Parameters of a move.

    Different move types use different fields; validation
    happens in the reducer.
    """
    seat_id: str
    action: ActionKind | None = None
    target_id: str | None = None
    claimed_role: Role | None = None
    card_id: str | None = None


@dataclass(frozen=True)
class Move:
    """
    A complete request to be applied to the game state.

    Moves are validated before application and applied atomically.
    """
    move_type: MoveType
    payload: MovePayload

    @property
    def seat_id(self) -> str:
        return self.payload.seat_id

    @classmethod
    def declare(cls, seat_id: str, action: ActionKind, target_id: str | None = None) -> Move:
        """Factory for declaring a turn action."""
        return cls(
            move_type=MoveType.DECLARE_ACTION,
            payload=MovePayload(seat_id=seat_id, action=action, target_id=target_id),
        )

    @classmethod
    def challenge(cls, seat_id: str) -> Move:
        """Factory for disputing the pending claim."""
        return cls(move_type=MoveType.CHALLENGE, payload=MovePayload(seat_id=seat_id))

    @classmethod
    def block(cls, seat_id: str, claimed_role: Role) -> Move:
        """Factory for a counter-claim."""
        return cls(
            move_type=MoveType.BLOCK,
            payload=MovePayload(seat_id=seat_id, claimed_role=claimed_role),
        )

    @classmethod
    def pass_(cls, seat_id: str) -> Move:
        """Factory for declining to respond."""
        return cls(move_type=MoveType.PASS, payload=MovePayload(seat_id=seat_id))

    @classmethod
    def lose_card(cls, seat_id: str, card_id: str) -> Move:
        """Factory for choosing which card to reveal."""
        return cls(
            move_type=MoveType.LOSE_CARD,
            payload=MovePayload(seat_id=seat_id, card_id=card_id),
        )

    def describe(self) -> str:
        """Short human-readable form, used in logs."""
        p = self.payload
        if self.move_type == MoveType.DECLARE_ACTION and p.action:
            suffix = f" -> {p.target_id}" if p.target_id else ""
            return f"{p.seat_id}: {p.action.value}{suffix}"
        if self.move_type == MoveType.BLOCK and p.claimed_role:
            return f"{p.seat_id}: block ({p.claimed_role.value})"
        return f"{p.seat_id}: {self.move_type.value}"


@dataclass
class ActionResult:
    """
    Result of applying a move.

    A rejected move still carries a state: the input state plus an
    alert log entry, so callers can always keep `new_state`.
    """
    success: bool
    new_state: Any | None = None  # GameState
    error: str | None = None
    error_code: str | None = None

    # Human-readable changes, for presentation
    state_changes: list[str] = field(default_factory=list)

    @classmethod
    def failure(cls, error: str, error_code: str | None = None, state: Any | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, new_state=state, error=error, error_code=error_code)

    @classmethod
    def success_with_state(cls, state: Any, changes: list[str] | None = None) -> ActionResult:
        """Create a success result with new state."""
        return cls(success=True, new_state=state, state_changes=changes or [])


class ErrorCode(str, Enum):
    """Structured rejection codes."""
    INVALID_MOVE = "INVALID_MOVE"
    WRONG_PHASE = "WRONG_PHASE"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    NOT_A_RESPONDER = "NOT_A_RESPONDER"
    MUST_COUP = "MUST_COUP"
    INSUFFICIENT_COINS = "INSUFFICIENT_COINS"
    MISSING_TARGET = "MISSING_TARGET"
    INVALID_TARGET = "INVALID_TARGET"
    UNCHALLENGEABLE = "UNCHALLENGEABLE"
    UNBLOCKABLE = "UNBLOCKABLE"
    INVALID_CLAIM = "INVALID_CLAIM"
    INVALID_CARD = "INVALID_CARD"
    UNKNOWN_SEAT = "UNKNOWN_SEAT"
    GAME_OVER = "GAME_OVER"
