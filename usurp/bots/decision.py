"""
Decisions - What a provider hands back, and how it becomes a move.

A decision is one of five variants. External providers may send a raw
JSON payload instead; parse_decision() validates it and falls back to
Pass on anything malformed. to_move() turns a decision into a legal
Move, substituting the safe default whenever the decision cannot be
used in the current state.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Literal, Optional, Union
import json
import logging
import re

from pydantic import BaseModel, Field, ValidationError

from ..engine_core.action import ActionKind, Move, MoveType
from ..engine_core.action_generator import legal_moves
from ..engine_core.cards import Role
from ..engine_core.state import GameState, TurnStart, ActionDeclared, BlockDeclared, InfluenceLoss


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActionDecision:
    action: ActionKind
    target_id: str | None = None
    explanation: str = ""


@dataclass(frozen=True)
class ChallengeDecision:
    explanation: str = ""


@dataclass(frozen=True)
class BlockDecision:
    claimed_role: Role
    explanation: str = ""


@dataclass(frozen=True)
class PassDecision:
    explanation: str = ""


@dataclass(frozen=True)
class LoseCardDecision:
    card_id: str | None = None
    explanation: str = ""


Decision = Union[ActionDecision, ChallengeDecision, BlockDecision, PassDecision, LoseCardDecision]


# =============================================================================
# Raw payloads from external providers
# =============================================================================

class RawDecisionPayload(BaseModel):
    """Optional parameters of a raw decision."""
    action: Optional[str] = None
    target_id: Optional[str] = Field(None, alias="targetId")
    card_to_lose: Optional[str] = Field(None, alias="cardToLose")
    block_card: Optional[str] = Field(None, alias="blockCard")

    model_config = {"populate_by_name": True}


class RawDecision(BaseModel):
    """Wire format: {type, payload, thoughtProcess}."""
    type: Literal["ACTION", "CHALLENGE", "BLOCK", "PASS", "LOSE_CARD"]
    payload: Optional[RawDecisionPayload] = None
    thought_process: str = Field("", alias="thoughtProcess")

    model_config = {"populate_by_name": True}


_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def _normalize(text: str) -> str:
    return re.sub(r"[\s_\-]+", "", text).lower()


def parse_action_kind(text: str | None) -> ActionKind | None:
    """Lenient lookup: 'Foreign Aid', 'FOREIGN_AID' and 'foreign-aid' all match."""
    if not text:
        return None
    wanted = _normalize(text)
    for kind in ActionKind:
        if wanted in (_normalize(kind.value), _normalize(kind.name)):
            return kind
    return None


def parse_role(text: str | None) -> Role | None:
    if not text:
        return None
    wanted = _normalize(text)
    for role in Role:
        if wanted in (_normalize(role.value), _normalize(role.name)):
            return role
    return None


def parse_decision(raw: str | dict[str, Any] | None) -> Decision:
    """
    Convert a raw provider response into a Decision.

    Accepts a dict or a JSON string (surrounding prose is tolerated).
    Anything malformed becomes a PassDecision.
    """
    if raw is None:
        return PassDecision(explanation="No decision received")

    try:
        if isinstance(raw, str):
            match = _JSON_OBJECT.search(raw)
            raw = json.loads(match.group(0) if match else raw)
        parsed = RawDecision.model_validate(raw)
    except (ValueError, ValidationError) as e:
        logger.warning("Malformed decision, passing instead: %s", e)
        return PassDecision(explanation="Malformed decision")

    payload = parsed.payload or RawDecisionPayload()
    note = parsed.thought_process

    if parsed.type == "ACTION":
        kind = parse_action_kind(payload.action)
        if kind is None:
            logger.warning("Unknown action %r, passing instead", payload.action)
            return PassDecision(explanation="Unknown action")
        return ActionDecision(action=kind, target_id=payload.target_id, explanation=note)
    if parsed.type == "CHALLENGE":
        return ChallengeDecision(explanation=note)
    if parsed.type == "BLOCK":
        role = parse_role(payload.block_card)
        if role is None:
            logger.warning("Unknown block card %r, passing instead", payload.block_card)
            return PassDecision(explanation="Unknown block card")
        return BlockDecision(claimed_role=role, explanation=note)
    if parsed.type == "LOSE_CARD":
        return LoseCardDecision(card_id=payload.card_to_lose, explanation=note)
    return PassDecision(explanation=note)


# =============================================================================
# Decisions to moves
# =============================================================================

def decision_for(move: Move, explanation: str = "") -> Decision:
    """The decision that produces a given move."""
    p = move.payload
    if move.move_type == MoveType.DECLARE_ACTION:
        return ActionDecision(action=p.action, target_id=p.target_id, explanation=explanation)
    if move.move_type == MoveType.CHALLENGE:
        return ChallengeDecision(explanation=explanation)
    if move.move_type == MoveType.BLOCK:
        return BlockDecision(claimed_role=p.claimed_role, explanation=explanation)
    if move.move_type == MoveType.LOSE_CARD:
        return LoseCardDecision(card_id=p.card_id, explanation=explanation)
    return PassDecision(explanation=explanation)


def safe_default(state: GameState, seat_id: str) -> Move | None:
    """
    The move made on a seat's behalf when its decision is unusable.

    Income on its turn (Coup on the first live target when Coup is
    forced), Pass when responding, the first hidden card when a loss is
    owed. None when nothing is expected from the seat.
    """
    legal = legal_moves(state, seat_id)
    if not legal:
        return None

    phase = state.phase
    if isinstance(phase, TurnStart):
        income = Move.declare(seat_id, ActionKind.INCOME)
        return income if income in legal else legal[0]
    if isinstance(phase, (ActionDeclared, BlockDeclared)):
        return Move.pass_(seat_id)
    if isinstance(phase, InfluenceLoss):
        return legal[0]
    return None


def _move_from(decision: Decision, seat_id: str) -> Move | None:
    if isinstance(decision, ActionDecision):
        target = decision.target_id if decision.action.requires_target else None
        return Move.declare(seat_id, decision.action, target)
    if isinstance(decision, ChallengeDecision):
        return Move.challenge(seat_id)
    if isinstance(decision, BlockDecision):
        return Move.block(seat_id, decision.claimed_role)
    if isinstance(decision, PassDecision):
        return Move.pass_(seat_id)
    if isinstance(decision, LoseCardDecision) and decision.card_id:
        return Move.lose_card(seat_id, decision.card_id)
    return None


def to_move(state: GameState, seat_id: str, decision: Decision | None) -> Move | None:
    """
    Turn a decision into a legal move for the seat.

    Illegal, missing, or mismatched decisions degrade to safe_default().
    """
    move = _move_from(decision, seat_id) if decision is not None else None
    if move is not None and move in legal_moves(state, seat_id):
        return move
    if decision is not None:
        logger.info("Decision %r from %s not usable now; using default", decision, seat_id)
    return safe_default(state, seat_id)
