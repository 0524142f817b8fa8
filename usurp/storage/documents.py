"""
Documents - Serializable form of a GameState.

A game is persisted as a plain JSON document. Loading validates the
document shape with pydantic, rebuilds the immutable state, and runs the
structural invariants over it, so a corrupt or hand-edited file cannot
produce an impossible game.
"""

from __future__ import annotations
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

from ..engine_core.action import ActionKind
from ..engine_core.cards import Card, Role
from ..engine_core.invariants import InvariantError, assert_invariants
from ..engine_core.state import (
    GameState, GamePhase, Player, LogEntry, LogKind, LossCause, PendingAction, PendingBlock,
    TurnStart, ActionDeclared, BlockDeclared, InfluenceLoss, GameOver,
)


DOCUMENT_VERSION = 1


class DocumentError(ValueError):
    """Raised when a stored document cannot be turned back into a game."""


class CardDocument(BaseModel):
    id: str
    role: Role
    revealed: bool = False


class PlayerDocument(BaseModel):
    id: str
    name: str
    is_automated: bool = False
    coins: int = Field(ge=0)
    cards: list[CardDocument]
    eliminated: bool = False
    placement: Optional[int] = None


class PendingActionDocument(BaseModel):
    actor_id: str
    action: ActionKind
    target_id: Optional[str] = None


class PendingBlockDocument(BaseModel):
    blocker_id: str
    claimed_role: Role


class PhaseDocument(BaseModel):
    """Flattened phase: only the fields its variant uses are set."""
    name: GamePhase
    action: Optional[PendingActionDocument] = None
    block: Optional[PendingBlockDocument] = None
    responders: list[str] = Field(default_factory=list)
    seat_id: Optional[str] = None
    cause: Optional[LossCause] = None
    winner_id: Optional[str] = None


class LogDocument(BaseModel):
    id: str
    text: str
    kind: LogKind = LogKind.INFO
    timestamp: float = 0.0


class GameDocument(BaseModel):
    version: int = DOCUMENT_VERSION
    game_id: str
    players: list[PlayerDocument]
    current_index: int = Field(ge=0)
    phase: PhaseDocument
    deck: list[CardDocument]
    log: list[LogDocument] = Field(default_factory=list)
    turn: int = 1
    started_at: float = 0.0


# =============================================================================
# State -> document
# =============================================================================

def _card_doc(card: Card) -> CardDocument:
    return CardDocument(id=card.card_id, role=card.role, revealed=card.revealed)


def _action_doc(pending: PendingAction | None) -> PendingActionDocument | None:
    if pending is None:
        return None
    return PendingActionDocument(actor_id=pending.actor_id, action=pending.action, target_id=pending.target_id)


def _phase_doc(state: GameState) -> PhaseDocument:
    phase = state.phase
    doc = PhaseDocument(name=phase.name, action=_action_doc(getattr(phase, "action", None)))
    if isinstance(phase, (ActionDeclared, BlockDeclared)):
        doc.responders = list(phase.responders)
    if isinstance(phase, BlockDeclared):
        doc.block = PendingBlockDocument(blocker_id=phase.block.blocker_id, claimed_role=phase.block.claimed_role)
    if isinstance(phase, InfluenceLoss):
        doc.seat_id = phase.seat_id
        doc.cause = phase.cause
    if isinstance(phase, GameOver):
        doc.winner_id = phase.winner_id
    return doc


def state_to_document(state: GameState) -> dict[str, Any]:
    """Serialize a state into a JSON-compatible dict."""
    doc = GameDocument(
        game_id=state.game_id,
        players=[
            PlayerDocument(
                id=p.player_id,
                name=p.name,
                is_automated=p.is_automated,
                coins=p.coins,
                cards=[_card_doc(c) for c in p.cards],
                eliminated=p.eliminated,
                placement=p.placement,
            )
            for p in state.players
        ],
        current_index=state.current_index,
        phase=_phase_doc(state),
        deck=[_card_doc(c) for c in state.deck],
        log=[LogDocument(id=e.entry_id, text=e.text, kind=e.kind, timestamp=e.timestamp) for e in state.log],
        turn=state.turn,
        started_at=state.started_at,
    )
    return doc.model_dump(mode="json")


# =============================================================================
# Document -> state
# =============================================================================

def _card(doc: CardDocument) -> Card:
    return Card(card_id=doc.id, role=doc.role, revealed=doc.revealed)


def _pending(doc: PendingActionDocument | None) -> PendingAction | None:
    if doc is None:
        return None
    return PendingAction(actor_id=doc.actor_id, action=doc.action, target_id=doc.target_id)


def _phase(doc: PhaseDocument):
    pending = _pending(doc.action)
    if doc.name == GamePhase.TURN_START:
        return TurnStart()
    if doc.name == GamePhase.ACTION_DECLARED:
        if pending is None:
            raise DocumentError("ACTION_DECLARED phase without a pending action")
        return ActionDeclared(action=pending, responders=tuple(doc.responders))
    if doc.name == GamePhase.BLOCK_DECLARED:
        if pending is None or doc.block is None:
            raise DocumentError("BLOCK_DECLARED phase without a pending action and block")
        block = PendingBlock(blocker_id=doc.block.blocker_id, claimed_role=doc.block.claimed_role)
        return BlockDeclared(action=pending, block=block, responders=tuple(doc.responders))
    if doc.name == GamePhase.CHALLENGE_LOSS:
        if doc.seat_id is None or doc.cause is None:
            raise DocumentError("CHALLENGE_LOSS phase without a seat and cause")
        return InfluenceLoss(seat_id=doc.seat_id, cause=doc.cause, action=pending)
    if doc.winner_id is None:
        raise DocumentError("GAME_OVER phase without a winner")
    return GameOver(winner_id=doc.winner_id)


def state_from_document(data: dict[str, Any]) -> GameState:
    """
    Rebuild a GameState from a stored document.

    Raises:
        DocumentError: If the document is malformed or describes a state
            that breaks the game's invariants
    """
    try:
        doc = GameDocument.model_validate(data)
    except ValidationError as e:
        raise DocumentError(f"Invalid game document: {e}") from e

    if doc.version != DOCUMENT_VERSION:
        raise DocumentError(f"Unsupported document version {doc.version}")
    if doc.current_index >= len(doc.players):
        raise DocumentError(f"current_index {doc.current_index} out of range")

    state = GameState(
        game_id=doc.game_id,
        players=tuple(
            Player(
                player_id=p.id,
                name=p.name,
                is_automated=p.is_automated,
                coins=p.coins,
                cards=tuple(_card(c) for c in p.cards),
                eliminated=p.eliminated,
                placement=p.placement,
            )
            for p in doc.players
        ),
        current_index=doc.current_index,
        phase=_phase(doc.phase),
        deck=tuple(_card(c) for c in doc.deck),
        log=tuple(LogEntry(entry_id=e.id, text=e.text, kind=e.kind, timestamp=e.timestamp) for e in doc.log),
        turn=doc.turn,
        started_at=doc.started_at,
    )

    try:
        return assert_invariants(state)
    except InvariantError as e:
        raise DocumentError(f"Stored game {doc.game_id} is inconsistent: {e}") from e
