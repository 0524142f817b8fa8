"""
Pydantic Schemas for API - Request/response models for OpenAPI.

Every session response is built from the human seat's PlayerView, so
opponents' hidden roles never leave the server.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or has ended
- ILLEGAL_MOVE: The engine rejected the submitted move
- VALIDATION_ERROR: Request body could not be understood
- INTERNAL_ERROR: Anything else
"""

from enum import Enum
from typing import Optional, Any, Literal
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values, from the human's point of view."""
    YOUR_MOVE = "your_move"
    WAITING = "waiting"
    ELIMINATED = "eliminated"
    GAME_OVER = "game_over"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    ILLEGAL_MOVE = "ILLEGAL_MOVE"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


MoveKind = Literal["ACTION", "CHALLENGE", "BLOCK", "PASS", "LOSE_CARD"]


# =============================================================================
# Shared Models
# =============================================================================

class CardInfo(BaseModel):
    """One of the human's own cards."""
    card_id: str
    role: str
    revealed: bool = False


class PlayerInfo(BaseModel):
    """Public information about a seat."""
    player_id: str
    name: str
    is_human: bool
    is_current_turn: bool = False
    coins: int
    influence: int = Field(description="Hidden cards still held")
    revealed_roles: list[str] = Field(default_factory=list)
    eliminated: bool = False
    placement: Optional[int] = None


class PendingActionInfo(BaseModel):
    actor_id: str
    action: str
    target_id: Optional[str] = None


class PendingBlockInfo(BaseModel):
    blocker_id: str
    claimed_role: str


class LegalMoveInfo(BaseModel):
    """A move the human may submit right now."""
    type: MoveKind
    action: Optional[str] = None
    target_id: Optional[str] = None
    claimed_role: Optional[str] = None
    card_id: Optional[str] = None


class LogEntryInfo(BaseModel):
    id: str
    text: str
    kind: str

    model_config = {"from_attributes": True}


# =============================================================================
# Requests
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Start a game against automated opponents."""
    human_name: str = Field("Player", min_length=1, max_length=40)
    num_opponents: int = Field(2, ge=1, le=5, description="Automated seats (1-5)")
    personalities: Optional[list[str]] = Field(None, description="Personality names, assigned round-robin")
    seed: Optional[int] = Field(None, description="Seed for a reproducible deal")


class MoveRequest(BaseModel):
    """
    A move by the human seat.

    `action` is required for ACTION, `claimed_role` for BLOCK and
    `card_id` for LOSE_CARD.
    """
    type: MoveKind
    action: Optional[str] = None
    target_id: Optional[str] = None
    claimed_role: Optional[str] = None
    card_id: Optional[str] = None


# =============================================================================
# Responses
# =============================================================================

class SessionResponse(BaseModel):
    """The session as the human seat sees it."""
    session_id: str
    status: SessionStatus
    phase: str
    turn: int
    current_player_id: str
    players: list[PlayerInfo]
    hand: list[CardInfo]
    pending_action: Optional[PendingActionInfo] = None
    pending_block: Optional[PendingBlockInfo] = None
    player_to_lose_influence: Optional[str] = None
    waiting_on: list[str] = Field(default_factory=list)
    legal_moves: list[LegalMoveInfo] = Field(default_factory=list)
    log: list[LogEntryInfo] = Field(default_factory=list)
    deck_size: int
    winner_id: Optional[str] = None
    created_at: float


class MoveResponse(BaseModel):
    """Result of a human move and everything the automated seats did after it."""
    success: bool
    session: SessionResponse
    state_changes: list[str] = Field(default_factory=list)
    automated_moves: list[str] = Field(default_factory=list)


class SessionListResponse(BaseModel):
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    success: bool
    session_id: str


class LeaderboardEntry(BaseModel):
    player_name: str
    placement: int
    num_players: int
    duration_seconds: float
    game_id: str = ""
    recorded_at: float

    model_config = {"from_attributes": True}


class LeaderboardResponse(BaseModel):
    entries: list[LeaderboardEntry]


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
    active_sessions: int = 0
