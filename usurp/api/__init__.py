"""
API Module - HTTP interface.

Exposes the engine via REST API. A client:
1. Creates a game session against automated seats
2. Reads the human seat's view, including its legal moves
3. Submits moves; automated seats answer in the same request
4. Reads the leaderboard once games are over
"""

from .schemas import (
    # Requests
    CreateSessionRequest,
    MoveRequest,
    # Responses
    SessionResponse,
    MoveResponse,
    LeaderboardResponse,
    ErrorResponse,
    # Shared
    PlayerInfo,
    CardInfo,
    LegalMoveInfo,
    # Enums
    SessionStatus,
    ErrorCode,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "CreateSessionRequest",
    "MoveRequest",
    # Responses
    "SessionResponse",
    "MoveResponse",
    "LeaderboardResponse",
    "ErrorResponse",
    # Shared
    "PlayerInfo",
    "CardInfo",
    "LegalMoveInfo",
    # Enums
    "SessionStatus",
    "ErrorCode",
    # Service
    "APIService",
    "create_app",
]
