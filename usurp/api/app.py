"""
FastAPI Application - REST API for playing against automated seats.

Endpoints:
    GET    /api/v1/health                 Liveness check
    POST   /api/v1/sessions               Create game session
    GET    /api/v1/sessions               List active sessions
    GET    /api/v1/sessions/{id}          Get the human's view of a session
    POST   /api/v1/sessions/{id}/moves    Submit a human move
    DELETE /api/v1/sessions/{id}          End session
    GET    /api/v1/leaderboard            Best human results

Automated seats play synchronously inside the move request: the
response describes the game once it waits on the human again.

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Annotated, Union
import logging

from .. import __version__
from ..config import Settings


logger = logging.getLogger(__name__)


def create_app(service=None, settings: Settings | None = None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (built from settings if not provided)
        settings: Optional Settings (read from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, Query
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .service import APIService
    from .schemas import (
        # Request models
        CreateSessionRequest,
        MoveRequest,
        # Response models
        SessionResponse,
        MoveResponse,
        SessionListResponse,
        EndSessionResponse,
        LeaderboardResponse,
        ErrorResponse,
        HealthResponse,
        # Enums
        ErrorCode,
    )

    settings = settings or Settings.from_env()

    app = FastAPI(
        title="Usurp API",
        description="""
Bluffing card game against automated opponents.

## Flow

1. `POST /sessions` deals a game; the human seat acts first.
2. `POST /sessions/{id}/moves` applies a move; automated seats answer
   immediately and the response shows the game waiting on you again.
3. `legal_moves` in every session response lists exactly what you may submit.

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist |
| `ILLEGAL_MOVE` | The move is not allowed right now |
| `VALIDATION_ERROR` | The request could not be understood |
| `INTERNAL_ERROR` | Session storage failed; the game may have advanced in memory |
        """,
        version=__version__,
        docs_url=None if settings.is_production else "/api/docs",
        redoc_url=None if settings.is_production else "/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or APIService.from_settings(settings)

    # =========================================================================
    # Error helpers
    # =========================================================================

    status_codes = {
        ErrorCode.SESSION_NOT_FOUND: 404,
        ErrorCode.ILLEGAL_MOVE: 409,
        ErrorCode.VALIDATION_ERROR: 422,
        ErrorCode.INTERNAL_ERROR: 500,
    }

    def make_error_response(error: ErrorResponse) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_codes.get(error.error_code, 400),
            content=error.model_dump(mode="json"),
        )

    # =========================================================================
    # Health
    # =========================================================================

    @app.get("/api/v1/health", response_model=HealthResponse, tags=["Meta"])
    async def health() -> HealthResponse:
        return HealthResponse(
            status="ok",
            service="usurp",
            version=__version__,
            active_sessions=len(api_service.list_sessions()),
        )

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        status_code=201,
        responses={
            422: {"model": ErrorResponse, "description": "Invalid parameters"},
            500: {"model": ErrorResponse, "description": "Storage failure"},
        },
        tags=["Sessions"],
        summary="Create a new game session",
    )
    def create_session(request: CreateSessionRequest) -> Union[SessionResponse, JSONResponse]:
        """Deal a new game against `num_opponents` automated seats."""
        try:
            response = api_service.create_session(request)
        except ValueError as e:
            return make_error_response(ErrorResponse(error=str(e), error_code=ErrorCode.VALIDATION_ERROR))
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    def list_sessions() -> SessionListResponse:
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get the human's view of a session",
    )
    def get_session(session_id: str) -> Union[SessionResponse, JSONResponse]:
        response = api_service.get_session(session_id)
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    @app.post(
        "/api/v1/sessions/{session_id}/moves",
        response_model=MoveResponse,
        responses={
            404: {"model": ErrorResponse, "description": "Session not found"},
            409: {"model": ErrorResponse, "description": "Move not allowed now"},
        },
        tags=["Game Loop"],
        summary="Submit a move for the human seat",
    )
    def submit_move(session_id: str, request: MoveRequest) -> Union[MoveResponse, JSONResponse]:
        """
        Apply a move, then let the automated seats play until the game
        needs the human again.
        """
        response = api_service.submit_move(session_id, request)
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="End a game session",
    )
    def end_session(
        session_id: str,
        reason: Annotated[str, Query(description="Reason for ending")] = "user_ended",
    ) -> Union[EndSessionResponse, JSONResponse]:
        ended = api_service.end_session(session_id, reason)
        if isinstance(ended, ErrorResponse):
            return make_error_response(ended)
        if not ended:
            return make_error_response(ErrorResponse(
                error=f"Session {session_id} not found",
                error_code=ErrorCode.SESSION_NOT_FOUND,
            ))
        return EndSessionResponse(success=True, session_id=session_id)

    # =========================================================================
    # Leaderboard
    # =========================================================================

    @app.get(
        "/api/v1/leaderboard",
        response_model=LeaderboardResponse,
        tags=["Results"],
        summary="Best human results",
    )
    def leaderboard(
        limit: Annotated[int, Query(ge=1, le=100)] = 10,
    ) -> Union[LeaderboardResponse, JSONResponse]:
        response = api_service.leaderboard(limit)
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    return app
