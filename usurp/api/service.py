"""
API Service - Business logic layer between the HTTP API and the engine.

The service:
1. Translates API requests into engine moves
2. Manages sessions and their game loops
3. Formats the human seat's view for clients
4. Exposes the leaderboard

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from .schemas import (
    # Requests
    CreateSessionRequest,
    MoveRequest,
    # Responses
    SessionResponse,
    MoveResponse,
    LeaderboardResponse,
    LeaderboardEntry,
    ErrorResponse,
    # Shared
    PlayerInfo,
    CardInfo,
    PendingActionInfo,
    PendingBlockInfo,
    LegalMoveInfo,
    LogEntryInfo,
    # Enums
    SessionStatus,
    ErrorCode,
)
from ..config import Settings, DEFAULT_DECISION_TIMEOUT, DEFAULT_HISTORY_WINDOW
from ..engine_core.action import Move, MoveType
from ..engine_core.action_generator import awaiting_input
from ..bots import build_view
from ..bots.decision import parse_action_kind, parse_role
from ..session import SessionManager, Session, GameLoop
from ..storage import (
    ResultRecorder, MemoryLeaderboard, FileLeaderboard, MemorySessionStore, FileSessionStore,
    StorageError, DocumentError,
)


logger = logging.getLogger(__name__)


_MOVE_KINDS = {
    MoveType.DECLARE_ACTION: "ACTION",
    MoveType.CHALLENGE: "CHALLENGE",
    MoveType.BLOCK: "BLOCK",
    MoveType.PASS: "PASS",
    MoveType.LOSE_CARD: "LOSE_CARD",
}


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        session = service.create_session(CreateSessionRequest(num_opponents=2))
        result = service.submit_move(session.session_id, MoveRequest(type="ACTION", action="Tax"))
    """
    session_manager: SessionManager = field(default_factory=SessionManager)
    recorder: ResultRecorder = field(default_factory=MemoryLeaderboard)
    decision_timeout: float = DEFAULT_DECISION_TIMEOUT
    history_window: int = DEFAULT_HISTORY_WINDOW

    @classmethod
    def from_settings(cls, settings: Settings) -> APIService:
        """Build a service whose storage follows the settings."""
        if settings.data_dir is not None:
            store = FileSessionStore(settings.data_dir / "sessions")
            recorder: ResultRecorder = FileLeaderboard(settings.data_dir / "leaderboard.json")
        else:
            store = MemorySessionStore()
            recorder = MemoryLeaderboard()
        return cls(
            session_manager=SessionManager(store=store),
            recorder=recorder,
            decision_timeout=settings.decision_timeout,
            history_window=settings.history_window,
        )

    def create_session(self, request: CreateSessionRequest) -> SessionResponse | ErrorResponse:
        """
        Create a new game session.

        Raises:
            ValueError: On an unknown personality name
        """
        try:
            session = self.session_manager.create_session(
                human_name=request.human_name,
                num_opponents=request.num_opponents,
                personalities=request.personalities,
                seed=request.seed,
            )
            self._loop(session).run_automated()
        except StorageError as e:
            return self._storage_failure("create session", e)
        return self._session_to_response(session)

    def get_session(self, session_id: str) -> SessionResponse | ErrorResponse:
        """
        Get the session as the human sees it.
        """
        session = self._find(session_id)
        if not isinstance(session, Session):
            return session
        return self._session_to_response(session)

    def submit_move(self, session_id: str, request: MoveRequest) -> MoveResponse | ErrorResponse:
        """
        Apply a human move, then play the automated seats.

        The session is saved before the session lock is released. If
        saving fails, the game has still moved on in memory; the error
        says so and the session can be fetched again.
        """
        session = self._find(session_id)
        if not isinstance(session, Session):
            return session

        move = self._to_move(session.human_seat_id, request)
        if isinstance(move, ErrorResponse):
            return move

        try:
            result = self._loop(session).submit_move(move)
        except StorageError as e:
            return self._storage_failure(f"save session {session_id}", e)

        if not result.success:
            return ErrorResponse(
                error=result.errors[0] if result.errors else "Illegal move",
                error_code=ErrorCode.ILLEGAL_MOVE,
                details={"reason": result.error_code},
            )
        return MoveResponse(
            success=True,
            session=self._session_to_response(session),
            state_changes=result.state_changes,
            automated_moves=result.automated_moves,
        )

    def end_session(self, session_id: str, reason: str = "user_ended") -> bool | ErrorResponse:
        """
        End a game session.

        Returns False if the session does not exist.
        """
        try:
            return self.session_manager.end_session(session_id, reason)
        except StorageError as e:
            return self._storage_failure(f"end session {session_id}", e)

    def list_sessions(self) -> list[str]:
        """
        List active session IDs.
        """
        return self.session_manager.list_active_sessions()

    def leaderboard(self, limit: int = 10) -> LeaderboardResponse | ErrorResponse:
        try:
            results = self.recorder.top(limit)
        except StorageError as e:
            return self._storage_failure("read the leaderboard", e)
        return LeaderboardResponse(
            entries=[LeaderboardEntry.model_validate(r, from_attributes=True) for r in results]
        )

    # =========================================================================
    # Helper methods
    # =========================================================================

    def _loop(self, session: Session) -> GameLoop:
        return GameLoop(
            session,
            recorder=self.recorder,
            decision_timeout=self.decision_timeout,
            history_window=self.history_window,
            on_change=self.session_manager.save,
        )

    def _find(self, session_id: str) -> Session | ErrorResponse:
        """Look a session up, restoring it from storage if needed."""
        try:
            session = self.session_manager.get_session(session_id)
        except (StorageError, DocumentError) as e:
            return self._storage_failure(f"load session {session_id}", e)
        if session is None:
            return self._not_found(session_id)
        return session

    def _storage_failure(self, what: str, error: Exception) -> ErrorResponse:
        logger.error("Could not %s: %s", what, error)
        return ErrorResponse(
            error=f"Could not {what}",
            error_code=ErrorCode.INTERNAL_ERROR,
            details={"reason": type(error).__name__},
        )

    def _not_found(self, session_id: str) -> ErrorResponse:
        return ErrorResponse(
            error=f"Session {session_id} not found",
            error_code=ErrorCode.SESSION_NOT_FOUND,
        )

    def _to_move(self, seat_id: str, request: MoveRequest) -> Move | ErrorResponse:
        """Convert a request body into an engine move."""
        if request.type == "ACTION":
            action = parse_action_kind(request.action)
            if action is None:
                return self._invalid(f"Unknown action {request.action!r}")
            return Move.declare(seat_id, action, request.target_id)
        if request.type == "BLOCK":
            role = parse_role(request.claimed_role)
            if role is None:
                return self._invalid(f"Unknown role {request.claimed_role!r}")
            return Move.block(seat_id, role)
        if request.type == "LOSE_CARD":
            if not request.card_id:
                return self._invalid("card_id is required")
            return Move.lose_card(seat_id, request.card_id)
        if request.type == "CHALLENGE":
            return Move.challenge(seat_id)
        return Move.pass_(seat_id)

    def _invalid(self, message: str) -> ErrorResponse:
        return ErrorResponse(error=message, error_code=ErrorCode.VALIDATION_ERROR)

    def _session_to_response(self, session: Session) -> SessionResponse:
        """Convert Session to SessionResponse, from the human's perspective."""
        state = session.game_state
        view = build_view(state, session.human_seat_id, history=self.history_window)
        players = [
            PlayerInfo(
                player_id=p.player_id,
                name=p.name,
                is_human=p.player_id == session.human_seat_id,
                is_current_turn=p.player_id == state.current_player.player_id,
                coins=p.coins,
                influence=p.influence,
                revealed_roles=[c.role.value for c in p.revealed_cards],
                eliminated=p.eliminated,
                placement=p.placement,
            )
            for p in state.players
        ]
        pending = view.pending_action
        block = view.pending_block
        recent = state.log[-self.history_window:] if self.history_window > 0 else ()

        return SessionResponse(
            session_id=session.session_id,
            status=self._status(session),
            phase=view.phase.value,
            turn=view.turn,
            current_player_id=view.current_player_id,
            players=players,
            hand=[CardInfo(card_id=c.card_id, role=c.role.value, revealed=c.revealed) for c in view.hand],
            pending_action=(
                PendingActionInfo(actor_id=pending.actor_id, action=pending.action.value, target_id=pending.target_id)
                if pending else None
            ),
            pending_block=(
                PendingBlockInfo(blocker_id=block.blocker_id, claimed_role=block.claimed_role.value)
                if block else None
            ),
            player_to_lose_influence=view.player_to_lose_influence,
            waiting_on=list(awaiting_input(state)),
            legal_moves=[self._legal_move_info(m) for m in view.legal],
            log=[LogEntryInfo(id=e.entry_id, text=e.text, kind=e.kind.value) for e in recent],
            deck_size=view.deck_size,
            winner_id=state.winner,
            created_at=session.created_at,
        )

    def _legal_move_info(self, move: Move) -> LegalMoveInfo:
        p = move.payload
        return LegalMoveInfo(
            type=_MOVE_KINDS[move.move_type],
            action=p.action.value if p.action else None,
            target_id=p.target_id,
            claimed_role=p.claimed_role.value if p.claimed_role else None,
            card_id=p.card_id,
        )

    def _status(self, session: Session) -> SessionStatus:
        state = session.game_state
        if state.is_over:
            return SessionStatus.GAME_OVER
        if not state.is_active(session.human_seat_id):
            return SessionStatus.ELIMINATED
        if session.human_seat_id in awaiting_input(state):
            return SessionStatus.YOUR_MOVE
        return SessionStatus.WAITING
