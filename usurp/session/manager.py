"""
Session Manager - Creates, tracks, and persists game sessions.

LIFECYCLE:
1. A human asks for a game against 1-5 automated seats
2. The manager deals a new game and builds a provider per automated seat
3. Every move goes through the GameLoop; the manager saves the session
   after each change
4. The game ends (or the human quits); the session is removed

PERSISTENCE:
- The latest game document of every session is kept in a SessionStore
- Sessions missing from memory (e.g. after a restart) are restored from
  the store on first access
- Providers are persisted by kind and personality name only
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
import logging
import random
import threading
import time
import uuid

from ..engine_core.state import GameState, MAX_SEATS, new_game
from ..bots import DecisionProvider, HeuristicPolicy, PassivePolicy, RandomPolicy, PERSONALITIES, get_personality
from ..storage import SessionStore, MemorySessionStore, state_to_document, state_from_document


logger = logging.getLogger(__name__)


HUMAN_SEAT_ID = "human"


class SessionState(Enum):
    """State of a game session."""
    ACTIVE = "active"  # Game in progress
    GAME_OVER = "game_over"  # Game completed
    ABANDONED = "abandoned"  # User quit


@dataclass
class Session:
    """
    One game plus everything needed to drive it.

    The lock serializes every mutation of `game_state`.
    """
    session_id: str
    game_state: GameState
    created_at: float

    providers: dict[str, DecisionProvider] = field(default_factory=dict)
    human_seat_id: str | None = HUMAN_SEAT_ID
    status: SessionState = SessionState.ACTIVE
    result_reported: bool = False

    rng: random.Random = field(default_factory=random.Random)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def is_active(self) -> bool:
        return self.status == SessionState.ACTIVE and not self.game_state.is_over

    def is_human_turn(self) -> bool:
        """Check if it's the human player's turn."""
        return (
            not self.game_state.is_over
            and self.game_state.current_player.player_id == self.human_seat_id
        )


def provider_spec(provider: DecisionProvider) -> dict[str, Any]:
    """Persistable description of a provider."""
    if isinstance(provider, HeuristicPolicy):
        return {"kind": "heuristic", "personality": provider.personality.name.lower()}
    if isinstance(provider, RandomPolicy):
        return {"kind": "random"}
    return {"kind": "passive"}


def provider_from_spec(spec: dict[str, Any]) -> DecisionProvider:
    kind = spec.get("kind", "heuristic")
    if kind == "random":
        return RandomPolicy()
    if kind == "passive":
        return PassivePolicy()
    name = spec.get("personality", "balanced")
    personality = PERSONALITIES.get(name, PERSONALITIES["balanced"])
    return HeuristicPolicy(personality=personality)


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions with their automated seats
    - Track active sessions
    - Save sessions to, and restore them from, the session store
    - Clean up finished or stale sessions
    """

    def __init__(self, store: SessionStore | None = None):
        self.store = store or MemorySessionStore()
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def create_session(
        self,
        human_name: str = "Player",
        num_opponents: int = 2,
        personalities: list[str] | None = None,
        seed: int | None = None,
    ) -> Session:
        """
        Create a new game session with one human seat.

        Args:
            human_name: Display name for the human seat
            num_opponents: Number of automated seats (1-5)
            personalities: Personality names, assigned round-robin
            seed: Seed for the deal and all later shuffles

        Returns:
            New Session; the human seat acts first
        """
        if not 1 <= num_opponents <= MAX_SEATS - 1:
            raise ValueError(f"num_opponents must be between 1 and {MAX_SEATS - 1}")

        names = personalities or list(PERSONALITIES)
        chosen = [get_personality(names[i % len(names)]) for i in range(num_opponents)]

        rng = random.Random(seed)
        seats = [(HUMAN_SEAT_ID, human_name, False)]
        providers: dict[str, DecisionProvider] = {}
        for i, personality in enumerate(chosen, start=1):
            seat_id = f"bot_{i}"
            seats.append((seat_id, f"{personality.name} Bot {i}", True))
            providers[seat_id] = HeuristicPolicy(personality=personality, seed=rng.randrange(2**32))

        session_id = uuid.uuid4().hex
        session = Session(
            session_id=session_id,
            game_state=new_game(seats, rng=rng, game_id=session_id),
            created_at=time.time(),
            providers=providers,
            rng=rng,
        )

        with self._lock:
            self._sessions[session_id] = session
        self.save(session)
        logger.info("Created session %s with %d automated seats", session_id, num_opponents)
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID, restoring it from the store if needed."""
        with self._lock:
            session = self._sessions.get(session_id)
        if session is not None:
            return session
        return self._restore(session_id)

    def save(self, session: Session):
        """Write the session's latest state to the store."""
        if session.game_state.is_over and session.status == SessionState.ACTIVE:
            session.status = SessionState.GAME_OVER
        record = {
            "session_id": session.session_id,
            "human_seat_id": session.human_seat_id,
            "created_at": session.created_at,
            "status": session.status.value,
            "result_reported": session.result_reported,
            "providers": {seat: provider_spec(p) for seat, p in session.providers.items()},
            "game": state_to_document(session.game_state),
        }
        self.store.save(session.session_id, record)

    def _restore(self, session_id: str) -> Session | None:
        record = self.store.load(session_id)
        if record is None:
            return None

        session = Session(
            session_id=session_id,
            game_state=state_from_document(record["game"]),
            created_at=record.get("created_at", time.time()),
            providers={seat: provider_from_spec(spec) for seat, spec in record.get("providers", {}).items()},
            human_seat_id=record.get("human_seat_id"),
            status=SessionState(record.get("status", SessionState.ACTIVE.value)),
            result_reported=record.get("result_reported", False),
        )
        with self._lock:
            # Another thread may have restored it first.
            session = self._sessions.setdefault(session_id, session)
        logger.info("Restored session %s from storage", session_id)
        return session

    def end_session(self, session_id: str, reason: str = "completed") -> bool:
        """
        End a session and delete it from memory and the store.

        Returns True if the session existed.
        """
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session:
            session.status = SessionState.GAME_OVER if reason == "completed" else SessionState.ABANDONED
        deleted = self.store.delete(session_id)
        if session or deleted:
            logger.info("Ended session %s (%s)", session_id, reason)
        return session is not None or deleted

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions held in memory."""
        with self._lock:
            return [sid for sid, session in self._sessions.items() if session.is_active()]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> list[str]:
        """
        Remove finished sessions older than max_age.

        Returns the IDs removed.
        """
        now = time.time()
        with self._lock:
            stale = [
                sid for sid, session in self._sessions.items()
                if now - session.created_at > max_age_seconds and not session.is_active()
            ]
        for session_id in stale:
            self.end_session(session_id, reason="stale")
        return stale
