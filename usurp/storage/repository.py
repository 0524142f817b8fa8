"""
Repositories - Where sessions and finished-game results live.

Two concerns, each behind an abstract interface with an in-memory and a
JSON-file backend:
- SessionStore: the latest game document of each session
- ResultRecorder: the leaderboard of human placements

File backends write one JSON document per file and surface I/O or
decoding faults as StorageError.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional
import json
import logging
import threading
import time

from pydantic import BaseModel, Field, ValidationError


logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised when a storage backend cannot read or write."""


# =============================================================================
# Sessions
# =============================================================================

class SessionStore(ABC):
    """Abstract base class for session storage."""

    @abstractmethod
    def save(self, session_id: str, record: dict[str, Any]) -> None:
        """Persist the latest record of a session, replacing any earlier one."""
        pass

    @abstractmethod
    def load(self, session_id: str) -> Optional[dict[str, Any]]:
        """Return the stored record, or None if the session is unknown."""
        pass

    @abstractmethod
    def delete(self, session_id: str) -> bool:
        """Delete a session. Returns True if it existed."""
        pass

    @abstractmethod
    def list_ids(self) -> list[str]:
        """IDs of every stored session."""
        pass


class MemorySessionStore(SessionStore):
    """Dict-backed store; contents vanish with the process."""

    def __init__(self):
        self._records: dict[str, dict[str, Any]] = {}

    def save(self, session_id: str, record: dict[str, Any]) -> None:
        self._records[session_id] = json.loads(json.dumps(record))

    def load(self, session_id: str) -> Optional[dict[str, Any]]:
        record = self._records.get(session_id)
        return json.loads(json.dumps(record)) if record is not None else None

    def delete(self, session_id: str) -> bool:
        return self._records.pop(session_id, None) is not None

    def list_ids(self) -> list[str]:
        return sorted(self._records)


class FileSessionStore(SessionStore):
    """
    JSON file-based session store.

    Stores each session as `<session_id>.json` in the sessions directory.
    """

    def __init__(self, sessions_path: str | Path = "sessions"):
        self.sessions_path = Path(sessions_path)
        self.sessions_path.mkdir(parents=True, exist_ok=True)

    def _get_path(self, session_id: str) -> Path:
        if not session_id or "/" in session_id or "\\" in session_id or session_id.startswith("."):
            raise StorageError(f"Invalid session id {session_id!r}")
        return self.sessions_path / f"{session_id}.json"

    def save(self, session_id: str, record: dict[str, Any]) -> None:
        path = self._get_path(session_id)
        tmp = path.with_suffix(".json.tmp")
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(record, f, indent=2)
            tmp.replace(path)
        except (OSError, TypeError) as e:
            raise StorageError(f"Could not save session {session_id}: {e}") from e

    def load(self, session_id: str) -> Optional[dict[str, Any]]:
        path = self._get_path(session_id)
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Could not load session {session_id}: {e}") from e

    def delete(self, session_id: str) -> bool:
        path = self._get_path(session_id)
        if path.exists():
            path.unlink()
            return True
        return False

    def list_ids(self) -> list[str]:
        return sorted(p.stem for p in self.sessions_path.glob("*.json"))


# =============================================================================
# Results
# =============================================================================

class ResultRecord(BaseModel):
    """One finished game, from the human seat's point of view."""
    player_name: str
    placement: int = Field(ge=1)
    num_players: int = Field(ge=2)
    duration_seconds: float = Field(ge=0)
    game_id: str = ""
    recorded_at: float = Field(default_factory=time.time)


def _ranked(results: list[ResultRecord], limit: int) -> list[ResultRecord]:
    """Best placement first, faster games break ties."""
    ordered = sorted(results, key=lambda r: (r.placement, r.duration_seconds))
    return ordered[:max(limit, 0)]


class ResultRecorder(ABC):
    """Abstract base class for the leaderboard."""

    @abstractmethod
    def record(self, result: ResultRecord) -> None:
        """Add one result."""
        pass

    @abstractmethod
    def top(self, limit: int = 10) -> list[ResultRecord]:
        """Best results, ordered by placement then duration."""
        pass


class MemoryLeaderboard(ResultRecorder):
    def __init__(self):
        self._results: list[ResultRecord] = []
        self._lock = threading.Lock()

    def record(self, result: ResultRecord) -> None:
        with self._lock:
            self._results.append(result)

    def top(self, limit: int = 10) -> list[ResultRecord]:
        with self._lock:
            return _ranked(list(self._results), limit)


class FileLeaderboard(ResultRecorder):
    """
    Leaderboard kept in a single JSON file (a list of result objects).

    A missing file is an empty leaderboard.
    """

    def __init__(self, path: str | Path = "leaderboard.json"):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _read(self) -> list[ResultRecord]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            return [ResultRecord.model_validate(item) for item in data]
        except (OSError, json.JSONDecodeError, ValidationError, TypeError) as e:
            raise StorageError(f"Could not read leaderboard {self.path}: {e}") from e

    def record(self, result: ResultRecord) -> None:
        with self._lock:
            results = self._read()
            results.append(result)
            try:
                with open(self.path, "w", encoding="utf-8") as f:
                    json.dump([r.model_dump() for r in results], f, indent=2)
            except OSError as e:
                raise StorageError(f"Could not write leaderboard {self.path}: {e}") from e
        logger.info("Recorded result for %s: place %d of %d", result.player_name, result.placement, result.num_players)

    def top(self, limit: int = 10) -> list[ResultRecord]:
        with self._lock:
            return _ranked(self._read(), limit)
