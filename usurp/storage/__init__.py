"""
Storage - Game documents, session stores, and the leaderboard.
"""

from .documents import DocumentError, GameDocument, state_to_document, state_from_document
from .repository import (
    StorageError,
    SessionStore,
    MemorySessionStore,
    FileSessionStore,
    ResultRecord,
    ResultRecorder,
    MemoryLeaderboard,
    FileLeaderboard,
)

__all__ = [
    "DocumentError",
    "GameDocument",
    "state_to_document",
    "state_from_document",
    "StorageError",
    "SessionStore",
    "MemorySessionStore",
    "FileSessionStore",
    "ResultRecord",
    "ResultRecorder",
    "MemoryLeaderboard",
    "FileLeaderboard",
]
