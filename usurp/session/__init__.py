"""
Session - Game sessions and the loop that drives them.
"""

from .manager import Session, SessionManager, SessionState, HUMAN_SEAT_ID
from .game_loop import GameLoop, LoopState, TurnResult

__all__ = [
    "Session",
    "SessionManager",
    "SessionState",
    "HUMAN_SEAT_ID",
    "GameLoop",
    "LoopState",
    "TurnResult",
]
