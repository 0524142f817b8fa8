"""
Bots - Automated decision providers.

Providers see a sanitized PlayerView and answer with a Decision, which
is turned into a legal Move (or a safe default) before it reaches the
engine.
"""

from .view import PlayerView, OpponentView, build_view, targets_of
from .decision import (
    Decision,
    ActionDecision,
    ChallengeDecision,
    BlockDecision,
    PassDecision,
    LoseCardDecision,
    RawDecision,
    parse_decision,
    decision_for,
    safe_default,
    to_move,
)
from .policy import DecisionProvider, RandomPolicy, PassivePolicy, HeuristicPolicy
from .personality import Personality, PERSONALITIES, get_personality, create_random_personality

__all__ = [
    "PlayerView",
    "OpponentView",
    "build_view",
    "targets_of",
    "Decision",
    "ActionDecision",
    "ChallengeDecision",
    "BlockDecision",
    "PassDecision",
    "LoseCardDecision",
    "RawDecision",
    "parse_decision",
    "decision_for",
    "safe_default",
    "to_move",
    "DecisionProvider",
    "RandomPolicy",
    "PassivePolicy",
    "HeuristicPolicy",
    "Personality",
    "PERSONALITIES",
    "get_personality",
    "create_random_personality",
]
