"""
Engine Core - Pure game state transitions.

The engine is the runtime that:
1. Deals a new game
2. Manages GameState
3. Generates legal moves
4. Applies moves via the reducer
5. Resolves challenges, blocks, and influence loss
"""

from .cards import Card, Role, build_deck, draw, return_and_reshuffle, DeckExhaustedError
from .state import (
    GameState,
    GamePhase,
    Player,
    PendingAction,
    PendingBlock,
    LogEntry,
    LogKind,
    LossCause,
    TurnStart,
    ActionDeclared,
    BlockDeclared,
    InfluenceLoss,
    GameOver,
    new_game,
)
from .action import ActionKind, Move, MoveType, MovePayload, ActionResult, ErrorCode
from .turns import declare_action, pass_response, settle_responses, resolve_action, advance_turn
from .resolution import challenge, declare_block, lose_card
from .reducer import Reducer, apply_move
from .action_generator import legal_moves, awaiting_input
from .invariants import check_invariants, assert_invariants, InvariantError

__all__ = [
    "Card",
    "Role",
    "build_deck",
    "draw",
    "return_and_reshuffle",
    "DeckExhaustedError",
    "GameState",
    "GamePhase",
    "Player",
    "PendingAction",
    "PendingBlock",
    "LogEntry",
    "LogKind",
    "LossCause",
    "TurnStart",
    "ActionDeclared",
    "BlockDeclared",
    "InfluenceLoss",
    "GameOver",
    "new_game",
    "ActionKind",
    "Move",
    "MoveType",
    "MovePayload",
    "ActionResult",
    "ErrorCode",
    "declare_action",
    "pass_response",
    "settle_responses",
    "resolve_action",
    "advance_turn",
    "challenge",
    "declare_block",
    "lose_card",
    "Reducer",
    "apply_move",
    "legal_moves",
    "awaiting_input",
    "check_invariants",
    "assert_invariants",
    "InvariantError",
]
