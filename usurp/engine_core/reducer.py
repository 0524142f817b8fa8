"""
Reducer - Applies moves to game state.

The reducer is the single entry point for state transitions.
All moves from humans and automated seats go through apply_move().

Design principles:
- Pure function: (state, move) -> new_state
- Validates before applying
- Returns ActionResult with success/failure
- Closes a response window as soon as nobody is left to answer
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import random

from .state import GameState
from .action import Move, MoveType, ActionResult, ErrorCode
from .turns import declare_action, pass_response, settle_responses, reject
from .resolution import challenge, declare_block, lose_card


logger = logging.getLogger(__name__)


@dataclass
class Reducer:
    """
    Reducer applies moves to game state.

    Stateless apart from its random source - all game data is in GameState.
    """
    rng: random.Random = field(default_factory=random.Random)

    def apply(self, state: GameState, move: Move) -> ActionResult:
        """
        Apply a move to the game state.

        Returns ActionResult with the new state, or the unchanged state
        plus an alert log entry when the move is illegal.
        """
        validation_error = self._validate_move(state, move)
        if validation_error:
            result = reject(state, validation_error[0], validation_error[1])
        else:
            handler = self._get_handler(move.move_type)
            result = handler(state, move)

        if not result.success:
            logger.debug("Rejected %s in game %s: %s", move.describe(), state.game_id, result.error)
            return result

        if move.move_type in {MoveType.PASS, MoveType.CHALLENGE, MoveType.BLOCK}:
            result.new_state = settle_responses(result.new_state, self.rng)
        return result

    def _validate_move(self, state: GameState, move: Move) -> tuple[str, ErrorCode] | None:
        """
        Checks shared by every move type.

        Returns (message, code) if invalid, None if valid.
        """
        if state.is_over:
            return "The game is over.", ErrorCode.GAME_OVER

        player = state.get_player(move.seat_id)
        if player is None:
            return f"Unknown seat {move.seat_id}.", ErrorCode.UNKNOWN_SEAT
        if player.eliminated:
            return f"{player.name} has been eliminated.", ErrorCode.INVALID_MOVE

        payload = move.payload
        if move.move_type == MoveType.DECLARE_ACTION and payload.action is None:
            return "No action given.", ErrorCode.INVALID_MOVE
        if move.move_type == MoveType.BLOCK and payload.claimed_role is None:
            return "A block must claim a role.", ErrorCode.INVALID_CLAIM
        if move.move_type == MoveType.LOSE_CARD and payload.card_id is None:
            return "No card chosen.", ErrorCode.INVALID_CARD

        return None

    def _get_handler(self, move_type: MoveType):
        """Get the handler function for a move type."""
        handlers = {
            MoveType.DECLARE_ACTION: self._handle_declare,
            MoveType.CHALLENGE: self._handle_challenge,
            MoveType.BLOCK: self._handle_block,
            MoveType.PASS: self._handle_pass,
            MoveType.LOSE_CARD: self._handle_lose_card,
        }
        return handlers[move_type]

    def _handle_declare(self, state: GameState, move: Move) -> ActionResult:
        p = move.payload
        return declare_action(state, p.seat_id, p.action, p.target_id)

    def _handle_challenge(self, state: GameState, move: Move) -> ActionResult:
        return challenge(state, move.seat_id, self.rng)

    def _handle_block(self, state: GameState, move: Move) -> ActionResult:
        return declare_block(state, move.seat_id, move.payload.claimed_role)

    def _handle_pass(self, state: GameState, move: Move) -> ActionResult:
        return pass_response(state, move.seat_id)

    def _handle_lose_card(self, state: GameState, move: Move) -> ActionResult:
        return lose_card(state, move.seat_id, move.payload.card_id, self.rng)


def apply_move(state: GameState, move: Move, rng: random.Random | None = None) -> ActionResult:
    """
    Convenience function to apply a move.

    Creates a reducer and applies the move.
    """
    reducer = Reducer(rng=rng) if rng is not None else Reducer()
    return reducer.apply(state, move)
