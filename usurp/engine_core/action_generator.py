"""
Action Generator - Generates all legal moves from a game state.

The action generator is used by:
1. Decision providers to enumerate possible moves
2. UI to show available moves
3. Safe defaults (is this decision in legal_moves?)

Design: Generates Move objects, not just action kinds.
This ensures all generated moves are fully specified.
"""

from __future__ import annotations

from .state import GameState, TurnStart, ActionDeclared, BlockDeclared, InfluenceLoss
from .action import ActionKind, Move, MANDATORY_COUP_COINS


def awaiting_input(state: GameState) -> tuple[str, ...]:
    """Seats the game is currently waiting on, in seat order."""
    phase = state.phase
    if isinstance(phase, TurnStart):
        return (state.current_player.player_id,)
    if isinstance(phase, (ActionDeclared, BlockDeclared)):
        return phase.responders
    if isinstance(phase, InfluenceLoss):
        return (phase.seat_id,)
    return ()


def legal_moves(state: GameState, seat_id: str) -> list[Move]:
    """
    Generate every legal move for one seat.

    Returns an empty list when the seat has nothing to do.
    """
    player = state.get_player(seat_id)
    if state.is_over or player is None or player.eliminated:
        return []

    phase = state.phase

    if isinstance(phase, TurnStart):
        if state.current_player.player_id != seat_id:
            return []
        return _turn_moves(state, seat_id)

    if isinstance(phase, ActionDeclared):
        if seat_id not in phase.responders:
            return []
        pending = phase.action
        moves = [Move.pass_(seat_id)]
        if pending.action.challengeable:
            moves.append(Move.challenge(seat_id))
        if pending.action.blockable and (
            not pending.action.only_target_blocks or pending.target_id == seat_id
        ):
            moves.extend(Move.block(seat_id, role) for role in pending.action.blocking_roles)
        return moves

    if isinstance(phase, BlockDeclared):
        if seat_id not in phase.responders:
            return []
        return [Move.pass_(seat_id), Move.challenge(seat_id)]

    if isinstance(phase, InfluenceLoss):
        if phase.seat_id != seat_id:
            return []
        return [Move.lose_card(seat_id, card.card_id) for card in player.hidden_cards]

    return []


def _turn_moves(state: GameState, seat_id: str) -> list[Move]:
    """Declarations open to the current seat."""
    player = state.get_player(seat_id)
    targets = [p.player_id for p in state.active_players if p.player_id != seat_id]

    if player.coins >= MANDATORY_COUP_COINS:
        return [Move.declare(seat_id, ActionKind.COUP, t) for t in targets]

    moves = [
        Move.declare(seat_id, ActionKind.INCOME),
        Move.declare(seat_id, ActionKind.FOREIGN_AID),
        Move.declare(seat_id, ActionKind.TAX),
        Move.declare(seat_id, ActionKind.EXCHANGE),
    ]
    moves.extend(Move.declare(seat_id, ActionKind.STEAL, t) for t in targets)
    if player.coins >= ActionKind.ASSASSINATE.cost:
        moves.extend(Move.declare(seat_id, ActionKind.ASSASSINATE, t) for t in targets)
    if player.coins >= ActionKind.COUP.cost:
        moves.extend(Move.declare(seat_id, ActionKind.COUP, t) for t in targets)
    return moves
