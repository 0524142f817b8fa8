"""
Invariants - Structural checks on a game state.

A state produced by the engine always passes these checks. They are
used to vet states loaded from storage and by the property tests.
"""

from __future__ import annotations
from collections import Counter

from .cards import Role, COPIES_PER_ROLE, DECK_SIZE
from .state import GameState, InfluenceLoss, GameOver


class InvariantError(ValueError):
    """Raised when a state breaks a structural invariant."""

    def __init__(self, violations: list[str]):
        self.violations = violations
        super().__init__("; ".join(violations))


def check_invariants(state: GameState) -> list[str]:
    """Return a list of violated invariants (empty when the state is sound)."""
    violations: list[str] = []

    all_cards = list(state.deck)
    for player in state.players:
        all_cards.extend(player.cards)

    if len(all_cards) != DECK_SIZE:
        violations.append(f"expected {DECK_SIZE} cards, found {len(all_cards)}")
    roles = Counter(card.role for card in all_cards)
    for role in Role:
        if roles[role] != COPIES_PER_ROLE:
            violations.append(f"expected {COPIES_PER_ROLE} {role.value}, found {roles[role]}")
    if any(card.revealed for card in state.deck):
        violations.append("revealed card in the deck")
    ids = Counter(card.card_id for card in all_cards)
    duplicates = [card_id for card_id, n in ids.items() if n > 1]
    if duplicates:
        violations.append(f"duplicate card ids: {duplicates}")

    for player in state.players:
        if player.coins < 0:
            violations.append(f"{player.player_id} has negative coins")
        if (player.influence == 0) != player.eliminated:
            violations.append(f"{player.player_id} elimination flag disagrees with hidden cards")
        if player.eliminated and player.placement is None:
            violations.append(f"{player.player_id} eliminated without placement")

    placements = [p.placement for p in state.players if p.placement is not None]
    if len(placements) != len(set(placements)):
        violations.append(f"duplicate placements: {placements}")
    if any(not 1 <= n <= state.num_players for n in placements):
        violations.append(f"placement out of range: {placements}")

    for seat_id in state.waiting_for_response_from:
        if not state.is_active(seat_id):
            violations.append(f"eliminated or unknown seat {seat_id} is awaited")

    phase = state.phase
    if isinstance(phase, GameOver):
        winner = state.get_player(phase.winner_id)
        if winner is None or winner.placement != 1 or len(state.active_players) != 1:
            violations.append("game over without a single placed winner")
    else:
        if state.current_player.eliminated:
            violations.append("eliminated seat is the current actor")
        if len(state.active_players) < 2:
            violations.append("game continues with fewer than two active seats")
        if isinstance(phase, InfluenceLoss) and not state.is_active(phase.seat_id):
            violations.append(f"eliminated seat {phase.seat_id} owes influence")

    return violations


def assert_invariants(state: GameState) -> GameState:
    """Raise InvariantError if the state is unsound; return it otherwise."""
    violations = check_invariants(state)
    if violations:
        raise InvariantError(violations)
    return state
