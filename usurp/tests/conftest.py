"""
Pytest fixtures for Usurp tests.
"""

from collections import Counter
import random

import pytest

from ..engine_core.cards import Card, Role, COPIES_PER_ROLE
from ..engine_core.state import GameState, Player, TurnStart, new_game
from ..engine_core.reducer import Reducer


def build_state(
    hands: dict[str, list[Role]],
    coins: dict[str, int] | None = None,
    current: str = "p1",
    phase=None,
    revealed: dict[str, list[int]] | None = None,
    placements: dict[str, int] | None = None,
) -> GameState:
    """
    Hand-built state with known hands.

    Seats appear in the order of `hands`; card ids are "<seat>-<slot>".
    The deck holds every remaining card, so card conservation holds.
    """
    coins = coins or {}
    revealed = revealed or {}
    placements = placements or {}
    pool = Counter({role: COPIES_PER_ROLE for role in Role})

    players = []
    for seat, roles in hands.items():
        cards = []
        for i, role in enumerate(roles):
            pool[role] -= 1
            cards.append(Card(card_id=f"{seat}-{i}", role=role, revealed=i in revealed.get(seat, ())))
        out = all(c.revealed for c in cards)
        players.append(Player(
            player_id=seat,
            name=seat.upper(),
            is_automated=seat != "p1",
            coins=coins.get(seat, 2),
            cards=tuple(cards),
            eliminated=out,
            placement=placements.get(seat),
        ))

    deck = []
    for role in Role:
        deck.extend(Card(card_id=f"deck-{role.name.lower()}-{n}", role=role) for n in range(pool[role]))

    seat_ids = list(hands)
    return GameState(
        game_id="test_game",
        players=tuple(players),
        current_index=seat_ids.index(current),
        phase=phase or TurnStart(),
        deck=tuple(deck),
    )


@pytest.fixture
def make_state():
    """Factory for hand-built states."""
    return build_state


@pytest.fixture
def reducer() -> Reducer:
    """Reducer with a fixed shuffle seed."""
    return Reducer(rng=random.Random(1234))


@pytest.fixture
def three_player_state() -> GameState:
    """
    P1: Duke, Captain
    P2: Contessa, Assassin
    P3: Ambassador, Ambassador

    Everyone on 2 coins, P1 to act.
    """
    return build_state({
        "p1": [Role.DUKE, Role.CAPTAIN],
        "p2": [Role.CONTESSA, Role.ASSASSIN],
        "p3": [Role.AMBASSADOR, Role.AMBASSADOR],
    })


@pytest.fixture
def dealt_game() -> GameState:
    """A freshly dealt, seeded 3-seat game."""
    return new_game(
        [("p1", "Alice", False), ("p2", "Bob", True), ("p3", "Carol", True)],
        rng=random.Random(42),
        game_id="dealt",
    )
