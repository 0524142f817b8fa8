"""
Cards - Role cards and the court deck.

The card universe is fixed: three copies of each of the five roles.
Cards only ever move between the court deck and player hands, so the
deck can never legitimately run dry.

All deck operations return new tuples; nothing is mutated in place.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from enum import Enum
import random
import uuid


COPIES_PER_ROLE = 3


class Role(Enum):
    """Character roles printed on the cards."""
    DUKE = "Duke"
    ASSASSIN = "Assassin"
    CAPTAIN = "Captain"
    AMBASSADOR = "Ambassador"
    CONTESSA = "Contessa"


DECK_SIZE = COPIES_PER_ROLE * len(Role)


class DeckExhaustedError(RuntimeError):
    """Raised when drawing from an empty deck. Never happens in a valid game."""


def new_card_id() -> str:
    """Fresh opaque card identity."""
    return uuid.uuid4().hex[:12]


@dataclass(frozen=True)
class Card:
    """
    A single role card.

    The id is opaque and is reissued every time the card enters a hand,
    so revealed history cannot be correlated with later draws.
    """
    card_id: str
    role: Role
    revealed: bool = False

    @property
    def hidden(self) -> bool:
        return not self.revealed

    def reveal(self) -> Card:
        """Return the face-up version of this card."""
        return replace(self, revealed=True)

    def reissued(self) -> Card:
        """Return a hidden copy with a new identity."""
        return Card(card_id=new_card_id(), role=self.role, revealed=False)


def _rng(rng: random.Random | None) -> random.Random:
    return rng if rng is not None else random.Random()


def build_deck(rng: random.Random | None = None) -> tuple[Card, ...]:
    """Create the full court deck, uniformly shuffled."""
    cards = [
        Card(card_id=new_card_id(), role=role)
        for role in Role
        for _ in range(COPIES_PER_ROLE)
    ]
    _rng(rng).shuffle(cards)
    return tuple(cards)


def draw(deck: tuple[Card, ...]) -> tuple[Card, tuple[Card, ...]]:
    """
    Remove the top card of the deck.

    Returns (card, remaining deck). The drawn card gets a new identity.
    """
    if not deck:
        raise DeckExhaustedError("Court deck is empty")
    return deck[-1].reissued(), deck[:-1]


def return_and_reshuffle(
    deck: tuple[Card, ...],
    card: Card,
    rng: random.Random | None = None,
) -> tuple[Card, ...]:
    """Put a card back into the deck face down and reshuffle the whole deck."""
    cards = list(deck)
    cards.append(Card(card_id=card.card_id, role=card.role, revealed=False))
    _rng(rng).shuffle(cards)
    return tuple(cards)
