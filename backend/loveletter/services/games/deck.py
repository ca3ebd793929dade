import random
from typing import List, Optional

from .cards import Card, CardKind

# Copies of each kind in the 16-card deck
DECK_COMPOSITION = (
    (CardKind.GUARD, 5),
    (CardKind.PRIEST, 2),
    (CardKind.BARON, 2),
    (CardKind.HANDMAID, 2),
    (CardKind.PRINCE, 2),
    (CardKind.KING, 1),
    (CardKind.COUNTESS, 1),
    (CardKind.PRINCESS, 1),
)

DECK_SIZE = sum(count for _, count in DECK_COMPOSITION)


def full_deck() -> List[Card]:
    """The unshuffled 16-card multiset, lowest value first."""
    return [Card(kind) for kind, count in DECK_COMPOSITION for _ in range(count)]


def create_deck(rng: Optional[random.Random] = None) -> List[Card]:
    """Build a freshly shuffled deck.

    ``random.shuffle`` is a Fisher-Yates shuffle, so every permutation is
    equally likely. Pass ``rng`` for a reproducible order.
    """
    cards = full_deck()
    (rng or random).shuffle(cards)
    return cards
