import random
from typing import List

from kuzgun.models import Card, CARD_COUNTS


def canonical_deck() -> List[Card]:
    """The unshuffled deck: every kind repeated by its fixed count, in kind order."""
    deck = []
    for kind, count in CARD_COUNTS.items():
        deck.extend([kind] * count)
    return deck


def build_deck(rng=None) -> List[Card]:
    """Build a fresh 64-card deck and shuffle it in place.

    ``random.shuffle`` is a backward Fisher-Yates pass, so every ordering is
    equally likely given an unbiased source.
    """
    deck = canonical_deck()
    (rng or random).shuffle(deck)
    return deck
