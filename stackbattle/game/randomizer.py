"""7-bag piece randomizer."""

from __future__ import annotations

import random

from stackbattle.game.pieces import PIECE_TYPES, PieceType


class Randomizer:
    """Deals pieces from a shuffled bag holding one of each of the 7 types.

    The bag is refilled only once it is completely empty, so every run of 7
    draws starting at a bag boundary contains each type exactly once.

    Attributes:
        bag: Remaining pieces of the current bag; the next draw is the last
            element.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        """Initialize an empty bag.

        Args:
            rng: Random source used for shuffling. Pass a seeded instance
                for reproducible sequences.
        """
        self._rng = rng if rng is not None else random.Random()
        self.bag: list[PieceType] = []

    def _fill_bag(self) -> None:
        bag = list(PIECE_TYPES)
        self._rng.shuffle(bag)
        self.bag = bag

    def next(self) -> PieceType:
        """Pop the next piece type, refilling the bag if it is empty."""
        if not self.bag:
            self._fill_bag()
        return self.bag.pop()
