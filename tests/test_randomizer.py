import random

import pytest

from stackbattle.game.pieces import PieceType
from stackbattle.game.randomizer import Randomizer


@pytest.mark.parametrize("seed", [0, 1, 42, 2024])
def test_every_bag_of_seven_holds_each_type_once(seed):
    randomizer = Randomizer(random.Random(seed))
    for _ in range(10):
        bag = [randomizer.next() for _ in range(7)]
        assert sorted(bag) == sorted(PieceType)


def test_bag_empties_before_refill():
    randomizer = Randomizer(random.Random(3))
    for _ in range(3):
        randomizer.next()
    assert len(randomizer.bag) == 4
    for _ in range(4):
        randomizer.next()
    assert randomizer.bag == []
    randomizer.next()
    assert len(randomizer.bag) == 6


def test_same_seed_same_sequence():
    a = Randomizer(random.Random(99))
    b = Randomizer(random.Random(99))
    assert [a.next() for _ in range(50)] == [b.next() for _ in range(50)]


def test_repeat_distance_is_bounded():
    randomizer = Randomizer(random.Random(7))
    last_seen: dict[PieceType, int] = {}
    for i in range(700):
        piece = randomizer.next()
        if piece in last_seen:
            assert i - last_seen[piece] <= 13
        last_seen[piece] = i
