import random

import numpy as np
import pytest

from stackbattle.game.board import Board
from stackbattle.game.garbage import (
    COMBO_GARBAGE,
    GarbageCoordinator,
    GarbageEntry,
    calculate_garbage,
)
from stackbattle.game.pieces import GARBAGE_CELL, ActivePiece, PieceType


def make_coordinator(*player_ids, seed=0):
    coordinator = GarbageCoordinator(rng=random.Random(seed))
    for player_id in player_ids:
        coordinator.add_player(player_id)
    return coordinator


def tetris_ready(board):
    """Four nearly-full rows and a vertical I piece above the open column."""
    board.grid.cells[20:24, :] = 3
    board.grid.cells[20:24, 0] = 0
    board.current_piece = ActivePiece(PieceType.I, rotation=1, x=-2, y=5)


# ── Attack strength ──────────────────────────────────────────────────────────

@pytest.mark.parametrize("lines, expected", [(1, 0), (2, 1), (3, 2), (4, 4)])
def test_garbage_per_clear(lines, expected):
    coordinator = make_coordinator("p1", "p2")
    assert coordinator.process_line_clear("p1", lines, False, -1, False).sent == expected


@pytest.mark.parametrize("lines, expected", [(1, 0), (2, 2), (3, 4), (4, 8)])
def test_tspin_doubles_garbage(lines, expected):
    coordinator = make_coordinator("p1", "p2")
    assert coordinator.process_line_clear("p1", lines, True, -1, False).sent == expected


def test_combo_and_back_to_back_bonuses():
    assert calculate_garbage(2, False, 2, False) == 1 + COMBO_GARBAGE[2]
    assert calculate_garbage(4, False, -1, True) == 5
    assert calculate_garbage(2, True, -1, True) == 3
    # back-to-back only counts for tetrises and T-spins
    assert calculate_garbage(3, False, -1, True) == 2
    assert calculate_garbage(4, False, 50, False) == 4 + COMBO_GARBAGE[-1]


def test_zero_lines_is_zero_result():
    coordinator = make_coordinator("p1", "p2")
    result = coordinator.process_line_clear("p1", 0, True, 3, True)
    assert (result.sent, result.cancelled, result.deliveries) == (0, 0, [])


# ── Cancellation ─────────────────────────────────────────────────────────────

def test_tetris_with_empty_queue_hits_every_opponent():
    coordinator = make_coordinator("p1", "p2", "p3")
    result = coordinator.process_line_clear("p1", 4, False, -1, False)
    assert result.sent == 4
    assert result.cancelled == 0
    assert {d.to_id for d in result.deliveries} == {"p2", "p3"}
    assert len({d.gap_column for d in result.deliveries}) == 1
    assert coordinator.queues["p1"] == []
    for victim in ("p2", "p3"):
        (entry,) = coordinator.queues[victim]
        assert entry.lines == 4
        assert entry.sender_id == "p1"
        assert 0 <= entry.gap_column < 10


def test_full_cancellation_sends_nothing():
    coordinator = make_coordinator("p1", "p2")
    coordinator.queues["p1"].append(GarbageEntry(4, 0, "p2"))
    result = coordinator.process_line_clear("p1", 4, False, -1, False)
    assert result.cancelled == 4
    assert result.sent == 0
    assert coordinator.queues["p1"] == []
    assert coordinator.queues["p2"] == []


def test_partial_cancellation_sends_remainder():
    coordinator = make_coordinator("p1", "p2")
    coordinator.queues["p1"].append(GarbageEntry(2, 0, "p2"))
    result = coordinator.process_line_clear("p1", 4, False, -1, False)
    assert result.cancelled == 2
    assert result.sent == 2
    assert coordinator.queues["p1"] == []
    assert coordinator.queues["p2"][0].lines == 2


def test_front_entry_is_reduced_not_removed():
    coordinator = make_coordinator("p1", "p2")
    coordinator.queues["p1"].append(GarbageEntry(6, 3, "p2"))
    result = coordinator.process_line_clear("p1", 2, False, -1, False)
    assert result.cancelled == 1
    assert [e.lines for e in coordinator.queues["p1"]] == [5]


def test_cancellation_consumes_oldest_first():
    coordinator = make_coordinator("p1", "p2", "p3")
    coordinator.queues["p1"].extend([GarbageEntry(3, 1, "p2"), GarbageEntry(2, 5, "p3")])
    result = coordinator.process_line_clear("p1", 4, False, -1, False)
    assert result.cancelled == 4
    assert result.sent == 0
    (left,) = coordinator.queues["p1"]
    assert (left.lines, left.sender_id) == (1, "p3")


# ── Queues ───────────────────────────────────────────────────────────────────

def test_get_incoming_garbage_drains_atomically():
    coordinator = make_coordinator("p1", "p2")
    coordinator.process_line_clear("p1", 4, False, -1, False)
    assert coordinator.pending_lines("p2") == 4
    incoming = coordinator.get_incoming_garbage("p2")
    assert [e.lines for e in incoming] == [4]
    assert coordinator.get_incoming_garbage("p2") == []
    assert coordinator.pending_lines("p2") == 0


def test_unknown_players_are_no_ops():
    coordinator = make_coordinator("p1", "p2")
    assert coordinator.get_incoming_garbage("ghost") == []
    assert coordinator.pending_lines("ghost") == 0
    coordinator.remove_player("ghost")
    result = coordinator.process_line_clear("ghost", 4, False, -1, False)
    assert result.sent == 0
    assert coordinator.queues == {"p1": [], "p2": []}


def test_player_lifecycle():
    coordinator = GarbageCoordinator()
    coordinator.add_player("a")
    assert coordinator.players() == ["a"]
    coordinator.remove_player("a")
    assert coordinator.players() == []


def test_gap_column_is_seeded():
    first = make_coordinator("p1", "p2", seed=11)
    second = make_coordinator("p1", "p2", seed=11)
    for _ in range(5):
        a = first.process_line_clear("p1", 4, False, -1, False)
        b = second.process_line_clear("p1", 4, False, -1, False)
        assert a.deliveries[0].gap_column == b.deliveries[0].gap_column


# ── Boards wired to a coordinator ────────────────────────────────────────────

def make_pair(seed=0):
    coordinator = make_coordinator("p1", "p2", seed=seed)
    p1 = Board("p1", coordinator=coordinator, rng=random.Random(seed))
    p2 = Board("p2", coordinator=coordinator, rng=random.Random(seed + 1))
    return coordinator, p1, p2


def test_tetris_lock_attacks_opponent_who_materializes_rows():
    coordinator, p1, p2 = make_pair()
    tetris_ready(p1)
    result = p1.hard_drop()
    assert result.lines_cleared == 4
    assert result.garbage_sent == 4
    assert coordinator.pending_lines("p2") == 4
    assert p2.get_state()["pending_garbage"] == 4

    p2.spawn_piece()
    received = p2.hard_drop()
    assert received.garbage_received == 4
    assert received.alive is True
    assert coordinator.queues["p2"] == []
    bottom = p2.grid.cells[20:24]
    assert np.all((bottom == GARBAGE_CELL).sum(axis=1) == 9)
    gaps = {int(np.flatnonzero(row == 0)[0]) for row in bottom}
    assert len(gaps) == 1
    # the piece p2 dropped now sits above the garbage
    assert np.any(p2.grid.cells[:20] != 0)


def test_clear_cancels_own_incoming_garbage():
    coordinator, p1, p2 = make_pair()
    coordinator.queues["p1"].append(GarbageEntry(2, 0, "p2"))
    tetris_ready(p1)
    result = p1.hard_drop()
    assert result.garbage_cancelled == 2
    assert result.garbage_sent == 2
    assert result.garbage_received == 0
    assert coordinator.pending_lines("p2") == 2


def test_garbage_overflow_kills_board():
    coordinator, p1, p2 = make_pair()
    coordinator.queues["p2"].append(GarbageEntry(1, 0, "p1"))
    p2.grid.cells[4, 9] = 1
    p2.spawn_piece()
    result = p2.hard_drop()
    assert result.alive is False
    assert p2.alive is False
    assert p2.current_piece is None
    assert p2.spawn_piece() is False


def test_garbage_under_a_stack_already_in_buffer_is_survivable():
    coordinator, p1, p2 = make_pair()
    coordinator.queues["p2"].append(GarbageEntry(1, 0, "p1"))
    p2.grid.cells[2, 9] = 1
    p2.spawn_piece()
    result = p2.hard_drop()
    assert result.garbage_received == 1
    assert result.alive is True
    assert p2.grid.cells[1, 9] == 1
    assert p2.current_piece is not None


def test_single_clear_sends_nothing_through_board():
    coordinator, p1, p2 = make_pair()
    p1.grid.cells[23, :] = 3
    p1.grid.cells[23, 0] = 0
    p1.current_piece = ActivePiece(PieceType.I, rotation=1, x=-2, y=5)
    result = p1.hard_drop()
    assert result.lines_cleared == 1
    assert result.garbage_sent == 0
    assert coordinator.pending_lines("p2") == 0
