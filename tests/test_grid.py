import numpy as np

from stackbattle.game.grid import Grid
from stackbattle.game.pieces import GARBAGE_CELL


def test_default_dimensions():
    grid = Grid()
    assert grid.cells.shape == (24, 10)
    assert grid.buffer_rows == 4


def test_can_place_rejects_out_of_bounds_and_overlap():
    grid = Grid()
    grid.cells[23, 0] = 1
    assert grid.can_place([(0, 22), (1, 23)])
    assert not grid.can_place([(0, 23)])
    assert not grid.can_place([(-1, 5)])
    assert not grid.can_place([(10, 5)])
    assert not grid.can_place([(5, 24)])
    assert not grid.can_place([(5, -1)])


def test_is_occupied_treats_outside_as_filled():
    grid = Grid()
    assert grid.is_occupied(-1, 0)
    assert grid.is_occupied(0, 24)
    assert not grid.is_occupied(0, 0)


def test_clear_lines_shifts_rows_down_and_keeps_height():
    grid = Grid()
    grid.cells[23, :] = 1
    grid.cells[22, :3] = 2
    grid.cells[21, :] = 3
    grid.cells[20, 5] = 4

    assert grid.clear_lines() == 2

    assert grid.cells.shape == (24, 10)
    assert list(grid.cells[23]) == [2, 2, 2, 0, 0, 0, 0, 0, 0, 0]
    assert grid.cells[22, 5] == 4
    assert not np.any(grid.cells[:22])
    assert not np.any(np.all(grid.cells != 0, axis=1))


def test_clear_lines_with_nothing_full():
    grid = Grid()
    grid.cells[23, :9] = 1
    assert grid.clear_lines() == 0
    assert grid.cells[23, 0] == 1


def test_add_garbage_pushes_rows_up():
    grid = Grid()
    grid.cells[23, 0] = 5
    assert grid.add_garbage(2, gap_column=7) is True
    assert grid.cells[21, 0] == 5
    for row in (22, 23):
        assert grid.cells[row, 7] == 0
        assert int((grid.cells[row] == GARBAGE_CELL).sum()) == 9


def test_add_garbage_into_buffer_is_overflow():
    grid = Grid()
    grid.cells[4, 3] = 1
    assert grid.add_garbage(1, gap_column=0) is False
    assert grid.cells[3, 3] == 1


def test_add_garbage_leaves_cells_already_in_buffer_alone():
    grid = Grid()
    grid.cells[3, 3] = 1
    assert grid.add_garbage(1, gap_column=0) is True
    assert grid.cells[2, 3] == 1


def test_add_garbage_several_rows_crossing_into_buffer():
    grid = Grid()
    grid.cells[6, 5] = 1
    assert grid.add_garbage(2, gap_column=0) is True
    grid.cells[:] = 0
    grid.cells[6, 5] = 1
    assert grid.add_garbage(3, gap_column=0) is False
    assert grid.cells[3, 5] == 1


def test_add_garbage_pushing_cells_off_the_top_is_overflow():
    grid = Grid()
    grid.cells[0, 0] = 1
    assert grid.add_garbage(1, gap_column=0) is False
    assert grid.cells.shape == (24, 10)


def test_board_metrics():
    grid = Grid()
    grid.cells[23, 0] = 1
    grid.cells[21, 0] = 1
    grid.cells[23, 1] = 1
    assert list(grid.get_column_heights()[:3]) == [3, 1, 0]
    assert grid.get_holes() == 1
    assert grid.get_aggregate_height() == 4
    assert grid.get_bumpiness() == 2 + 1


def test_copy_is_independent():
    grid = Grid()
    clone = grid.copy()
    clone.cells[0, 0] = 1
    assert grid.cells[0, 0] == 0
    assert clone.height == grid.height
