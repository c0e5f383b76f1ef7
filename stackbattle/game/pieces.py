"""
Tetromino catalog: rotation states, SRS kick tables, and the active piece.

All piece data follows the Super Rotation System (SRS). Each piece has 4
rotation states (0=spawn, 1=CW, 2=180, 3=CCW) and wall-kick offset data.

Coordinate convention:
  - Rotation states are stored as tuples of (col, row) offsets relative to
    the piece anchor (top-left corner of the piece's bounding box).
  - On the board, row 0 is the top and row increases downward.
  - Column 0 is the left edge and column increases rightward.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterator


class PieceType(enum.IntEnum):
    """The 7 tetrominoes. Values double as the cell color id on the grid."""
    I = 1
    J = 2
    L = 3
    O = 4
    S = 5
    T = 6
    Z = 7


# Cell value used for garbage rows.
GARBAGE_CELL = 8

Blocks = tuple[tuple[int, int], ...]

# =============================================================================
# Tetromino Definitions
# =============================================================================
# Rotation order: [0=spawn, 1=CW (R), 2=180 (2), 3=CCW (L)]

PIECES: dict[PieceType, list[Blocks]] = {
    PieceType.I: [
        ((0, 1), (1, 1), (2, 1), (3, 1)),
        ((2, 0), (2, 1), (2, 2), (2, 3)),
        ((0, 2), (1, 2), (2, 2), (3, 2)),
        ((1, 0), (1, 1), (1, 2), (1, 3)),
    ],
    PieceType.J: [
        ((0, 0), (0, 1), (1, 1), (2, 1)),
        ((1, 0), (2, 0), (1, 1), (1, 2)),
        ((0, 1), (1, 1), (2, 1), (2, 2)),
        ((1, 0), (1, 1), (0, 2), (1, 2)),
    ],
    PieceType.L: [
        ((2, 0), (0, 1), (1, 1), (2, 1)),
        ((1, 0), (1, 1), (1, 2), (2, 2)),
        ((0, 1), (1, 1), (2, 1), (0, 2)),
        ((0, 0), (1, 0), (1, 1), (1, 2)),
    ],
    # Single shape, offset one column so it spawns centered
    PieceType.O: [((1, 0), (2, 0), (1, 1), (2, 1))] * 4,
    PieceType.S: [
        ((1, 0), (2, 0), (0, 1), (1, 1)),
        ((1, 0), (1, 1), (2, 1), (2, 2)),
        ((1, 1), (2, 1), (0, 2), (1, 2)),
        ((0, 0), (0, 1), (1, 1), (1, 2)),
    ],
    PieceType.T: [
        ((1, 0), (0, 1), (1, 1), (2, 1)),
        ((1, 0), (1, 1), (2, 1), (1, 2)),
        ((0, 1), (1, 1), (2, 1), (1, 2)),
        ((1, 0), (0, 1), (1, 1), (1, 2)),
    ],
    PieceType.Z: [
        ((0, 0), (1, 0), (1, 1), (2, 1)),
        ((2, 0), (1, 1), (2, 1), (1, 2)),
        ((0, 1), (1, 1), (1, 2), (2, 2)),
        ((1, 0), (0, 1), (1, 1), (0, 2)),
    ],
}

PIECE_TYPES: list[PieceType] = list(PieceType)

# Pivot of the T piece inside its 3x3 box; the T-spin corner probe is
# centered here.
T_PIVOT: tuple[int, int] = (1, 1)

# Diagonal corners around the T pivot as (dx, dy), split into the two
# "front" corners (the side the nub points at) and the two "back" corners,
# per rotation state.
T_FRONT_CORNERS: dict[int, tuple[tuple[int, int], tuple[int, int]]] = {
    0: ((-1, -1), (1, -1)),
    1: ((1, -1), (1, 1)),
    2: ((-1, 1), (1, 1)),
    3: ((-1, -1), (-1, 1)),
}
T_BACK_CORNERS: dict[int, tuple[tuple[int, int], tuple[int, int]]] = {
    0: ((-1, 1), (1, 1)),
    1: ((-1, -1), (-1, 1)),
    2: ((-1, -1), (1, -1)),
    3: ((1, -1), (1, 1)),
}

# =============================================================================
# SRS Wall-Kick Offset Data
# =============================================================================
#
# Offsets are (dx, dy): dx is the column offset (positive = right) and dy is
# the row offset with positive = UP, i.e. SUBTRACTED from the row index.
# The first entry of every list is (0, 0), the unkicked rotation.
#
# Key format: KICK_TABLE[from_rotation][to_rotation] = list of (dx, dy).
# Source: https://tetris.wiki/Super_Rotation_System
# =============================================================================

KICK_TABLE_JLSTZ: dict[int, dict[int, list[tuple[int, int]]]] = {
    0: {
        1: [( 0, 0), (-1, 0), (-1,  1), ( 0, -2), (-1, -2)],
        3: [( 0, 0), ( 1, 0), ( 1,  1), ( 0, -2), ( 1, -2)],
    },
    1: {
        2: [( 0, 0), ( 1, 0), ( 1, -1), ( 0,  2), ( 1,  2)],
        0: [( 0, 0), ( 1, 0), ( 1, -1), ( 0,  2), ( 1,  2)],
    },
    2: {
        3: [( 0, 0), ( 1, 0), ( 1,  1), ( 0, -2), ( 1, -2)],
        1: [( 0, 0), (-1, 0), (-1,  1), ( 0, -2), (-1, -2)],
    },
    3: {
        0: [( 0, 0), (-1, 0), (-1, -1), ( 0,  2), (-1,  2)],
        2: [( 0, 0), (-1, 0), (-1, -1), ( 0,  2), (-1,  2)],
    },
}

KICK_TABLE_I: dict[int, dict[int, list[tuple[int, int]]]] = {
    0: {
        1: [( 0, 0), (-2, 0), ( 1, 0), (-2, -1), ( 1,  2)],
        3: [( 0, 0), (-1, 0), ( 2, 0), (-1,  2), ( 2, -1)],
    },
    1: {
        2: [( 0, 0), (-1, 0), ( 2, 0), (-1,  2), ( 2, -1)],
        0: [( 0, 0), ( 2, 0), (-1, 0), ( 2,  1), (-1, -2)],
    },
    2: {
        3: [( 0, 0), ( 2, 0), (-1, 0), ( 2,  1), (-1, -2)],
        1: [( 0, 0), ( 1, 0), (-2, 0), ( 1, -2), (-2,  1)],
    },
    3: {
        0: [( 0, 0), ( 1, 0), (-2, 0), ( 1, -2), (-2,  1)],
        2: [( 0, 0), (-2, 0), ( 1, 0), (-2, -1), ( 1,  2)],
    },
}


def get_kick_offsets(piece_type: PieceType, from_rot: int, to_rot: int) -> list[tuple[int, int]]:
    """Return the list of SRS kick offsets for a rotation transition.

    Args:
        piece_type: Type of the rotating piece.
        from_rot: Current rotation state (0-3).
        to_rot: Target rotation state (0-3).

    Returns:
        List of (dx, dy) kick offsets to try in order. Empty for the O
        piece, which never rotates.
    """
    if piece_type == PieceType.O:
        return []
    if piece_type == PieceType.I:
        return KICK_TABLE_I[from_rot][to_rot]
    return KICK_TABLE_JLSTZ[from_rot][to_rot]


@dataclass
class ActivePiece:
    """The falling piece: type, rotation state, and anchor position."""

    piece_type: PieceType
    rotation: int = 0
    x: int = 0
    y: int = 0

    @property
    def color_id(self) -> int:
        return int(self.piece_type)

    def blocks(self, rotation: int | None = None) -> Blocks:
        rot = self.rotation if rotation is None else rotation
        return PIECES[self.piece_type][rot]

    def cells(
        self,
        x: int | None = None,
        y: int | None = None,
        rotation: int | None = None,
    ) -> Iterator[tuple[int, int]]:
        """Yield absolute (col, row) cells, optionally at a trial placement."""
        ax = self.x if x is None else x
        ay = self.y if y is None else y
        for col, row in self.blocks(rotation):
            yield col + ax, row + ay

    def to_dict(self) -> dict:
        return {
            "type": self.piece_type.name,
            "rotation": self.rotation,
            "x": self.x,
            "y": self.y,
            "cells": list(self.cells()),
        }
