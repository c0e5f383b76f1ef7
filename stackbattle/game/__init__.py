"""Game rules: pieces, randomizer, scoring, boards, garbage, and matches."""

from stackbattle.game.pieces import PieceType, PIECES, KICK_TABLE_JLSTZ, KICK_TABLE_I, ActivePiece
from stackbattle.game.randomizer import Randomizer
from stackbattle.game.scoring import ScoringEngine
from stackbattle.game.grid import Grid
from stackbattle.game.board import Board, LockResult
from stackbattle.game.garbage import GarbageCoordinator, GarbageEntry
from stackbattle.game.match import Match

__all__ = [
    "PieceType",
    "PIECES",
    "KICK_TABLE_JLSTZ",
    "KICK_TABLE_I",
    "ActivePiece",
    "Randomizer",
    "ScoringEngine",
    "Grid",
    "Board",
    "LockResult",
    "GarbageCoordinator",
    "GarbageEntry",
    "Match",
]
