"""
Headless seeded match simulator.

Runs a full battle between heuristic bots that drive each Board through its
public input calls (rotate, move, hold, hard drop), one placement per player
per turn. Every lock is written to a CSV event log, so two runs with the
same seed and config produce identical logs.

Features:
  - Placement search over (hold?, rotation, column) on a scratch Grid
  - Round-robin turns across all living boards
  - CSV event log written from a background thread
  - Periodic status lines and a final standings table
"""

from __future__ import annotations

import csv
import pathlib
import queue as queue_mod
import threading
from typing import Any

from stackbattle.game.board import SPAWN_Y, Board, LockResult
from stackbattle.game.grid import Grid
from stackbattle.game.match import Match
from stackbattle.game.pieces import ActivePiece, PieceType

# Placement heuristic weights (aggregate height, lines, holes, bumpiness)
HEIGHT_WEIGHT = -0.51
LINES_WEIGHT = 0.76
HOLES_WEIGHT = -0.36
BUMPINESS_WEIGHT = -0.18


# ── Event log ────────────────────────────────────────────────────────────────

CSV_FIELDNAMES = [
    "turn",
    "player",
    "piece",
    "lines",
    "tspin",
    "tspin_mini",
    "combo",
    "back_to_back",
    "score",
    "sent",
    "cancelled",
    "received",
    "alive",
]


class MatchEventLog:
    """Per-lock CSV event log for one match.

    Rows are built on the caller's thread from the LockResult and handed to
    a writer thread that owns the file handle, so the match loop never
    blocks on disk. The header is written once when the file is opened;
    an existing log is overwritten.
    """

    def __init__(self, path: str | pathlib.Path) -> None:
        self.path = pathlib.Path(path)
        self.rows_written = 0
        self._rows: queue_mod.Queue[dict | None] = queue_mod.Queue()
        self._thread = threading.Thread(target=self._drain, daemon=True)
        self._thread.start()

    def _drain(self) -> None:
        try:
            with open(self.path, "w", newline="", encoding="utf-8") as f:
                writer = csv.DictWriter(f, fieldnames=CSV_FIELDNAMES)
                writer.writeheader()
                while (row := self._rows.get()) is not None:
                    writer.writerow(row)
                    self.rows_written += 1
        except OSError as e:
            print(f"Event log error ({self.path}): {e}", flush=True)

    def record(self, turn: int, player_id: Any, piece: str, board: Board, result: LockResult) -> None:
        """Queue one lock event."""
        self._rows.put_nowait({
            "turn": turn,
            "player": player_id,
            "piece": piece,
            "lines": result.lines_cleared,
            "tspin": int(result.is_tspin),
            "tspin_mini": int(result.is_tspin_mini),
            "combo": result.combo,
            "back_to_back": int(result.back_to_back),
            "score": board.scoring.score,
            "sent": result.garbage_sent,
            "cancelled": result.garbage_cancelled,
            "received": result.garbage_received,
            "alive": int(result.alive),
        })

    def close(self) -> None:
        """Flush queued rows and close the file."""
        self._rows.put(None)
        self._thread.join(timeout=5)


# ── Bot ──────────────────────────────────────────────────────────────────────

def _evaluate(grid: Grid, piece_type: PieceType, rotation: int, x: int) -> float | None:
    """Score a hard-drop placement on a scratch copy of the grid.

    Returns:
        Heuristic value, or None if the piece cannot be placed there.
    """
    piece = ActivePiece(piece_type, rotation=rotation, x=x, y=SPAWN_Y)
    if not grid.can_place(piece.cells()):
        return None
    while grid.can_place(piece.cells(x, piece.y + 1)):
        piece.y += 1
    scratch = grid.copy()
    scratch.merge(piece.cells(), piece.color_id)
    lines = scratch.clear_lines()
    return (
        HEIGHT_WEIGHT * scratch.get_aggregate_height()
        + LINES_WEIGHT * lines
        + HOLES_WEIGHT * scratch.get_holes()
        + BUMPINESS_WEIGHT * scratch.get_bumpiness()
    )


def choose_placement(board: Board) -> tuple[bool, int, int] | None:
    """Pick the best (use_hold, rotation, x) for the board's current piece.

    The held piece (or, with an empty hold slot, the next preview piece) is
    considered as well, unless hold was already used this turn.
    """
    if board.current_piece is None:
        return None
    candidates = [(False, board.current_piece.piece_type)]
    if not board.hold_used:
        alt = board.hold_piece if board.hold_piece is not None else board.get_next_preview()[0]
        candidates.append((True, alt))

    best: tuple[float, tuple[bool, int, int]] | None = None
    for use_hold, piece_type in candidates:
        for rotation in range(4):
            if piece_type == PieceType.O and rotation > 0:
                break
            for x in range(-2, board.grid.width):
                value = _evaluate(board.grid, piece_type, rotation, x)
                if value is None:
                    continue
                if best is None or value > best[0]:
                    best = (value, (use_hold, rotation, x))
    return best[1] if best is not None else None


def play_placement(board: Board, placement: tuple[bool, int, int] | None) -> LockResult | None:
    """Drive the board's input calls to realize a placement, then hard drop."""
    if placement is not None:
        use_hold, rotation, target_x = placement
        if use_hold:
            board.hold()
        for _ in range(rotation):
            if not board.rotate_cw():
                break
        piece = board.current_piece
        while piece is not None and piece.x > target_x and board.move_left():
            pass
        while piece is not None and piece.x < target_x and board.move_right():
            pass
    return board.hard_drop()


# ── Simulation ───────────────────────────────────────────────────────────────

def simulate(config: dict[str, Any], log_path: str | pathlib.Path | None = None) -> Match:
    """Run one headless match to completion (or to max_pieces per player).

    Args:
        config: Config dict (players, seed, max_pieces, board keys).
        log_path: Where to write the CSV event log; None disables it.

    Returns:
        The finished Match.
    """
    match = Match.from_config(config)
    max_pieces = config.get("max_pieces", 500)
    status_every = config.get("status_every", 50)
    print(f"Match seed: {match.seed} | Players: {', '.join(map(str, match.boards))}")

    event_log = None
    if log_path is not None:
        log_path = pathlib.Path(log_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        event_log = MatchEventLog(log_path)
        print(f"CSV log: {log_path}")

    match.start()
    turn = 0
    try:
        while not match.is_over() and turn < max_pieces:
            for player_id, board in list(match.boards.items()):
                if not board.alive or board.current_piece is None:
                    continue
                piece_name = board.current_piece.piece_type.name
                result = play_placement(board, choose_placement(board))
                if result is not None and event_log is not None:
                    event_log.record(turn, player_id, piece_name, board, result)
                if match.is_over():
                    break
            turn += 1
            if turn % status_every == 0:
                print(
                    f"Turn {turn} | "
                    + " | ".join(
                        f"{pid}: {b.scoring.score} pts, {b.scoring.lines} lines"
                        + ("" if b.alive else " (out)")
                        for pid, b in match.boards.items()
                    )
                )
    finally:
        if event_log is not None:
            event_log.close()

    _print_standings(match, turn)
    return match


def _print_standings(match: Match, turns: int) -> None:
    print("=" * 60)
    print(f"MATCH OVER after {turns} turns" if match.is_over() else f"STOPPED after {turns} turns")
    print("=" * 60)
    print(f"{'Player':<12} {'Score':>8} {'Lines':>6} {'Level':>6} {'Alive':>6}")
    print("-" * 60)
    for pid, board in match.boards.items():
        state = board.scoring.get_state()
        print(
            f"{str(pid):<12} {state['score']:>8} {state['lines']:>6} "
            f"{state['level']:>6} {str(board.alive):>6}"
        )
    winner = match.winner()
    if winner is not None:
        print(f"\nWinner: {winner}")
