"""
Per-player board — movement, SRS rotation, hold, locking, and garbage.

This module ties together the Grid, the piece catalog, the 7-bag
Randomizer, and the ScoringEngine into one player's side of a battle. On
every lock the board clears lines, scores them, reports the attack to the
match's GarbageCoordinator, and materializes whatever garbage is waiting
for it before spawning the next piece.

Rule violations (blocked moves, double hold, acting without a piece) are
reported through False / None returns. A spawn collision is terminal: the
board stays dead and every further piece action is a no-op.
"""

from __future__ import annotations

import random
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Hashable

from stackbattle.game.grid import Grid
from stackbattle.game.pieces import (
    T_BACK_CORNERS,
    T_FRONT_CORNERS,
    T_PIVOT,
    ActivePiece,
    PieceType,
    get_kick_offsets,
)
from stackbattle.game.randomizer import Randomizer
from stackbattle.game.scoring import ScoringEngine

if TYPE_CHECKING:
    from stackbattle.game.garbage import GarbageCoordinator, GarbageDelivery, GarbageResult

# Anchor (x, y) of every freshly spawned piece: centered, top of the buffer
SPAWN_X = 3
SPAWN_Y = 0

DEFAULT_PREVIEW_COUNT = 5


@dataclass
class LockResult:
    """Outcome of locking the active piece."""

    lines_cleared: int
    is_tspin: bool
    is_tspin_mini: bool
    combo: int
    back_to_back: bool
    alive: bool
    score_delta: int = 0
    garbage_sent: int = 0
    garbage_cancelled: int = 0
    garbage_received: int = 0
    deliveries: list[GarbageDelivery] = field(default_factory=list)


class Board:
    """One player's playfield with SRS rotation, hold, scoring, and garbage.

    Attributes:
        player_id: Id used when talking to the GarbageCoordinator.
        grid: The player's Grid.
        scoring: The player's ScoringEngine.
        randomizer: The player's 7-bag Randomizer.
        current_piece: Active piece, or None between lock and spawn.
        hold_piece: Held piece type, or None.
        hold_used: Whether hold was used since the last spawn.
        alive: False once the board has topped out.
        last_move_was_rotation: Whether the last successful positioning
            change of the active piece was a rotation.
    """

    def __init__(
        self,
        player_id: Hashable = "player",
        coordinator: GarbageCoordinator | None = None,
        rng: random.Random | None = None,
        config: dict[str, Any] | None = None,
    ) -> None:
        """Initialize an empty board.

        Args:
            player_id: This player's id in the match.
            coordinator: Match-wide garbage coordinator. Without one the
                board plays solo and never sends or receives garbage.
            rng: Random source for the piece sequence.
            config: Optional config dict (board_width, visible_height,
                buffer_rows, preview_count).
        """
        config = config or {}
        self.player_id = player_id
        self.coordinator = coordinator
        self.grid = Grid(
            width=config.get("board_width", 10),
            visible_height=config.get("visible_height", 20),
            buffer_rows=config.get("buffer_rows", 4),
        )
        self.scoring = ScoringEngine()
        self.randomizer = Randomizer(rng)
        self.preview_count: int = max(1, config.get("preview_count", DEFAULT_PREVIEW_COUNT))

        self.current_piece: ActivePiece | None = None
        self.hold_piece: PieceType | None = None
        self.hold_used: bool = False
        self.alive: bool = True
        self.last_move_was_rotation: bool = False
        self._next_queue: deque[PieceType] = deque()

    # ── Spawning ──────────────────────────────────────────────────────────

    def _next_type(self) -> PieceType:
        while len(self._next_queue) <= self.preview_count:
            self._next_queue.append(self.randomizer.next())
        return self._next_queue.popleft()

    def _place_at_spawn(self, piece_type: PieceType) -> bool:
        piece = ActivePiece(piece_type, rotation=0, x=SPAWN_X, y=SPAWN_Y)
        self.last_move_was_rotation = False
        if not self.grid.can_place(piece.cells()):
            self.current_piece = None
            self.alive = False
            return False
        self.current_piece = piece
        return True

    def spawn_piece(self) -> bool:
        """Spawn the next piece at the spawn anchor.

        Returns:
            True if the piece was placed, False if the spawn position is
            blocked (the board is dead from then on).
        """
        if not self.alive:
            return False
        if not self._place_at_spawn(self._next_type()):
            return False
        self.hold_used = False
        return True

    # ── Movement ──────────────────────────────────────────────────────────

    def _move(self, dx: int, dy: int) -> bool:
        """Try to translate the current piece by (dx, dy).

        Args:
            dx: Column offset (positive = right).
            dy: Row offset (positive = down).

        Returns:
            True if the move succeeded, False if blocked.
        """
        piece = self.current_piece
        if piece is None or not self.alive:
            return False
        new_x = piece.x + dx
        new_y = piece.y + dy
        if self.grid.can_place(piece.cells(new_x, new_y)):
            piece.x = new_x
            piece.y = new_y
            self.last_move_was_rotation = False
            return True
        return False

    def move_left(self) -> bool:
        return self._move(-1, 0)

    def move_right(self) -> bool:
        return self._move(1, 0)

    def _rotate(self, direction: int) -> bool:
        """Try to rotate the current piece with SRS wall kicks.

        Attempts each kick offset in order. The first valid position is used.

        Args:
            direction: +1 for clockwise, -1 for counter-clockwise.

        Returns:
            True if the rotation succeeded (possibly with a kick),
            False if all kick tests failed or the piece is an O.
        """
        if direction not in (1, -1):
            raise ValueError(f"direction must be 1 or -1, got {direction}")
        piece = self.current_piece
        if piece is None or not self.alive:
            return False

        from_rot = piece.rotation
        to_rot = (from_rot + direction) % 4

        for dx, dy in get_kick_offsets(piece.piece_type, from_rot, to_rot):
            # SRS convention: positive dy = up = -row
            new_x = piece.x + dx
            new_y = piece.y - dy
            if self.grid.can_place(piece.cells(new_x, new_y, to_rot)):
                piece.x = new_x
                piece.y = new_y
                piece.rotation = to_rot
                self.last_move_was_rotation = True
                return True
        return False

    def rotate_cw(self) -> bool:
        return self._rotate(1)

    def rotate_ccw(self) -> bool:
        return self._rotate(-1)

    def soft_drop(self) -> bool:
        """Move the piece down one row, scoring 1 point if it moved.

        A soft drop never locks. When the piece is already resting this
        returns False and the piece stays active; the caller's lock delay
        ends the turn through tick() or hard_drop().
        """
        if self._move(0, 1):
            self.scoring.add_soft_drop(1)
            return True
        return False

    def hard_drop(self) -> LockResult | None:
        """Drop the piece to its landing row and lock it.

        Scores 2 points per row dropped.

        Returns:
            The LockResult, or None if there is no active piece.
        """
        if self.current_piece is None or not self.alive:
            return None
        rows = 0
        while self._move(0, 1):
            rows += 1
        self.scoring.add_hard_drop(rows)
        return self._lock_piece()

    def tick(self) -> LockResult | None:
        """Apply one gravity step.

        The piece moves down one row (no points). If it cannot, it locks.

        Returns:
            The LockResult if the piece locked, None otherwise.
        """
        if self.current_piece is None or not self.alive:
            return None
        if self._move(0, 1):
            return None
        return self._lock_piece()

    def hold(self) -> bool:
        """Swap the current piece with the held piece.

        If no piece is held, the current piece goes to hold and the next
        piece is spawned. The player cannot hold again until a new piece
        is spawned.

        Returns:
            True if hold was performed, False otherwise.
        """
        if self.hold_used or self.current_piece is None or not self.alive:
            return False

        current_type = self.current_piece.piece_type
        if self.hold_piece is None:
            self.hold_piece = current_type
            self.current_piece = None
            self.spawn_piece()
        else:
            swapped_in = self.hold_piece
            self.hold_piece = current_type
            self._place_at_spawn(swapped_in)
        # Set AFTER spawn, which resets it
        self.hold_used = True
        return True

    def get_ghost_y(self) -> int:
        """Row the current piece would land on after a hard drop."""
        piece = self.current_piece
        if piece is None:
            return 0
        y = piece.y
        while self.grid.can_place(piece.cells(piece.x, y + 1)):
            y += 1
        return y

    # ── Locking ───────────────────────────────────────────────────────────

    def clear_lines(self) -> int:
        """Remove all full rows. Returns the number of lines cleared."""
        return self.grid.clear_lines()

    def _detect_tspin(self, piece: ActivePiece) -> tuple[bool, bool]:
        """Classify a lock as (T-spin, T-spin mini).

        Only a T piece whose last positioning change was a rotation
        qualifies. Corners are the 4 cells diagonal to the pivot; walls and
        floor count as occupied.
        """
        if piece.piece_type != PieceType.T or not self.last_move_was_rotation:
            return False, False

        px = piece.x + T_PIVOT[0]
        py = piece.y + T_PIVOT[1]

        def occupied(corner: tuple[int, int]) -> bool:
            return self.grid.is_occupied(px + corner[0], py + corner[1])

        front = [occupied(c) for c in T_FRONT_CORNERS[piece.rotation]]
        back = [occupied(c) for c in T_BACK_CORNERS[piece.rotation]]
        if sum(front) + sum(back) >= 3:
            return True, False
        if not any(front) and all(back):
            return False, True
        return False, False

    def _lock_piece(self) -> LockResult:
        """Lock the current piece and run the clear/score/garbage sequence."""
        piece = self.current_piece
        assert piece is not None
        self.grid.merge(piece.cells(), piece.color_id)
        is_tspin, is_tspin_mini = self._detect_tspin(piece)
        self.current_piece = None
        self.last_move_was_rotation = False

        lines = self.clear_lines()
        was_back_to_back = self.scoring.back_to_back
        event = self.scoring.add_line_clear(lines, is_tspin, is_tspin_mini)

        result = LockResult(
            lines_cleared=lines,
            is_tspin=is_tspin,
            is_tspin_mini=is_tspin_mini,
            combo=self.scoring.combo,
            back_to_back=self.scoring.back_to_back,
            alive=True,
            score_delta=event.score_delta if event is not None else 0,
        )

        if self.coordinator is not None:
            if lines > 0:
                attack = self.coordinator.process_line_clear(
                    self.player_id, lines, is_tspin, self.scoring.combo, was_back_to_back
                )
                self._record_attack(result, attack)
            result.garbage_received = self._receive_garbage()

        if self.alive:
            self.spawn_piece()
        result.alive = self.alive
        return result

    @staticmethod
    def _record_attack(result: LockResult, attack: GarbageResult) -> None:
        result.garbage_sent = attack.sent
        result.garbage_cancelled = attack.cancelled
        result.deliveries = list(attack.deliveries)

    def _receive_garbage(self) -> int:
        """Drain this player's queue into the grid. Returns lines received."""
        received = 0
        for entry in self.coordinator.get_incoming_garbage(self.player_id):
            received += entry.lines
            if not self.grid.add_garbage(entry.lines, entry.gap_column):
                self.alive = False
        return received

    # ── State ─────────────────────────────────────────────────────────────

    def get_next_preview(self) -> list[PieceType]:
        while len(self._next_queue) < self.preview_count:
            self._next_queue.append(self.randomizer.next())
        return list(self._next_queue)[: self.preview_count]

    def get_state(self) -> dict[str, Any]:
        """Return a dict describing the full observable board state.

        Returns:
            Dict with keys:
              - grid: np.ndarray (height x width, int8), locked cells only
              - active_piece: dict (type, rotation, x, y, cells) or None
              - ghost_y: int or None
              - hold: piece name or None
              - hold_used: bool
              - next_preview: list of piece names
              - score_state: dict from ScoringEngine.get_state()
              - pending_garbage: lines waiting in this player's queue
              - alive: bool
        """
        piece = self.current_piece
        pending = 0
        if self.coordinator is not None:
            pending = self.coordinator.pending_lines(self.player_id)
        return {
            "player_id": self.player_id,
            "grid": self.grid.get_grid(),
            "active_piece": piece.to_dict() if piece is not None else None,
            "ghost_y": self.get_ghost_y() if piece is not None else None,
            "hold": self.hold_piece.name if self.hold_piece is not None else None,
            "hold_used": self.hold_used,
            "next_preview": [p.name for p in self.get_next_preview()],
            "score_state": self.scoring.get_state(),
            "pending_garbage": pending,
            "alive": self.alive,
        }
