"""
Match-wide garbage queues: attack generation, cancellation, and fan-out.

Each player owns a FIFO queue of incoming attacks. When a player clears
lines, the attack first cancels against that player's own incoming queue
(oldest entries first) and whatever is left is pushed, in full, onto every
opponent's queue.
"""

from __future__ import annotations

import random
import threading
from dataclasses import dataclass, field
from typing import Hashable

# Garbage lines sent per number of lines cleared
GARBAGE_TABLE: dict[int, int] = {
    1: 0,
    2: 1,
    3: 2,
    4: 4,
}

TSPIN_GARBAGE_MULTIPLIER = 2
BACK_TO_BACK_GARBAGE_BONUS = 1

# Extra lines by combo count; combos past the end use the last entry
COMBO_GARBAGE: list[int] = [0, 0, 1, 1, 1, 2, 2, 3, 3, 4, 4, 4, 5]


@dataclass
class GarbageEntry:
    """One pending attack in a player's incoming queue."""

    lines: int
    gap_column: int
    sender_id: Hashable


@dataclass
class GarbageDelivery:
    from_id: Hashable
    to_id: Hashable
    lines: int
    gap_column: int


@dataclass
class GarbageResult:
    """What a single line clear did to the garbage queues."""

    sent: int = 0
    cancelled: int = 0
    deliveries: list[GarbageDelivery] = field(default_factory=list)


def calculate_garbage(lines_cleared: int, is_tspin: bool, combo: int, back_to_back: bool) -> int:
    """Compute the attack strength of a line clear before cancellation.

    Args:
        lines_cleared: Rows removed (0-4).
        is_tspin: Whether the clear was a full T-spin.
        combo: Combo counter after this clear (-1 = no combo).
        back_to_back: Whether this clear continues a back-to-back chain.

    Returns:
        Number of garbage lines.
    """
    if lines_cleared <= 0:
        return 0
    garbage = GARBAGE_TABLE.get(lines_cleared, 0)
    if is_tspin:
        garbage *= TSPIN_GARBAGE_MULTIPLIER
    if combo >= 0:
        garbage += COMBO_GARBAGE[min(combo, len(COMBO_GARBAGE) - 1)]
    if back_to_back and (lines_cleared == 4 or is_tspin):
        garbage += BACK_TO_BACK_GARBAGE_BONUS
    return garbage


class GarbageCoordinator:
    """Owns every player's incoming garbage queue for one match.

    Queue operations are serialized by a re-entrant lock so that the
    cancellation and distribution of one clear complete before the next
    clear is processed.

    Attributes:
        board_width: Column count used when choosing gap columns.
        queues: Player id -> list of pending GarbageEntry, oldest first.
    """

    def __init__(self, board_width: int = 10, rng: random.Random | None = None) -> None:
        self.board_width = board_width
        self.queues: dict[Hashable, list[GarbageEntry]] = {}
        self._rng = rng if rng is not None else random.Random()
        self._lock = threading.RLock()

    def add_player(self, player_id: Hashable) -> None:
        with self._lock:
            self.queues[player_id] = []

    def remove_player(self, player_id: Hashable) -> None:
        with self._lock:
            self.queues.pop(player_id, None)

    def players(self) -> list[Hashable]:
        with self._lock:
            return list(self.queues)

    def process_line_clear(
        self,
        sender_id: Hashable,
        lines_cleared: int,
        is_tspin: bool,
        combo: int,
        back_to_back: bool,
    ) -> GarbageResult:
        """Cancel the sender's incoming garbage, then attack every opponent.

        Args:
            sender_id: Player who cleared the lines.
            lines_cleared: Rows removed by the clear.
            is_tspin: Whether the clear was a full T-spin.
            combo: Sender's combo counter after the clear.
            back_to_back: Whether the clear continues a back-to-back chain.

        Returns:
            GarbageResult with the lines sent to each opponent, the lines
            cancelled from the sender's own queue, and one delivery record
            per opponent. Unknown senders get a zero result.
        """
        if lines_cleared == 0:
            return GarbageResult()

        garbage = calculate_garbage(lines_cleared, is_tspin, combo, back_to_back)
        if garbage <= 0:
            return GarbageResult()

        with self._lock:
            sender_queue = self.queues.get(sender_id)
            if sender_queue is None:
                return GarbageResult()

            remaining = garbage
            cancelled = 0
            while remaining > 0 and sender_queue:
                front = sender_queue[0]
                if front.lines <= remaining:
                    remaining -= front.lines
                    cancelled += front.lines
                    sender_queue.pop(0)
                else:
                    front.lines -= remaining
                    cancelled += remaining
                    remaining = 0

            result = GarbageResult(cancelled=cancelled)
            if remaining > 0:
                gap_column = self.generate_gap_column()
                for player_id, queue in self.queues.items():
                    if player_id == sender_id:
                        continue
                    queue.append(GarbageEntry(remaining, gap_column, sender_id))
                    result.deliveries.append(
                        GarbageDelivery(sender_id, player_id, remaining, gap_column)
                    )
                if result.deliveries:
                    result.sent = remaining
            return result

    def get_incoming_garbage(self, player_id: Hashable) -> list[GarbageEntry]:
        """Remove and return every pending entry for a player."""
        with self._lock:
            queue = self.queues.get(player_id)
            if not queue:
                return []
            drained = list(queue)
            queue.clear()
            return drained

    def pending_lines(self, player_id: Hashable) -> int:
        """Total lines waiting in a player's queue, without draining it."""
        with self._lock:
            return sum(entry.lines for entry in self.queues.get(player_id, ()))

    def generate_gap_column(self) -> int:
        return self._rng.randrange(self.board_width)
