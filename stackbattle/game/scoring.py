"""
Score, level, combo, and back-to-back bookkeeping for one player.

Guideline-style scoring: base value by clear type times level, a 1.5x
multiplier for back-to-back "difficult" clears (tetris or any T-spin), and
a combo bonus of 50 x combo x level.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# Base scores per clear type, indexed by lines cleared
LINE_CLEAR_SCORES: dict[int, int] = {
    1: 100,
    2: 300,
    3: 500,
    4: 800,
}

TSPIN_SCORES: dict[int, int] = {
    0: 400,
    1: 800,
    2: 1200,
    3: 1600,
}

TSPIN_MINI_SCORES: dict[int, int] = {
    0: 100,
    1: 200,
}

BACK_TO_BACK_MULTIPLIER = 1.5
COMBO_BONUS = 50
LINES_PER_LEVEL = 10


@dataclass
class ScoreEvent:
    """Outcome of one scoring line clear."""

    score_delta: int
    combo: int
    back_to_back: bool


class ScoringEngine:
    """Per-player score state machine.

    Attributes:
        score: Total points.
        lines: Total lines cleared.
        combo: Consecutive clearing locks minus one; -1 when no combo runs.
        back_to_back: Whether the last line clear was a difficult one.
    """

    def __init__(self) -> None:
        self.score: int = 0
        self.lines: int = 0
        self.combo: int = -1
        self.back_to_back: bool = False

    def get_level(self) -> int:
        """Level derived from lines: 1 + lines // 10."""
        return 1 + self.lines // LINES_PER_LEVEL

    @property
    def level(self) -> int:
        return self.get_level()

    def add_line_clear(
        self, lines_cleared: int, is_tspin: bool, is_tspin_mini: bool
    ) -> ScoreEvent | None:
        """Score a lock that cleared lines or registered a T-spin.

        Args:
            lines_cleared: Rows removed by the lock (0-4).
            is_tspin: The lock was a full T-spin.
            is_tspin_mini: The lock was a T-spin mini.

        Returns:
            The ScoreEvent, or None when the lock neither cleared a line nor
            was a T-spin (the combo is reset in that case).
        """
        if lines_cleared == 0 and not is_tspin and not is_tspin_mini:
            self.combo = -1
            return None

        level = self.get_level()
        if is_tspin:
            base = TSPIN_SCORES.get(lines_cleared, 0)
        elif is_tspin_mini:
            base = TSPIN_MINI_SCORES.get(
                lines_cleared, LINE_CLEAR_SCORES.get(lines_cleared, 0)
            )
        else:
            base = LINE_CLEAR_SCORES.get(lines_cleared, 0)
        base *= level

        difficult = lines_cleared == 4 or is_tspin or is_tspin_mini
        if self.back_to_back and difficult:
            base = int(base * BACK_TO_BACK_MULTIPLIER)

        self.combo += 1
        combo_bonus = COMBO_BONUS * self.combo * level

        if difficult:
            self.back_to_back = True
        elif lines_cleared > 0:
            self.back_to_back = False

        self.lines += lines_cleared
        delta = base + combo_bonus
        self.score += delta
        return ScoreEvent(score_delta=delta, combo=self.combo, back_to_back=self.back_to_back)

    def add_hard_drop(self, cells_moved: int) -> None:
        self.score += 2 * cells_moved

    def add_soft_drop(self, cells_moved: int) -> None:
        self.score += cells_moved

    def get_state(self) -> dict[str, Any]:
        """Return a snapshot of score, level, lines, combo, and back-to-back."""
        return {
            "score": self.score,
            "level": self.get_level(),
            "lines": self.lines,
            "combo": self.combo,
            "back_to_back": self.back_to_back,
        }
