"""
Match container: one GarbageCoordinator, one seeded RNG, one Board per player.

A Match is created when a battle starts and dropped when it ends; the
coordinator and every queue live exactly as long as the match does.
"""

from __future__ import annotations

import random
from typing import Any, Hashable, Iterable

from stackbattle.game.board import Board
from stackbattle.game.garbage import GarbageCoordinator


class Match:
    """A battle between several boards sharing one garbage coordinator.

    Attributes:
        seed: Seed of the match RNG (None = unseeded).
        coordinator: The match's GarbageCoordinator.
        boards: Player id -> Board, in join order.
    """

    def __init__(
        self,
        player_ids: Iterable[Hashable],
        config: dict[str, Any] | None = None,
        seed: int | None = None,
    ) -> None:
        """Create the coordinator and a board for every player.

        Args:
            player_ids: Ids of the players in the match.
            config: Optional config dict; see Board for board keys. Also
                reads shared_sequence (bool).
            seed: Seed for every random source in the match. The same seed
                and the same inputs replay the same match.
        """
        self.config = dict(config or {})
        self.seed = seed
        self._rng = random.Random(seed)
        self.shared_sequence: bool = bool(self.config.get("shared_sequence", False))
        self.coordinator = GarbageCoordinator(
            board_width=self.config.get("board_width", 10),
            rng=self._rng,
        )
        self.boards: dict[Hashable, Board] = {}
        for player_id in player_ids:
            self.add_player(player_id)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> Match:
        """Build a match from a config dict (players, seed, board keys)."""
        players = config.get("players") or ["p1", "p2"]
        return cls(players, config=config, seed=config.get("seed"))

    def _piece_rng(self, player_id: Hashable) -> random.Random:
        if self.seed is None:
            return random.Random()
        if self.shared_sequence:
            return random.Random(self.seed)
        return random.Random(f"{self.seed}:{player_id}")

    def add_player(self, player_id: Hashable) -> Board:
        if player_id in self.boards:
            raise ValueError(f"Player already in match: {player_id!r}")
        self.coordinator.add_player(player_id)
        board = Board(
            player_id,
            coordinator=self.coordinator,
            rng=self._piece_rng(player_id),
            config=self.config,
        )
        self.boards[player_id] = board
        return board

    def remove_player(self, player_id: Hashable) -> None:
        """Drop a player's board and garbage queue. Unknown ids are ignored."""
        self.boards.pop(player_id, None)
        self.coordinator.remove_player(player_id)

    def board(self, player_id: Hashable) -> Board | None:
        return self.boards.get(player_id)

    def start(self) -> None:
        """Spawn the first piece on every board."""
        for board in self.boards.values():
            if board.current_piece is None:
                board.spawn_piece()

    def alive_players(self) -> list[Hashable]:
        return [pid for pid, board in self.boards.items() if board.alive]

    def is_over(self) -> bool:
        alive = self.alive_players()
        if len(self.boards) > 1:
            return len(alive) <= 1
        return not alive

    def winner(self) -> Hashable | None:
        """The sole surviving player of a finished multi-player match."""
        if len(self.boards) < 2:
            return None
        alive = self.alive_players()
        if len(alive) == 1:
            return alive[0]
        return None

    def get_state(self) -> dict[str, Any]:
        return {
            "players": {pid: board.get_state() for pid, board in self.boards.items()},
            "alive": self.alive_players(),
            "winner": self.winner(),
            "over": self.is_over(),
        }
