"""Reference tic-tac-toe engine used to exercise the TTT mapper."""

from __future__ import annotations

from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .base import Outcome, Player

BOARD_SIZE = 3

_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),
    (0, 3, 6), (1, 4, 7), (2, 5, 8),
    (0, 4, 8), (2, 4, 6),
)


class Coord(BaseModel):
    """Board cell, row-major from the top-left corner."""
    model_config = ConfigDict(frozen=True)

    row: int
    col: int

    def to_flat(self) -> int:
        return self.row * BOARD_SIZE + self.col

    @classmethod
    def from_flat(cls, flat: int) -> "Coord":
        row, col = divmod(flat, BOARD_SIZE)
        return cls(row=row, col=col)


class TTTState(BaseModel):
    """Immutable tic-tac-toe position. FIRST plays X and moves first."""
    model_config = ConfigDict(frozen=True)

    cells: Tuple[Optional[Player], ...] = Field(
        default=(None,) * (BOARD_SIZE * BOARD_SIZE)
    )
    current_player: Player = Player.FIRST

    def cell(self, row: int, col: int) -> Optional[Player]:
        return self.cells[row * BOARD_SIZE + col]

    def winner(self) -> Optional[Player]:
        for a, b, c in _LINES:
            owner = self.cells[a]
            if owner is not None and owner == self.cells[b] == self.cells[c]:
                return owner
        return None

    def is_terminal(self) -> bool:
        return self.winner() is not None or all(c is not None for c in self.cells)

    def outcome(self) -> Optional[Outcome]:
        if not self.is_terminal():
            return None
        return Outcome(winner=self.winner())

    def legal_actions(self) -> List[Coord]:
        if self.is_terminal():
            return []
        return [Coord.from_flat(i) for i, c in enumerate(self.cells) if c is None]

    def play(self, action: Coord) -> "TTTState":
        if action not in self.legal_actions():
            raise ValueError(f"Illegal tic-tac-toe move {action!r}")
        cells = list(self.cells)
        cells[action.to_flat()] = self.current_player
        return TTTState(cells=tuple(cells), current_player=self.current_player.other())

    def swap_players(self) -> "TTTState":
        """Same position with the two seats exchanged."""
        return TTTState(
            cells=tuple(None if c is None else c.other() for c in self.cells),
            current_player=self.current_player.other(),
        )
