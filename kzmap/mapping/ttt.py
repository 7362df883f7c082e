"""Tic-tac-toe mapper.

Planes (2 x 3 x 3):
    0: cells owned by the POV player
    1: cells owned by the opponent
Scalars: none.
Action space: 9 slots, ``row * 3 + col``.
"""

from __future__ import annotations

from typing import Any, Optional, Tuple

import numpy as np

from ..errors import UnmappableActionError
from ..games.base import Player
from ..games.ttt import BOARD_SIZE, Coord, TTTState
from .base import BoardMapper


class TTTStdMapper(BoardMapper):
    game = "ttt"

    @property
    def action_space_size(self) -> int:
        return BOARD_SIZE * BOARD_SIZE

    @property
    def input_bool_shape(self) -> Tuple[int, int, int]:
        return (2, BOARD_SIZE, BOARD_SIZE)

    @property
    def input_scalar_count(self) -> int:
        return 0

    def action_to_index(self, action: Any) -> int:
        if not isinstance(action, Coord):
            self._raise(UnmappableActionError(
                f"Expected a Coord, got {type(action).__name__}", game=self.game,
            ))
        if not (0 <= action.row < BOARD_SIZE and 0 <= action.col < BOARD_SIZE):
            self._raise(UnmappableActionError(
                f"Cell {action!r} is off the board", game=self.game,
            ))
        return action.to_flat()

    def decode_index(self, index: int) -> Optional[Coord]:
        return Coord.from_flat(index)

    def encode_into(
        self,
        bools: np.ndarray,
        scalars: np.ndarray,
        state: TTTState,
        pov_player: Player,
    ) -> None:
        for flat, owner in enumerate(state.cells):
            if owner is None:
                continue
            row, col = divmod(flat, BOARD_SIZE)
            plane = 0 if owner == pov_player else 1
            bools[plane, row, col] = True
