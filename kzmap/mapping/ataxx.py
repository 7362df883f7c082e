"""Ataxx mapper.

Planes (3 x N x N):
    0: squares holding a POV-player piece
    1: squares holding an opponent piece
    2: gaps (blocked squares)
Scalars (1):
    0: moves since the last copy, as a fraction of the draw limit

Action space: ``17 * N * N + 1`` slots in three fixed blocks.
    [0, N*N)                 copy to square ``to`` (row-major)
    [N*N, 17*N*N)            jump from square ``from``: block
                             ``1 + offset_index`` then row-major ``from``,
                             offsets in JUMP_OFFSETS order
    17*N*N                   pass

A copy is identified by its destination only, the source piece is
irrelevant to the result. Jump slots whose destination falls off the
board exist in the flat layout but decode to no action.
"""

from __future__ import annotations

from typing import Any, Optional, Tuple

import numpy as np

from ..errors import ConfigurationError, ConfigurationMismatchError, UnmappableActionError
from ..games.ataxx import (
    DEFAULT_SIZE,
    MAX_MOVES_SINCE_LAST_COPY,
    MAX_SIZE,
    MIN_SIZE,
    AtaxxMove,
    AtaxxState,
    Square,
)
from ..games.base import Player
from .base import BoardMapper

JUMP_OFFSETS: Tuple[Tuple[int, int], ...] = tuple(
    (dr, dc)
    for dr in range(-2, 3)
    for dc in range(-2, 3)
    if max(abs(dr), abs(dc)) == 2
)
JUMP_OFFSET_INDEX = {offset: i for i, offset in enumerate(JUMP_OFFSETS)}


class AtaxxStdMapper(BoardMapper):
    def __init__(self, size: int = DEFAULT_SIZE):
        if not MIN_SIZE <= size <= MAX_SIZE:
            raise ConfigurationError(f"Ataxx size must be in [{MIN_SIZE}, {MAX_SIZE}], got {size}")
        self.size = size
        self.game = f"ataxx-{size}"

    @property
    def _area(self) -> int:
        return self.size * self.size

    @property
    def pass_index(self) -> int:
        return (1 + len(JUMP_OFFSETS)) * self._area

    @property
    def action_space_size(self) -> int:
        return self.pass_index + 1

    @property
    def input_bool_shape(self) -> Tuple[int, int, int]:
        return (3, self.size, self.size)

    @property
    def input_scalar_count(self) -> int:
        return 1

    def _flat(self, sq: Optional[Square]) -> int:
        if sq is None or not (0 <= sq.row < self.size and 0 <= sq.col < self.size):
            self._raise(UnmappableActionError(
                f"Square {sq!r} is not on a {self.size}x{self.size} board", game=self.game,
            ))
        return sq.row * self.size + sq.col

    def action_to_index(self, action: Any) -> int:
        if not isinstance(action, AtaxxMove):
            self._raise(UnmappableActionError(
                f"Expected an AtaxxMove, got {type(action).__name__}", game=self.game,
            ))
        if action.kind == "pass":
            if action.to is not None or action.from_sq is not None:
                self._raise(UnmappableActionError("Pass carries no squares", game=self.game))
            return self.pass_index
        to_flat = self._flat(action.to)
        if action.kind == "copy":
            if action.from_sq is not None:
                self._raise(UnmappableActionError(
                    "Copy moves are identified by destination only", game=self.game,
                ))
            return to_flat
        from_flat = self._flat(action.from_sq)
        offset = (action.to.row - action.from_sq.row, action.to.col - action.from_sq.col)
        offset_index = JUMP_OFFSET_INDEX.get(offset)
        if offset_index is None:
            self._raise(UnmappableActionError(
                f"Jump offset {offset} is not a distance-2 move", game=self.game,
            ))
        return (1 + offset_index) * self._area + from_flat

    def decode_index(self, index: int) -> Optional[AtaxxMove]:
        if index == self.pass_index:
            return AtaxxMove.pass_turn()
        block, flat = divmod(index, self._area)
        row, col = divmod(flat, self.size)
        if block == 0:
            return AtaxxMove.copy_to(Square(row=row, col=col))
        dr, dc = JUMP_OFFSETS[block - 1]
        to_row, to_col = row + dr, col + dc
        if not (0 <= to_row < self.size and 0 <= to_col < self.size):
            return None
        return AtaxxMove.jump(Square(row=row, col=col), Square(row=to_row, col=to_col))

    def encode_into(
        self,
        bools: np.ndarray,
        scalars: np.ndarray,
        state: AtaxxState,
        pov_player: Player,
    ) -> None:
        if state.size != self.size:
            raise ConfigurationMismatchError(
                "Ataxx state size does not match the mapper",
                context={"mapper_size": self.size, "state_size": state.size},
            )
        for flat, owner in enumerate(state.cells):
            row, col = divmod(flat, self.size)
            if owner is not None:
                bools[0 if owner == pov_player else 1, row, col] = True
        for flat in state.gaps:
            row, col = divmod(flat, self.size)
            bools[2, row, col] = True
        scalars[0] = min(state.moves_since_last_copy / MAX_MOVES_SINCE_LAST_COPY, 1.0)
