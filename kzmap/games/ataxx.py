"""Reference Ataxx engine used to exercise the Ataxx mapper.

Pieces either copy to an adjacent empty square (Chebyshev distance 1) or
jump to an empty square at distance 2, then flip every adjacent opponent
piece. A player without any copy or jump must pass.
"""

from __future__ import annotations

from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from .base import Outcome, Player

MIN_SIZE = 2
MAX_SIZE = 8
DEFAULT_SIZE = 7
MAX_MOVES_SINCE_LAST_COPY = 100


class Square(BaseModel):
    model_config = ConfigDict(frozen=True)

    row: int
    col: int

    def distance(self, other: "Square") -> int:
        return max(abs(self.row - other.row), abs(self.col - other.col))


class AtaxxMove(BaseModel):
    """Native Ataxx action. ``from_sq`` is only set for jumps."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["copy", "jump", "pass"]
    from_sq: Optional[Square] = None
    to: Optional[Square] = None

    @classmethod
    def copy_to(cls, to: Square) -> "AtaxxMove":
        return cls(kind="copy", to=to)

    @classmethod
    def jump(cls, from_sq: Square, to: Square) -> "AtaxxMove":
        return cls(kind="jump", from_sq=from_sq, to=to)

    @classmethod
    def pass_turn(cls) -> "AtaxxMove":
        return cls(kind="pass")


class AtaxxState(BaseModel):
    """Immutable Ataxx position on a ``size`` x ``size`` board."""
    model_config = ConfigDict(frozen=True)

    size: int = DEFAULT_SIZE
    cells: Tuple[Optional[Player], ...]
    gaps: Tuple[int, ...] = ()
    current_player: Player = Player.FIRST
    moves_since_last_copy: int = 0

    @classmethod
    def diagonal(cls, size: int = DEFAULT_SIZE) -> "AtaxxState":
        """Standard start: each player owns two opposite corners."""
        if not MIN_SIZE <= size <= MAX_SIZE:
            raise ValueError(f"Ataxx size must be in [{MIN_SIZE}, {MAX_SIZE}], got {size}")
        cells: List[Optional[Player]] = [None] * (size * size)
        last = size - 1
        cells[0] = cells[last * size + last] = Player.FIRST
        cells[last] = cells[last * size] = Player.SECOND
        return cls(size=size, cells=tuple(cells))

    # -- board helpers -----------------------------------------------------

    def flat(self, sq: Square) -> int:
        return sq.row * self.size + sq.col

    def square(self, flat: int) -> Square:
        row, col = divmod(flat, self.size)
        return Square(row=row, col=col)

    def on_board(self, row: int, col: int) -> bool:
        return 0 <= row < self.size and 0 <= col < self.size

    def is_gap(self, sq: Square) -> bool:
        return self.flat(sq) in self.gaps

    def piece_at(self, sq: Square) -> Optional[Player]:
        return self.cells[self.flat(sq)]

    def is_empty(self, sq: Square) -> bool:
        return not self.is_gap(sq) and self.piece_at(sq) is None

    def count(self, player: Player) -> int:
        return sum(1 for c in self.cells if c == player)

    def _ring(self, sq: Square, distance: int) -> List[Square]:
        result = []
        for dr in range(-distance, distance + 1):
            for dc in range(-distance, distance + 1):
                if max(abs(dr), abs(dc)) != distance:
                    continue
                r, c = sq.row + dr, sq.col + dc
                if self.on_board(r, c):
                    result.append(Square(row=r, col=c))
        return result

    # -- rules -------------------------------------------------------------

    def _moves_for(self, player: Player) -> List[AtaxxMove]:
        copies = set()
        jumps = []
        for flat, owner in enumerate(self.cells):
            if owner != player:
                continue
            src = self.square(flat)
            for dst in self._ring(src, 1):
                if self.is_empty(dst):
                    copies.add(self.flat(dst))
            for dst in self._ring(src, 2):
                if self.is_empty(dst):
                    jumps.append((flat, self.flat(dst)))
        moves = [AtaxxMove.copy_to(self.square(f)) for f in sorted(copies)]
        moves.extend(
            AtaxxMove.jump(self.square(f), self.square(t)) for f, t in sorted(jumps)
        )
        return moves

    def is_terminal(self) -> bool:
        if self.count(Player.FIRST) == 0 or self.count(Player.SECOND) == 0:
            return True
        if self.moves_since_last_copy >= MAX_MOVES_SINCE_LAST_COPY:
            return True
        return not self._moves_for(Player.FIRST) and not self._moves_for(Player.SECOND)

    def outcome(self) -> Optional[Outcome]:
        if not self.is_terminal():
            return None
        first, second = self.count(Player.FIRST), self.count(Player.SECOND)
        if first == second:
            return Outcome(winner=None)
        return Outcome(winner=Player.FIRST if first > second else Player.SECOND)

    def legal_actions(self) -> List[AtaxxMove]:
        if self.is_terminal():
            return []
        moves = self._moves_for(self.current_player)
        return moves or [AtaxxMove.pass_turn()]

    def play(self, action: AtaxxMove) -> "AtaxxState":
        if action not in self.legal_actions():
            raise ValueError(f"Illegal Ataxx move {action!r}")
        if action.kind == "pass":
            return self.model_copy(update={
                "current_player": self.current_player.other(),
                "moves_since_last_copy": self.moves_since_last_copy + 1,
            })

        cells = list(self.cells)
        if action.kind == "jump":
            cells[self.flat(action.from_sq)] = None
        cells[self.flat(action.to)] = self.current_player
        opponent = self.current_player.other()
        for sq in self._ring(action.to, 1):
            if cells[self.flat(sq)] == opponent:
                cells[self.flat(sq)] = self.current_player

        return self.model_copy(update={
            "cells": tuple(cells),
            "current_player": opponent,
            "moves_since_last_copy": (
                0 if action.kind == "copy" else self.moves_since_last_copy + 1
            ),
        })

    def swap_players(self) -> "AtaxxState":
        """Same position with the two seats exchanged."""
        return self.model_copy(update={
            "cells": tuple(None if c is None else c.other() for c in self.cells),
            "current_player": self.current_player.other(),
        })
