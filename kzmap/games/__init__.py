"""Supported games and their reference rules engines.

Usage:
    from kzmap.games import Game

    game = Game.parse("ataxx-5")
    state = game.start_state()
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..errors import ConfigurationError
from .ataxx import DEFAULT_SIZE as ATAXX_DEFAULT_SIZE
from .ataxx import MAX_SIZE as ATAXX_MAX_SIZE
from .ataxx import MIN_SIZE as ATAXX_MIN_SIZE
from .ataxx import AtaxxState
from .base import GameState, Outcome, Player
from .trictrac import TrictracState
from .ttt import TTTState


class GameKind(str, Enum):
    TTT = "ttt"
    ATAXX = "ataxx"
    TRICTRAC = "trictrac"


@dataclass(frozen=True)
class Game:
    """A game plus its size parameter, parsed from names like ``ataxx-7``."""

    kind: GameKind
    size: Optional[int] = None

    @classmethod
    def parse(cls, name: str) -> "Game":
        text = name.strip().lower()
        if text == GameKind.TTT.value:
            return cls(GameKind.TTT)
        if text == GameKind.TRICTRAC.value:
            return cls(GameKind.TRICTRAC)
        if text == GameKind.ATAXX.value:
            return cls(GameKind.ATAXX, ATAXX_DEFAULT_SIZE)
        if text.startswith(GameKind.ATAXX.value + "-"):
            raw_size = text[len(GameKind.ATAXX.value) + 1:]
            if raw_size.isdigit() and ATAXX_MIN_SIZE <= int(raw_size) <= ATAXX_MAX_SIZE:
                return cls(GameKind.ATAXX, int(raw_size))
        raise ConfigurationError(f"Unknown game {name!r}", context={"game": name})

    def __str__(self) -> str:
        if self.kind == GameKind.ATAXX:
            return f"{self.kind.value}-{self.size}"
        return self.kind.value

    def start_state(self) -> GameState:
        if self.kind == GameKind.TTT:
            return TTTState()
        if self.kind == GameKind.ATAXX:
            return AtaxxState.diagonal(self.size)
        return TrictracState()


__all__ = [
    "Game",
    "GameKind",
    "GameState",
    "Outcome",
    "Player",
]
