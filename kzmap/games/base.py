"""
Rules-engine boundary for the mapping layer.

The mapping layer never owns game semantics. It reads states through the
``GameState`` protocol below; anything providing these members (the
reference engines in this package, or an external engine wrapped in a thin
adapter) can be encoded and decoded.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict


class Player(str, Enum):
    """Two-player seat identity, independent of game-specific colors."""
    FIRST = "first"
    SECOND = "second"

    def other(self) -> "Player":
        return Player.SECOND if self is Player.FIRST else Player.FIRST


class Outcome(BaseModel):
    """Final game result. ``winner`` is None for a draw."""
    model_config = ConfigDict(frozen=True)

    winner: Optional[Player] = None

    @property
    def is_draw(self) -> bool:
        return self.winner is None

    def pov_value(self, player: Player) -> float:
        """Value target from ``player``'s point of view: +1 win, 0 draw, -1 loss."""
        if self.winner is None:
            return 0.0
        return 1.0 if self.winner == player else -1.0


@runtime_checkable
class GameState(Protocol):
    """Read-only view of a rules-engine snapshot consumed by the mappers."""

    @property
    def current_player(self) -> Player:
        ...

    def legal_actions(self) -> List[Any]:
        """All actions legal in this state, in the engine's canonical order."""
        ...

    def is_terminal(self) -> bool:
        ...

    def outcome(self) -> Optional[Outcome]:
        """Final result, or None while the game is running."""
        ...

    def play(self, action: Any) -> "GameState":
        """Return the successor state. Snapshots are never mutated."""
        ...
