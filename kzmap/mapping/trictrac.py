"""Trictrac mapper.

Planes (30 x 24 x 1), fields renumbered from the POV player's side:
    0-14:  field holds exactly k+1 POV-player checkers (plane k)
    15-29: field holds exactly k+1 opponent checkers (plane 15+k)

Scalars (13):
    0:     turn stage ordinal / 5
    1, 2:  dice values / 6, in rolled order
    3-7:   POV player: points, holes, can_bredouille, can_big_bredouille,
           dice_roll_count
    8-12:  opponent, same layout

No color feature is encoded, so a position and its color-swapped mirror
produce identical tensors for their respective movers.

Action space (1252 slots):
    0            roll
    1            go
    2 + o*625 + from1*25 + from2
                 move; ``o`` is 0 when the first rolled die moves ``from1``
                 (dice_order=True) and 1 otherwise; fields 1-24 in the
                 mover's numbering, 0 meaning the die is not used
"""

from __future__ import annotations

from typing import Any, Optional, Tuple

import numpy as np

from ..errors import UnmappableActionError
from ..games.base import Player
from ..games.trictrac import (
    CHECKERS_PER_PLAYER,
    NUM_FIELDS,
    TrictracAction,
    TrictracState,
    TurnStage,
)
from .base import BoardMapper

ROLL_INDEX = 0
GO_INDEX = 1
MOVE_BASE = 2
FIELD_SLOTS = NUM_FIELDS + 1
MOVES_PER_ORDER = FIELD_SLOTS * FIELD_SLOTS
ACTION_SPACE_SIZE = MOVE_BASE + 2 * MOVES_PER_ORDER

_SCALARS_PER_PLAYER = 5
_MAX_TURN_STAGE = max(TurnStage)


class TrictracStdMapper(BoardMapper):
    game = "trictrac"

    @property
    def action_space_size(self) -> int:
        return ACTION_SPACE_SIZE

    @property
    def input_bool_shape(self) -> Tuple[int, int, int]:
        return (2 * CHECKERS_PER_PLAYER, NUM_FIELDS, 1)

    @property
    def input_scalar_count(self) -> int:
        return 1 + 2 + 2 * _SCALARS_PER_PLAYER

    def action_to_index(self, action: Any) -> int:
        if not isinstance(action, TrictracAction):
            self._raise(UnmappableActionError(
                f"Expected a TrictracAction, got {type(action).__name__}", game=self.game,
            ))
        if action.kind in ("roll", "go"):
            if action.from1 or action.from2 or not action.dice_order:
                self._raise(UnmappableActionError(
                    f"{action.kind!r} carries no move fields", game=self.game,
                ))
            return ROLL_INDEX if action.kind == "roll" else GO_INDEX

        for field in (action.from1, action.from2):
            if not 0 <= field <= NUM_FIELDS:
                self._raise(UnmappableActionError(
                    f"Field {field} outside 0-{NUM_FIELDS}", game=self.game,
                ))
        order = 0 if action.dice_order else 1
        return MOVE_BASE + order * MOVES_PER_ORDER + action.from1 * FIELD_SLOTS + action.from2

    def decode_index(self, index: int) -> Optional[TrictracAction]:
        if index == ROLL_INDEX:
            return TrictracAction.roll()
        if index == GO_INDEX:
            return TrictracAction.go()
        order, rest = divmod(index - MOVE_BASE, MOVES_PER_ORDER)
        from1, from2 = divmod(rest, FIELD_SLOTS)
        return TrictracAction.move(order == 0, from1, from2)

    def encode_into(
        self,
        bools: np.ndarray,
        scalars: np.ndarray,
        state: TrictracState,
        pov_player: Player,
    ) -> None:
        own, opp = state.relative_board(pov_player)
        for base, counts in ((0, own), (CHECKERS_PER_PLAYER, opp)):
            for field in range(1, NUM_FIELDS + 1):
                count = counts[field]
                if 1 <= count <= CHECKERS_PER_PLAYER:
                    bools[base + count - 1, field - 1, 0] = True

        scalars[0] = int(state.turn_stage) / _MAX_TURN_STAGE
        scalars[1] = state.dice[0] / 6.0
        scalars[2] = state.dice[1] / 6.0

        for slot, player in enumerate((pov_player, pov_player.other())):
            stats = state.stats(player)
            offset = 3 + slot * _SCALARS_PER_PLAYER
            scalars[offset + 0] = stats.points
            scalars[offset + 1] = stats.holes
            scalars[offset + 2] = float(stats.can_bredouille)
            scalars[offset + 3] = float(stats.can_big_bredouille)
            scalars[offset + 4] = stats.dice_roll_count
