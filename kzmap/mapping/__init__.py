"""Canonical mapper lookup for all supported games.

This module is the single entry point for obtaining the mapper of a game:

    from kzmap.mapping import get_mapper

    mapper = get_mapper("trictrac")
    tensor = mapper.encode(state)
    index = mapper.action_to_index(action)

Mappers are stateless, so one instance per game is shared process-wide.
"""

from __future__ import annotations

import threading
from typing import Dict, Union

from ..games import Game, GameKind
from .ataxx import AtaxxStdMapper
from .base import (
    ActionIndexMapper,
    BoardMapper,
    InputTensor,
    PolicyCodec,
    StateEncoder,
    stack_inputs,
)
from .policy import StandardPolicyCodec, decode_policy, mask_and_normalize_batch
from .trictrac import TrictracStdMapper
from .ttt import TTTStdMapper

_mappers: Dict[Game, BoardMapper] = {}
_mappers_lock = threading.Lock()


def _build_mapper(game: Game) -> BoardMapper:
    if game.kind == GameKind.TTT:
        return TTTStdMapper()
    if game.kind == GameKind.ATAXX:
        return AtaxxStdMapper(game.size)
    return TrictracStdMapper()


def get_mapper(game: Union[str, Game]) -> BoardMapper:
    """Singleton mapper for ``game`` (a Game or a name accepted by Game.parse)."""
    if isinstance(game, str):
        game = Game.parse(game)
    with _mappers_lock:
        mapper = _mappers.get(game)
        if mapper is None:
            mapper = _mappers[game] = _build_mapper(game)
    return mapper


__all__ = [
    "ActionIndexMapper",
    "AtaxxStdMapper",
    "BoardMapper",
    "InputTensor",
    "PolicyCodec",
    "StandardPolicyCodec",
    "StateEncoder",
    "TTTStdMapper",
    "TrictracStdMapper",
    "decode_policy",
    "get_mapper",
    "mask_and_normalize_batch",
    "stack_inputs",
]
