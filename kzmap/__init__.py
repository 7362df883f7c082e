"""kzmap: game <-> tensor mapping layer for AlphaZero-style self-play.

    from kzmap import get_mapper, init_config

    config = init_config("ttt")
    mapper = get_mapper(config.game)
    tensor = mapper.encode(state)
    probs = mapper.policy_codec.mask_and_normalize(policy, mapper.legal_indices(state))
    action = mapper.index_to_action(chosen_index, state)
"""

from kzmap.config import MapperConfig, get_config, init_config, verify_checkpoint_config
from kzmap.games import Game, GameKind, Outcome, Player
from kzmap.mapping import (
    ActionIndexMapper,
    BoardMapper,
    InputTensor,
    PolicyCodec,
    StandardPolicyCodec,
    StateEncoder,
    decode_policy,
    get_mapper,
    mask_and_normalize_batch,
    stack_inputs,
)

__version__ = "0.1.0"

__all__ = [
    "ActionIndexMapper",
    "BoardMapper",
    "Game",
    "GameKind",
    "InputTensor",
    "MapperConfig",
    "Outcome",
    "Player",
    "PolicyCodec",
    "StandardPolicyCodec",
    "StateEncoder",
    "decode_policy",
    "get_config",
    "get_mapper",
    "init_config",
    "mask_and_normalize_batch",
    "stack_inputs",
    "verify_checkpoint_config",
]
