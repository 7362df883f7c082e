"""Abstract contracts of the mapping layer.

Three capabilities sit between a rules engine and an MCTS/network pipeline:

- ActionIndexMapper: native action <-> dense index in a fixed action space
- StateEncoder: game state -> fixed-shape InputTensor, from a player's POV
- PolicyCodec: raw network policy <-> legality-masked distribution, and
  visit counts -> training target

Each supported game provides one concrete ``BoardMapper`` that implements
the first two directly; the policy codec only depends on the action-space
size and is shared by all games.

All implementations are stateless apart from immutable configuration and
are safe to call concurrently from several self-play workers.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterator, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import torch

from ..config import MapperConfig
from ..errors import (
    IllegalActionError,
    IndexOutOfRangeError,
    InvalidCallStateError,
    KZeroError,
)
from ..games.base import GameState, Player
from ..metrics import STATE_ENCODES, record_mapping_error

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class InputTensor:
    """Encoded state: boolean planes plus a float32 scalar vector.

    Attributes:
        bools: [planes, height, width] bool array
        scalars: [scalar_count] float32 array
    """

    bools: np.ndarray
    scalars: np.ndarray

    @property
    def bool_shape(self) -> Tuple[int, int, int]:
        return tuple(self.bools.shape)

    @property
    def scalar_count(self) -> int:
        return int(self.scalars.shape[0])

    def tobytes(self) -> bytes:
        """Canonical byte form (bit-packed planes followed by scalars)."""
        return np.packbits(self.bools, axis=None).tobytes() + self.scalars.tobytes()

    def equals(self, other: "InputTensor") -> bool:
        return (
            self.bools.shape == other.bools.shape
            and self.scalars.shape == other.scalars.shape
            and self.tobytes() == other.tobytes()
        )

    def to_torch(
        self, device: Optional[torch.device] = None
    ) -> Tuple[torch.Tensor, torch.Tensor]:
        """Float tensors ready for a single-sample forward pass."""
        planes = torch.from_numpy(self.bools.astype(np.float32))
        scalars = torch.from_numpy(self.scalars.copy())
        if device is not None:
            planes, scalars = planes.to(device), scalars.to(device)
        return planes, scalars


def stack_inputs(
    inputs: Sequence[InputTensor],
    device: Optional[torch.device] = None,
) -> Tuple[torch.Tensor, torch.Tensor]:
    """Batch encoded states for one network call.

    Returns:
        Tuple of (planes, scalars):
            - planes: [B, planes, H, W] float32 tensor
            - scalars: [B, scalar_count] float32 tensor
    """
    if not inputs:
        raise ValueError("stack_inputs needs at least one encoded state")
    shape = inputs[0].bool_shape
    for item in inputs:
        if item.bool_shape != shape or item.scalar_count != inputs[0].scalar_count:
            raise ValueError(
                f"Cannot batch inputs of different shapes: {item.bool_shape} vs {shape}"
            )
    planes = torch.from_numpy(np.stack([i.bools for i in inputs]).astype(np.float32))
    scalars = torch.from_numpy(np.stack([i.scalars for i in inputs]))
    if device is not None:
        planes, scalars = planes.to(device), scalars.to(device)
    return planes, scalars


class ActionIndexMapper(ABC):
    """Bidirectional native action <-> action-space index translation.

    Subclasses supply the pure, state-independent parts (``action_to_index``
    and ``decode_index``); legality and range checks live here so every game
    reports failures identically.
    """

    game: str = ""

    @property
    @abstractmethod
    def action_space_size(self) -> int:
        """Fixed number of policy slots."""

    @abstractmethod
    def action_to_index(self, action: Any) -> int:
        """Index of ``action``. Raises UnmappableActionError if it has no slot."""

    @abstractmethod
    def decode_index(self, index: int) -> Optional[Any]:
        """Action stored in slot ``index`` (no legality check).

        Returns None for slots that exist in the flat layout but can never
        hold an action (for example off-board jumps).
        """

    def _raise(self, error: KZeroError) -> None:
        logger.debug("%s mapper rejected a call: %s", self.game, error)
        record_mapping_error(self.game, error.code)
        raise error

    def index_to_action(self, index: int, state: GameState) -> Any:
        """Resolve ``index`` to the legal action it denotes in ``state``.

        Raises:
            IndexOutOfRangeError: index outside [0, action_space_size)
            InvalidCallStateError: state is terminal
            IllegalActionError: slot is empty or its action is not legal here
        """
        size = self.action_space_size
        if isinstance(index, bool) or not isinstance(index, (int, np.integer)):
            self._raise(IndexOutOfRangeError(
                f"Policy index must be an integer, got {type(index).__name__}",
                action_space_size=size,
                game=self.game,
            ))
        index = int(index)
        if not 0 <= index < size:
            self._raise(IndexOutOfRangeError(
                "Policy index outside the action space",
                index=index,
                action_space_size=size,
                game=self.game,
            ))
        if state.is_terminal():
            self._raise(InvalidCallStateError(
                "Cannot resolve an action on a terminal state",
                context={"game": self.game, "index": index},
            ))

        action = self.decode_index(index)
        if action is None or action not in state.legal_actions():
            self._raise(IllegalActionError(
                f"Index resolves to {action!r}, which is not legal in this state",
                index=index,
                game=self.game,
            ))
        return action

    def legal_indices(self, state: GameState) -> List[int]:
        """Sorted indices of every legal action in ``state``."""
        if state.is_terminal():
            self._raise(InvalidCallStateError(
                "Terminal states have no further actions",
                context={"game": self.game},
            ))
        return sorted(self.action_to_index(a) for a in state.legal_actions())

    def legal_mask(self, state: GameState) -> np.ndarray:
        mask = np.zeros(self.action_space_size, dtype=bool)
        mask[self.legal_indices(state)] = True
        return mask

    def vocabulary(self) -> Iterator[Any]:
        """Every mappable action, in index order."""
        for index in range(self.action_space_size):
            action = self.decode_index(index)
            if action is not None:
                yield action


class StateEncoder(ABC):
    """Game state -> InputTensor, canonicalised to one player's point of view."""

    game: str = ""

    @property
    @abstractmethod
    def input_bool_shape(self) -> Tuple[int, int, int]:
        """[planes, height, width] of the boolean planes."""

    @property
    @abstractmethod
    def input_scalar_count(self) -> int:
        """Length of the scalar feature vector."""

    @abstractmethod
    def encode_into(
        self,
        bools: np.ndarray,
        scalars: np.ndarray,
        state: GameState,
        pov_player: Player,
    ) -> None:
        """Fill zero-initialised buffers for ``state`` seen by ``pov_player``."""

    def encode(self, state: GameState, pov_player: Optional[Player] = None) -> InputTensor:
        """Encode ``state`` from ``pov_player``'s view (default: player to move)."""
        pov = state.current_player if pov_player is None else pov_player
        bools = np.zeros(self.input_bool_shape, dtype=bool)
        scalars = np.zeros(self.input_scalar_count, dtype=np.float32)
        self.encode_into(bools, scalars, state, pov)
        STATE_ENCODES.labels(game=self.game).inc()
        return InputTensor(bools=bools, scalars=scalars)


class PolicyCodec(ABC):
    """Network policy vector <-> legal action distribution."""

    @property
    @abstractmethod
    def action_space_size(self) -> int:
        ...

    @abstractmethod
    def mask_and_normalize(
        self,
        policy_vector: np.ndarray,
        legal_indices: Sequence[int],
        fallback_uniform: bool = True,
    ) -> np.ndarray:
        """Zero illegal slots and renormalise over ``legal_indices``."""

    @abstractmethod
    def pack_training_target(self, visit_counts_by_index: Mapping[int, float]) -> np.ndarray:
        """Convert MCTS visit counts into a full-length target vector."""


class BoardMapper(ActionIndexMapper, StateEncoder):
    """Action mapping plus state encoding for one game."""

    encoding_version: int = 1

    @property
    def config(self) -> MapperConfig:
        return MapperConfig(
            game=self.game,
            action_space_size=self.action_space_size,
            input_bool_shape=tuple(self.input_bool_shape),
            input_scalar_count=self.input_scalar_count,
            version=self.encoding_version,
        )

    @property
    def policy_codec(self) -> PolicyCodec:
        from .policy import StandardPolicyCodec

        return StandardPolicyCodec(self.action_space_size)
