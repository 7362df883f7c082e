"""Policy decoding and training-target packing.

The network emits one probability per action-space slot. Before the search
can use it, mass on illegal slots is removed and the rest renormalised. When
the network put zero mass on every legal slot the distribution degenerates;
that is the single condition this layer recovers from locally, by falling
back to a uniform distribution over the legal slots.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Sequence, Tuple

import numpy as np
import torch

from ..errors import (
    ConfigurationError,
    ConfigurationMismatchError,
    DegenerateDistributionError,
    IndexOutOfRangeError,
    NoLegalActionsError,
)
from ..games.base import GameState
from ..metrics import POLICY_FALLBACKS
from .base import ActionIndexMapper, PolicyCodec

logger = logging.getLogger(__name__)


class StandardPolicyCodec(PolicyCodec):
    """Dense-vector policy codec for an action space of fixed size."""

    def __init__(self, action_space_size: int):
        if action_space_size <= 0:
            raise ConfigurationError(
                "action_space_size must be positive",
                context={"action_space_size": action_space_size},
            )
        self._size = int(action_space_size)

    @property
    def action_space_size(self) -> int:
        return self._size

    def _check_vector(self, policy_vector: Any) -> np.ndarray:
        if isinstance(policy_vector, torch.Tensor):
            policy_vector = policy_vector.detach().cpu().numpy()
        vec = np.asarray(policy_vector, dtype=np.float64)
        if vec.ndim != 1 or vec.shape[0] != self._size:
            raise ConfigurationMismatchError(
                "Policy vector length does not match the action space",
                context={"expected": self._size, "shape": tuple(vec.shape)},
            )
        return vec

    def _check_indices(self, indices: Sequence[int]) -> np.ndarray:
        idx = np.asarray(sorted({int(i) for i in indices}), dtype=np.int64)
        if idx.size == 0:
            raise NoLegalActionsError(
                "Cannot build a distribution over an empty legal set; "
                "terminal states must be filtered before decoding",
            )
        if idx[0] < 0 or idx[-1] >= self._size:
            bad = int(idx[0]) if idx[0] < 0 else int(idx[-1])
            raise IndexOutOfRangeError(
                "Legal index outside the action space",
                index=bad,
                action_space_size=self._size,
            )
        return idx

    def uniform(self, legal_indices: Sequence[int]) -> np.ndarray:
        """Uniform distribution over ``legal_indices``."""
        idx = self._check_indices(legal_indices)
        result = np.zeros(self._size, dtype=np.float32)
        result[idx] = 1.0 / idx.size
        return result

    def _renormalize(self, masked: np.ndarray, idx: np.ndarray) -> np.ndarray:
        peak = masked.max()
        if peak <= 0.0:
            raise DegenerateDistributionError(
                "Network assigned zero probability to every legal action",
                legal_count=int(idx.size),
            )
        # Scale first so finite values near float64 max cannot sum to inf
        scaled = masked / peak
        return (scaled / scaled.sum()).astype(np.float32)

    def mask_and_normalize(
        self,
        policy_vector: np.ndarray,
        legal_indices: Sequence[int],
        fallback_uniform: bool = True,
    ) -> np.ndarray:
        """Zero illegal slots and renormalise over ``legal_indices``.

        Args:
            policy_vector: Raw network probabilities, length action_space_size.
            legal_indices: Indices of the actions legal in the current state.
            fallback_uniform: Recover from a zero-mass result with a uniform
                distribution instead of raising DegenerateDistributionError.

        Returns:
            float32 vector of length action_space_size, zero off the legal set
            and summing to 1.
        """
        vec = self._check_vector(policy_vector)
        idx = self._check_indices(legal_indices)

        legal_values = vec[idx]
        if not np.all(np.isfinite(legal_values)) or np.any(legal_values < 0):
            raise ValueError(
                "Policy vector must hold finite, non-negative probabilities on legal slots"
            )

        masked = np.zeros(self._size, dtype=np.float64)
        masked[idx] = legal_values
        try:
            return self._renormalize(masked, idx)
        except DegenerateDistributionError as e:
            if not fallback_uniform:
                raise
            logger.warning("Falling back to uniform policy: %s", e)
            POLICY_FALLBACKS.inc()
            return self.uniform(idx)

    def pack_training_target(self, visit_counts_by_index: Mapping[int, float]) -> np.ndarray:
        """Visit counts -> normalised target vector (zero where unvisited).

        Every visited index keeps its exact share of the total; nothing is
        thresholded away.
        """
        if not visit_counts_by_index:
            raise DegenerateDistributionError("No visit counts to pack", legal_count=0)

        target = np.zeros(self._size, dtype=np.float64)
        for raw_index, count in visit_counts_by_index.items():
            index = int(raw_index)
            if not 0 <= index < self._size:
                raise IndexOutOfRangeError(
                    "Visited index outside the action space",
                    index=index,
                    action_space_size=self._size,
                )
            if count < 0:
                raise ValueError(f"Visit count for index {index} is negative: {count}")
            target[index] += count

        total = target.sum()
        if total <= 0.0:
            raise DegenerateDistributionError(
                "Visit counts sum to zero",
                legal_count=len(visit_counts_by_index),
            )
        return (target / total).astype(np.float32)


def decode_policy(
    mapper: ActionIndexMapper,
    state: GameState,
    policy_vector: np.ndarray,
) -> List[Tuple[Any, float]]:
    """Legal actions of ``state`` paired with their masked probabilities.

    Actions come back in the rules engine's order, ready for tree expansion.
    """
    actions = state.legal_actions()
    indices = [mapper.action_to_index(a) for a in actions] if actions else []
    codec = StandardPolicyCodec(mapper.action_space_size)
    distribution = codec.mask_and_normalize(policy_vector, indices)
    return [(action, float(distribution[i])) for action, i in zip(actions, indices)]


def mask_and_normalize_batch(
    policy: torch.Tensor,
    legal_mask: torch.Tensor,
) -> torch.Tensor:
    """Batched ``mask_and_normalize`` for a [B, A] network output.

    Rows whose legal mass is zero receive a uniform distribution over their
    legal slots. Every row must have at least one legal slot.
    """
    if policy.shape != legal_mask.shape or policy.dim() != 2:
        raise ConfigurationMismatchError(
            "Policy batch and legal mask must both be [B, action_space_size]",
            context={"policy": tuple(policy.shape), "mask": tuple(legal_mask.shape)},
        )
    legal_mask = legal_mask.to(torch.bool)
    legal_values = policy[legal_mask]
    if not bool(torch.isfinite(legal_values).all()) or bool((legal_values < 0).any()):
        raise ValueError(
            "Policy batch must hold finite, non-negative probabilities on legal slots"
        )
    legal_counts = legal_mask.sum(dim=1)
    if bool((legal_counts == 0).any()):
        raise NoLegalActionsError(
            "Policy batch contains rows without legal actions",
            context={"rows": torch.nonzero(legal_counts == 0).view(-1).tolist()},
        )

    masked = torch.where(legal_mask, policy, torch.zeros_like(policy))
    peaks = masked.amax(dim=1, keepdim=True)
    fallback_rows = peaks.squeeze(1) <= 0
    uniform = legal_mask.to(policy.dtype) / legal_counts.unsqueeze(1).to(policy.dtype)
    scaled = masked / torch.where(peaks > 0, peaks, torch.ones_like(peaks))
    sums = scaled.sum(dim=1, keepdim=True)
    safe_sums = torch.where(sums > 0, sums, torch.ones_like(sums))
    probs = torch.where(fallback_rows.unsqueeze(1), uniform, scaled / safe_sums)

    fallback_count = int(fallback_rows.sum().item())
    if fallback_count:
        logger.warning("Falling back to uniform policy for %d of %d rows", fallback_count, policy.shape[0])
        POLICY_FALLBACKS.inc(fallback_count)
    return probs
