"""Prometheus metrics for the kzmap mapping layer.

Counters are module-level singletons so that every mapper and codec in the
process records into the same series. Self-play workers expose them through
whatever Prometheus endpoint the host process already runs.
"""

from __future__ import annotations

from typing import Final

from prometheus_client import Counter


STATE_ENCODES: Final[Counter] = Counter(
    "kzmap_state_encodes_total",
    "Total number of game states encoded into input tensors, labeled by game.",
    labelnames=("game",),
)

POLICY_FALLBACKS: Final[Counter] = Counter(
    "kzmap_policy_uniform_fallbacks_total",
    (
        "Total number of masked policies that carried zero mass on every "
        "legal index and were replaced by a uniform distribution."
    ),
)

MAPPING_ERRORS: Final[Counter] = Counter(
    "kzmap_mapping_errors_total",
    "Total mapping errors raised to callers, labeled by game and error code.",
    labelnames=("game", "code"),
)


def record_mapping_error(game: str, code: str) -> None:
    """Increment the mapping error counter."""
    MAPPING_ERRORS.labels(game=game, code=code).inc()
