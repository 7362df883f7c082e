"""Process-wide mapping configuration.

The action-space size and the input tensor shape are the versioned contract
between a trained checkpoint and any code that loads it. They are fixed once
per process (``init_config``) and checked against everything that crosses
the process boundary: checkpoints, sample files, self-play peers.

Environment:
    KZMAP_GAME: game name used by ``init_config()`` when none is passed
        (e.g. "ttt", "ataxx-7", "trictrac").
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import threading
from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from .errors import ConfigurationError, ConfigurationMismatchError

logger = logging.getLogger(__name__)

GAME_ENV_VAR = "KZMAP_GAME"


@dataclass(frozen=True)
class MapperConfig:
    """Fixed tensor/action-space layout of one game encoding."""

    game: str
    action_space_size: int
    input_bool_shape: Tuple[int, int, int]
    input_scalar_count: int
    version: int = 1

    def __post_init__(self) -> None:
        if not self.game:
            raise ConfigurationError("MapperConfig.game must be a non-empty string")
        if self.action_space_size <= 0:
            raise ConfigurationError(
                "action_space_size must be positive",
                context={"action_space_size": self.action_space_size},
            )
        shape = tuple(self.input_bool_shape)
        if len(shape) != 3 or any(d <= 0 for d in shape):
            raise ConfigurationError(
                "input_bool_shape must be three positive dimensions [planes, height, width]",
                context={"input_bool_shape": shape},
            )
        if self.input_scalar_count < 0:
            raise ConfigurationError(
                "input_scalar_count cannot be negative",
                context={"input_scalar_count": self.input_scalar_count},
            )
        # Normalise lists coming from JSON so equality is by value
        object.__setattr__(self, "input_bool_shape", tuple(int(d) for d in shape))

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["input_bool_shape"] = list(self.input_bool_shape)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MapperConfig":
        try:
            return cls(
                game=str(data["game"]),
                action_space_size=int(data["action_space_size"]),
                input_bool_shape=tuple(data["input_bool_shape"]),
                input_scalar_count=int(data["input_scalar_count"]),
                version=int(data.get("version", 1)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Malformed mapper configuration: {e}",
                context={"keys": sorted(data.keys()) if hasattr(data, "keys") else None},
            ) from e

    def fingerprint(self) -> str:
        """Short sha256 over the canonical JSON form."""
        content = json.dumps(self.to_dict(), sort_keys=True).encode("utf-8")
        return hashlib.sha256(content).hexdigest()[:12]

    def assert_compatible(self, other: "MapperConfig") -> None:
        """Raise ConfigurationMismatchError unless ``other`` has the same layout."""
        if self == other:
            return
        differing = [
            key for key, value in self.to_dict().items()
            if other.to_dict().get(key) != value
        ]
        raise ConfigurationMismatchError(
            "Mapping configuration differs between producer and consumer",
            expected_fingerprint=self.fingerprint(),
            actual_fingerprint=other.fingerprint(),
            context={"differing_fields": ",".join(differing)},
        )


_active_config: Optional[MapperConfig] = None
_config_lock = threading.Lock()


def init_config(game: Optional[str] = None) -> MapperConfig:
    """Fix the process-wide configuration for ``game`` (or $KZMAP_GAME).

    Calling again with the same game returns the existing config; a
    different game is a fatal mismatch.
    """
    global _active_config

    name = game or os.getenv(GAME_ENV_VAR)
    if not name:
        raise ConfigurationError(
            f"No game given and {GAME_ENV_VAR} is not set",
        )

    # Lazy import: the registry pulls in every mapper
    from .mapping import get_mapper

    config = get_mapper(name).config
    with _config_lock:
        if _active_config is not None:
            _active_config.assert_compatible(config)
            return _active_config
        _active_config = config

    logger.info(
        "Mapping configuration fixed: game=%s action_space=%d planes=%s scalars=%d fingerprint=%s",
        config.game,
        config.action_space_size,
        config.input_bool_shape,
        config.input_scalar_count,
        config.fingerprint(),
    )
    return config


def get_config() -> MapperConfig:
    """The active process-wide configuration."""
    if _active_config is None:
        raise ConfigurationError("Mapping configuration has not been initialised; call init_config()")
    return _active_config


def verify_checkpoint_config(metadata: Mapping[str, Any]) -> MapperConfig:
    """Check a checkpoint's saved mapping config against the active one.

    Args:
        metadata: Dict carrying a ``mapping`` entry (as written by
            ``MapperConfig.to_dict``) or the config fields themselves.

    Returns:
        The active configuration.
    """
    active = get_config()
    saved = MapperConfig.from_dict(metadata.get("mapping", metadata))
    active.assert_compatible(saved)
    logger.debug("Checkpoint mapping config %s matches active config", saved.fingerprint())
    return active


def reset_config() -> None:
    """Forget the active configuration. Intended for tests only."""
    global _active_config
    with _config_lock:
        _active_config = None
