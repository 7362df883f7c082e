"""Self-play sample files.

A finished game becomes one (input, policy target, value target) row per
recorded position. Rows are written as a compressed ``.npz`` with the
boolean planes bit-packed, next to a ``.json`` sidecar holding the mapping
configuration they were produced with. Loading checks that sidecar before
touching the arrays, so a trainer can never silently consume samples laid
out for a different action space or tensor shape.

Usage:
    writer = SampleWriter(output_dir / "gen_0001", get_mapper("ttt"))
    writer.append_game(positions, final_state.outcome())
    writer.finish()

    batch = load_samples(output_dir / "gen_0001", expected_config=get_config())
"""

from __future__ import annotations

import logging
import zipfile
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence, Union

import numpy as np
from pydantic import BaseModel, ValidationError

from ..config import MapperConfig
from ..errors import ConfigurationError, DataLoadError, InvalidCallStateError
from ..games.base import GameState, Outcome
from ..mapping.base import BoardMapper

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


class SampleFileMetadata(BaseModel):
    """JSON sidecar of a sample file."""

    format_version: int = FORMAT_VERSION
    game: str
    mapping: Dict[str, Any]
    fingerprint: str
    game_count: int
    position_count: int


@dataclass(frozen=True)
class Position:
    """One searched position of a self-play game."""

    state: GameState
    visit_counts: Mapping[int, float]


@dataclass(frozen=True)
class SampleBatch:
    """Decoded contents of a sample file.

    Attributes:
        bools: [N, planes, H, W] bool
        scalars: [N, scalar_count] float32
        policy: [N, action_space_size] float32
        values: [N] float32, from each row's POV player
    """

    config: MapperConfig
    bools: np.ndarray
    scalars: np.ndarray
    policy: np.ndarray
    values: np.ndarray

    def __len__(self) -> int:
        return int(self.values.shape[0])


def _paths(path: Union[str, Path]) -> tuple[Path, Path]:
    base = Path(path)
    if base.suffix in (".npz", ".json"):
        base = base.with_suffix("")
    return base.with_suffix(".npz"), base.with_suffix(".json")


class SampleWriter:
    """Accumulates encoded positions and writes them in one go."""

    def __init__(self, path: Union[str, Path], mapper: BoardMapper):
        self.npz_path, self.json_path = _paths(path)
        self.mapper = mapper
        self.config = mapper.config
        self._codec = mapper.policy_codec
        self._bools: List[np.ndarray] = []
        self._scalars: List[np.ndarray] = []
        self._policy: List[np.ndarray] = []
        self._values: List[float] = []
        self.game_count = 0
        self._finished = False

    @property
    def position_count(self) -> int:
        return len(self._values)

    def append_game(self, positions: Sequence[Position], outcome: Outcome) -> None:
        """Add every position of one finished game.

        The value target of each row is ``outcome`` seen by the player to
        move in that row's state.
        """
        if self._finished:
            raise InvalidCallStateError(
                "Sample writer already finished", context={"path": str(self.npz_path)},
            )
        rows = []
        for position in positions:
            pov = position.state.current_player
            tensor = self.mapper.encode(position.state, pov)
            target = self._codec.pack_training_target(position.visit_counts)
            rows.append((tensor, target, outcome.pov_value(pov)))

        for tensor, target, value in rows:
            self._bools.append(tensor.bools)
            self._scalars.append(tensor.scalars)
            self._policy.append(target)
            self._values.append(value)
        self.game_count += 1

    def finish(self) -> Path:
        """Write the ``.npz`` and its ``.json`` sidecar; returns the npz path."""
        if self._finished:
            raise InvalidCallStateError(
                "Sample writer already finished", context={"path": str(self.npz_path)},
            )
        self._finished = True

        planes = int(np.prod(self.config.input_bool_shape))
        count = self.position_count
        if count:
            flat_bools = np.stack(self._bools).reshape(count, planes)
            scalars = np.stack(self._scalars)
            policy = np.stack(self._policy)
        else:
            flat_bools = np.zeros((0, planes), dtype=bool)
            scalars = np.zeros((0, self.config.input_scalar_count), dtype=np.float32)
            policy = np.zeros((0, self.config.action_space_size), dtype=np.float32)

        self.npz_path.parent.mkdir(parents=True, exist_ok=True)
        np.savez_compressed(
            self.npz_path,
            bools=np.packbits(flat_bools, axis=1),
            scalars=scalars.astype(np.float32),
            policy=policy.astype(np.float32),
            values=np.asarray(self._values, dtype=np.float32),
        )
        metadata = SampleFileMetadata(
            game=self.config.game,
            mapping=self.config.to_dict(),
            fingerprint=self.config.fingerprint(),
            game_count=self.game_count,
            position_count=count,
        )
        self.json_path.write_text(metadata.model_dump_json(indent=2))

        logger.info(
            "Wrote %d positions from %d games to %s (mapping %s)",
            count, self.game_count, self.npz_path, metadata.fingerprint,
        )
        return self.npz_path


def _read_metadata(json_path: Path) -> SampleFileMetadata:
    try:
        return SampleFileMetadata.model_validate_json(json_path.read_text())
    except FileNotFoundError as e:
        raise DataLoadError("Sample metadata file is missing", path=str(json_path)) from e
    except ValidationError as e:
        raise DataLoadError(
            f"Sample metadata is malformed: {e.error_count()} errors", path=str(json_path),
        ) from e


def load_samples(path: Union[str, Path], expected_config: MapperConfig) -> SampleBatch:
    """Load a sample file written by SampleWriter.

    Raises:
        ConfigurationMismatchError: file was produced with another layout
        DataLoadError: file is missing, truncated or internally inconsistent
    """
    npz_path, json_path = _paths(path)
    metadata = _read_metadata(json_path)

    try:
        config = MapperConfig.from_dict(metadata.mapping)
    except ConfigurationError as e:
        raise DataLoadError(f"Sample mapping config is invalid: {e.message}", path=str(json_path)) from e
    if config.fingerprint() != metadata.fingerprint:
        raise DataLoadError(
            "Sample metadata fingerprint does not match its mapping config",
            path=str(json_path),
        )
    expected_config.assert_compatible(config)

    try:
        with np.load(npz_path) as data:
            packed = data["bools"]
            scalars = data["scalars"]
            policy = data["policy"]
            values = data["values"]
    except FileNotFoundError as e:
        raise DataLoadError("Sample array file is missing", path=str(npz_path)) from e
    except KeyError as e:
        raise DataLoadError(f"Sample array file lacks {e}", path=str(npz_path)) from e
    except (zipfile.BadZipFile, zlib.error, EOFError, OSError, ValueError) as e:
        raise DataLoadError(f"Sample array file is unreadable: {e}", path=str(npz_path)) from e

    count = metadata.position_count
    planes = int(np.prod(config.input_bool_shape))
    if (
        packed.shape != (count, -(-planes // 8))
        or packed.dtype != np.uint8
        or scalars.shape != (count, config.input_scalar_count)
        or policy.shape != (count, config.action_space_size)
        or values.shape != (count,)
    ):
        raise DataLoadError(
            "Sample arrays do not match the recorded shapes",
            path=str(npz_path),
            context={"position_count": count},
        )

    bools = np.unpackbits(packed, axis=1, count=planes).astype(bool)
    return SampleBatch(
        config=config,
        bools=bools.reshape((count,) + config.input_bool_shape),
        scalars=scalars,
        policy=policy,
        values=values,
    )
