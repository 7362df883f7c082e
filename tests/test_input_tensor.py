"""Tests for InputTensor and torch batching."""

import numpy as np
import pytest
import torch

from kzmap.games.ttt import Coord, TTTState
from kzmap.mapping import InputTensor, get_mapper, stack_inputs


def _tensor(seed: int) -> InputTensor:
    rng = np.random.default_rng(seed)
    return InputTensor(
        bools=rng.random((3, 4, 4)) > 0.5,
        scalars=rng.random(2).astype(np.float32),
    )


class TestInputTensor:
    """Byte form, equality and torch conversion."""

    def test_equals_by_content(self) -> None:
        assert _tensor(1).equals(_tensor(1))
        assert not _tensor(1).equals(_tensor(2))

    def test_tobytes_length(self) -> None:
        # 48 bits pack into 6 bytes, then 2 float32 scalars
        assert len(_tensor(0).tobytes()) == 6 + 8

    def test_to_torch(self) -> None:
        tensor = _tensor(3)
        planes, scalars = tensor.to_torch()
        assert planes.dtype == torch.float32
        assert planes.shape == (3, 4, 4)
        assert torch.equal(planes.bool(), torch.from_numpy(tensor.bools))
        assert scalars.dtype == torch.float32
        assert scalars.shape == (2,)


class TestStackInputs:
    """Batching encoded states for the network."""

    def test_batch_shapes(self) -> None:
        inputs = [_tensor(i) for i in range(4)]
        planes, scalars = stack_inputs(inputs)
        assert planes.shape == (4, 3, 4, 4)
        assert scalars.shape == (4, 2)
        assert planes.dtype == torch.float32
        assert torch.equal(scalars[2], torch.from_numpy(inputs[2].scalars))

    def test_batch_of_encoded_states(self) -> None:
        mapper = get_mapper("ttt")
        state = TTTState().play(Coord(row=0, col=0))
        planes, scalars = stack_inputs([mapper.encode(TTTState()), mapper.encode(state)])
        assert planes.shape == (2, 2, 3, 3)
        assert scalars.shape == (2, 0)
        assert planes[1, 1, 0, 0].item() == 1.0

    def test_empty_batch(self) -> None:
        with pytest.raises(ValueError):
            stack_inputs([])

    def test_mixed_shapes(self) -> None:
        ttt = get_mapper("ttt").encode(TTTState())
        with pytest.raises(ValueError):
            stack_inputs([ttt, _tensor(0)])
