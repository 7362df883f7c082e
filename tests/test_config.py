"""Tests for the process-wide mapping configuration."""

import logging

import pytest

from kzmap.config import (
    GAME_ENV_VAR,
    MapperConfig,
    get_config,
    init_config,
    verify_checkpoint_config,
)
from kzmap.errors import ConfigurationError, ConfigurationMismatchError
from kzmap.mapping import get_mapper


class TestMapperConfig:
    """Tests for the MapperConfig value object."""

    def test_from_dict_round_trip(self) -> None:
        config = get_mapper("ataxx-5").config
        assert MapperConfig.from_dict(config.to_dict()) == config

    def test_json_lists_normalised_to_tuple(self) -> None:
        config = MapperConfig("ttt", 9, [2, 3, 3], 0)
        assert config.input_bool_shape == (2, 3, 3)
        assert config == get_mapper("ttt").config

    def test_fingerprint_stable_and_distinct(self) -> None:
        ttt = get_mapper("ttt").config
        assert ttt.fingerprint() == MapperConfig("ttt", 9, (2, 3, 3), 0).fingerprint()
        assert len(ttt.fingerprint()) == 12
        assert ttt.fingerprint() != get_mapper("trictrac").config.fingerprint()

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"game": "", "action_space_size": 9, "input_bool_shape": (2, 3, 3), "input_scalar_count": 0},
            {"game": "ttt", "action_space_size": 0, "input_bool_shape": (2, 3, 3), "input_scalar_count": 0},
            {"game": "ttt", "action_space_size": 9, "input_bool_shape": (2, 3), "input_scalar_count": 0},
            {"game": "ttt", "action_space_size": 9, "input_bool_shape": (2, 0, 3), "input_scalar_count": 0},
            {"game": "ttt", "action_space_size": 9, "input_bool_shape": (2, 3, 3), "input_scalar_count": -1},
        ],
    )
    def test_invalid_values(self, kwargs) -> None:
        with pytest.raises(ConfigurationError):
            MapperConfig(**kwargs)

    def test_from_dict_missing_key(self) -> None:
        with pytest.raises(ConfigurationError):
            MapperConfig.from_dict({"game": "ttt", "action_space_size": 9})

    def test_assert_compatible_lists_differences(self) -> None:
        ataxx5 = get_mapper("ataxx-5").config
        ataxx7 = get_mapper("ataxx-7").config
        with pytest.raises(ConfigurationMismatchError) as exc_info:
            ataxx5.assert_compatible(ataxx7)
        context = exc_info.value.context
        assert "action_space_size" in context["differing_fields"]
        assert "input_bool_shape" in context["differing_fields"]
        assert context["expected_fingerprint"] == ataxx5.fingerprint()
        assert context["actual_fingerprint"] == ataxx7.fingerprint()


class TestProcessConfig:
    """Tests for init_config / get_config."""

    def test_get_before_init(self) -> None:
        with pytest.raises(ConfigurationError):
            get_config()

    def test_init_then_get(self, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="kzmap.config"):
            config = init_config("trictrac")
        assert get_config() is config
        assert config.action_space_size == 1252
        assert config.fingerprint() in caplog.text

    def test_init_is_idempotent_for_same_game(self) -> None:
        first = init_config("ataxx-7")
        assert init_config("ataxx") is first

    def test_reinit_with_other_game_is_fatal(self) -> None:
        init_config("ttt")
        with pytest.raises(ConfigurationMismatchError):
            init_config("trictrac")
        assert get_config().game == "ttt"

    def test_game_from_environment(self, monkeypatch) -> None:
        monkeypatch.setenv(GAME_ENV_VAR, "ataxx-6")
        assert init_config().game == "ataxx-6"

    def test_missing_game_and_environment(self, monkeypatch) -> None:
        monkeypatch.delenv(GAME_ENV_VAR, raising=False)
        with pytest.raises(ConfigurationError):
            init_config()

    def test_unknown_game(self) -> None:
        with pytest.raises(ConfigurationError):
            init_config("chess")


class TestCheckpointVerification:
    """Tests for verify_checkpoint_config."""

    def test_matching_checkpoint(self) -> None:
        config = init_config("ttt")
        assert verify_checkpoint_config({"mapping": config.to_dict(), "epoch": 3}) is config

    def test_bare_config_dict(self) -> None:
        config = init_config("ttt")
        assert verify_checkpoint_config(config.to_dict()) is config

    def test_mismatching_checkpoint(self) -> None:
        init_config("ataxx-7")
        saved = get_mapper("ataxx-5").config.to_dict()
        with pytest.raises(ConfigurationMismatchError):
            verify_checkpoint_config({"mapping": saved})

    def test_requires_initialised_process(self) -> None:
        with pytest.raises(ConfigurationError):
            verify_checkpoint_config(get_mapper("ttt").config.to_dict())
