from pathlib import Path

import pytest

from listening_diagnostics.config import (
    DiagnosticsConfig,
    config_from_dict,
    config_from_yaml,
    load_config,
)


def test_defaults():
    cfg = DiagnosticsConfig()

    assert cfg.substitution_confidence_threshold == 0.55
    assert cfg.known_reduction_confidence == 0.8
    assert cfg.category_cap_per_attempt == 3
    assert cfg.default_max_events == 5
    assert cfg.locale == "en-US"


def test_config_from_dict_ignores_unknown_keys():
    cfg = config_from_dict({"category_cap_per_attempt": 2, "window_size": 500})

    assert cfg.category_cap_per_attempt == 2
    assert config_from_dict(None) == DiagnosticsConfig()


@pytest.mark.parametrize(
    "data",
    [
        {"substitution_confidence_threshold": 1.5},
        {"narration_confidence_threshold": -0.1},
        {"category_cap_per_attempt": 0},
    ],
)
def test_invalid_values_raise(data):
    with pytest.raises(ValueError):
        config_from_dict(data)


def test_config_from_yaml(tmp_path: Path):
    path = tmp_path / "config.yaml"
    path.write_text("short_word_max_length: 8\nlocale: en-GB\n", encoding="utf-8")

    cfg = config_from_yaml(path)

    assert cfg.short_word_max_length == 8
    assert cfg.locale == "en-GB"
    assert load_config(path) == cfg
    assert load_config(None) == DiagnosticsConfig()


def test_yaml_must_be_a_mapping(tmp_path: Path):
    path = tmp_path / "config.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")

    with pytest.raises(ValueError, match="mapping"):
        config_from_yaml(path)


def test_to_dict_round_trips_through_config_from_dict():
    cfg = DiagnosticsConfig(default_max_events=3)

    assert config_from_dict(cfg.to_dict()) == cfg
