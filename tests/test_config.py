"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from cabinetwatch.config import (
    Config,
    GeneratorConfig,
    ThresholdConfig,
    generate_example_config,
    get_default_config,
    load_config,
    substitute_env_vars,
)


def test_defaults():
    thresholds = get_default_config().thresholds

    assert thresholds.power.current.baseline == 85
    assert thresholds.power.current.critical == pytest.approx(2)
    assert thresholds.input_flow.temperature.baseline == 25
    assert thresholds.output_flow.temperature.baseline == 35
    assert thresholds.liquid_level.one_sided is True
    assert thresholds.liquid_level.baseline == 85
    assert thresholds.liquid_level.critical == 35
    assert [t.baseline for t in thresholds.sensor_points] == [45, 42]


def test_sensor_point_positions_reuse_last():
    thresholds = ThresholdConfig()
    assert thresholds.sensor_point(0).baseline == 45
    assert thresholds.sensor_point(1).baseline == 42
    assert thresholds.sensor_point(5).baseline == 42


def test_sensor_points_must_not_be_empty():
    with pytest.raises(ValidationError):
        ThresholdConfig(sensor_points=[])


def test_load_none_returns_defaults():
    assert load_config(None) == Config()


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_example_config_matches_defaults(tmp_path):
    path = tmp_path / "cabinetwatch.yaml"
    path.write_text(generate_example_config())

    loaded = load_config(path)
    defaults = Config()

    for group in ("power", "input_flow", "output_flow"):
        for name, threshold in getattr(loaded.thresholds, group):
            expected = getattr(getattr(defaults.thresholds, group), name)
            assert threshold.baseline == pytest.approx(expected.baseline)
            assert threshold.caution == pytest.approx(expected.caution)
            assert threshold.warning == pytest.approx(expected.warning)
            assert threshold.critical == pytest.approx(expected.critical)
            assert threshold.unit == expected.unit

    assert loaded.thresholds.liquid_level == defaults.thresholds.liquid_level
    assert loaded.generator == defaults.generator
    assert loaded.dashboard == defaults.dashboard


def test_partial_file_keeps_other_defaults(tmp_path):
    path = tmp_path / "cabinetwatch.yaml"
    path.write_text(
        "thresholds:\n"
        "  cabinet_temperature: {baseline: 30, caution: 2, warning: 4, critical: 8}\n"
        "generator:\n"
        "  cabinets: 2\n"
    )

    config = load_config(path)

    assert config.thresholds.cabinet_temperature.baseline == 30
    assert config.thresholds.power.voltage.baseline == 220
    assert config.generator.cabinets == 2
    assert config.generator.max_servers == 8


def test_empty_file_is_default(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_config(path) == Config()


def test_invalid_bands_rejected(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text(
        "thresholds:\n"
        "  cabinet_temperature: {baseline: 30, caution: 5, warning: 4, critical: 8}\n"
    )
    with pytest.raises(ValidationError):
        load_config(path)


def test_env_substitution(tmp_path, monkeypatch):
    monkeypatch.setenv("CW_TITLE", "Hall B")
    path = tmp_path / "cabinetwatch.yaml"
    path.write_text('dashboard:\n  title: "${CW_TITLE} cooling"\n')

    assert load_config(path).dashboard.title == "Hall B cooling"


def test_substitute_env_vars_recurses(monkeypatch):
    monkeypatch.setenv("CW_A", "1")
    monkeypatch.delenv("CW_MISSING", raising=False)

    assert substitute_env_vars({"a": ["${CW_A}", 2], "b": "${CW_MISSING}x"}) == {
        "a": ["1", 2],
        "b": "x",
    }


def test_generator_server_range():
    with pytest.raises(ValidationError):
        GeneratorConfig(min_servers=5, max_servers=4)
