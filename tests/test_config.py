import json
from pathlib import Path

import pytest

from src.emulators_trainer.config import (
    CONFIG_ENV_VAR,
    DEFAULT_PERCENTILES,
    MAX_WORKERS_ENV_VAR,
    ValidationConfig,
    load_validation_config,
)
from src.emulators_trainer.errors import ConfigError


def _write_config(path: Path, payload) -> Path:
    path.write_text(json.dumps(payload), encoding="utf8")
    return path


def test_loads_file_with_defaults(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv(MAX_WORKERS_ENV_VAR, raising=False)
    config_path = _write_config(
        tmp_path / "validation.json",
        {"marker_file": "params.json", "parameter_names": ["a", "b"], "observable_file": "pk.npy"},
    )

    config = load_validation_config(config_path)

    assert config == ValidationConfig("params.json", ("a", "b"), "pk.npy")
    assert config.percentiles == DEFAULT_PERCENTILES
    assert config.sigma_file is None
    assert config.max_workers is None


def test_overrides_take_precedence(tmp_path: Path) -> None:
    config_path = _write_config(
        tmp_path / "validation.json",
        {
            "marker_file": "params.json",
            "parameter_names": ["a"],
            "observable_file": "pk.npy",
            "percentiles": [50, 90],
        },
    )

    config = load_validation_config(
        config_path, parameter_names="a, b ,c", percentiles=[99.0], max_workers=3, sigma_file=None
    )

    assert config.parameter_names == ("a", "b", "c")
    assert config.percentiles == (99.0,)
    assert config.max_workers == 3


def test_environment_supplies_path_and_workers(tmp_path: Path, monkeypatch) -> None:
    config_path = _write_config(
        tmp_path / "validation.json",
        {"marker_file": "m.json", "parameter_names": "x", "observable_file": "y.npy"},
    )
    monkeypatch.setenv(CONFIG_ENV_VAR, str(config_path))
    monkeypatch.setenv(MAX_WORKERS_ENV_VAR, "4")

    config = load_validation_config()

    assert config.marker_file == "m.json"
    assert config.max_workers == 4


def test_identity_is_stable_and_sensitive() -> None:
    base = ValidationConfig("params.json", ("a",), "pk.npy")
    same = ValidationConfig("params.json", ("a",), "pk.npy")
    other = ValidationConfig("params.json", ("a",), "pk.npy", sigma_file="sigma.npy")

    assert base.identity() == same.identity()
    assert base.identity() != other.identity()
    assert base.as_dict()["parameter_names"] == ["a"]


@pytest.mark.parametrize(
    "payload",
    [
        {"marker_file": "p.json", "parameter_names": ["a"]},
        {"marker_file": "p.json", "parameter_names": ["a"], "observable_file": "o.npy", "colour": "red"},
        {"marker_file": "p.json", "parameter_names": ["a"], "observable_file": "o.npy", "max_workers": 0},
        {"marker_file": "p.json", "parameter_names": ["a"], "observable_file": "o.npy", "percentiles": ["x"]},
        ["not", "an", "object"],
    ],
)
def test_invalid_files_raise_config_error(tmp_path: Path, monkeypatch, payload) -> None:
    monkeypatch.delenv(MAX_WORKERS_ENV_VAR, raising=False)
    config_path = _write_config(tmp_path / "validation.json", payload)

    with pytest.raises(ConfigError):
        load_validation_config(config_path)


def test_missing_and_malformed_files(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="does not exist"):
        load_validation_config(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf8")
    with pytest.raises(ConfigError, match="not valid JSON"):
        load_validation_config(broken)


def test_empty_percentile_list_is_rejected(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv(MAX_WORKERS_ENV_VAR, raising=False)
    config_path = _write_config(
        tmp_path / "validation.json",
        {"marker_file": "p.json", "parameter_names": ["a"], "observable_file": "o.npy", "percentiles": []},
    )

    with pytest.raises(ConfigError, match="Percentiles cannot be empty"):
        load_validation_config(config_path)
