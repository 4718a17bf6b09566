import json
from pathlib import Path

import pytest

from manga_aggregator.config import load_config


def _write_config(path: Path, payload: dict) -> None:
    path.write_text(json.dumps(payload), encoding="utf-8")


def test_defaults_when_no_config_file(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)

    config = load_config()

    assert config.sources.popular == ["comick", "mangadex"]
    assert config.sources.latest == ["comick"]
    assert config.sources.search == ["comick"]
    assert config.runtime.timeout_seconds == 10.0
    assert config.runtime.default_limit == 20


def test_values_are_read_from_file(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    _write_config(
        config_path,
        {
            "sources": {"search": ["MangaDex", "comick"]},
            "runtime": {"timeout_seconds": 2.5, "log_level": "debug"},
            "endpoints": {"comick_base_url": "https://comick.test"},
        },
    )

    config = load_config(config_path)

    assert config.sources.search == ["mangadex", "comick"]
    assert config.sources.popular == ["comick", "mangadex"]
    assert config.runtime.timeout_seconds == 2.5
    assert config.runtime.log_level == "DEBUG"
    assert config.endpoints.comick_base_url == "https://comick.test"
    assert config.sources.all_names() == ["comick", "mangadex"]


def test_unknown_source_is_rejected(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    _write_config(config_path, {"sources": {"popular": ["jikan"]}})

    with pytest.raises(ValueError, match="jikan"):
        load_config(config_path)


def test_non_positive_timeout_is_rejected(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    _write_config(config_path, {"runtime": {"timeout_seconds": 0}})

    with pytest.raises(ValueError):
        load_config(config_path)


def test_explicit_missing_config_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.json")


def test_repository_default_config_is_valid() -> None:
    config_path = Path(__file__).resolve().parents[1] / "config" / "default_config.json"

    config = load_config(config_path)

    assert config.sources.details == ["comick", "mangadex"]
