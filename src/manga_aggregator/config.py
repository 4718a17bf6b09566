"""Configuration loading for the catalog aggregator."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from .comick_source import COMICK_API_URL, COMICK_COVER_URL
from .mangadex_source import MANGADEX_API_URL, MANGADEX_COVER_URL

KNOWN_SOURCES = ("comick", "mangadex")
DEFAULT_PRIORITY = ["comick", "mangadex"]


@dataclass(slots=True)
class SourcesConfig:
    """Source priority per query kind, highest priority first."""

    popular: list[str] = field(default_factory=lambda: list(DEFAULT_PRIORITY))
    latest: list[str] = field(default_factory=lambda: ["comick"])
    search: list[str] = field(default_factory=lambda: ["comick"])
    details: list[str] = field(default_factory=lambda: ["comick"])

    def all_names(self) -> list[str]:
        names: list[str] = []
        for group in (self.popular, self.latest, self.search, self.details):
            for name in group:
                if name not in names:
                    names.append(name)
        return names


@dataclass(slots=True)
class RuntimeConfig:
    """Runtime behavior configuration."""

    timeout_seconds: float = 10.0
    default_limit: int = 20
    chapter_limit: int = 100
    fallback_dataset: str | None = None
    log_level: str = "INFO"


@dataclass(slots=True)
class EndpointsConfig:
    """Upstream base URLs."""

    comick_base_url: str = COMICK_API_URL
    comick_cover_base_url: str = COMICK_COVER_URL
    mangadex_base_url: str = MANGADEX_API_URL
    mangadex_cover_base_url: str = MANGADEX_COVER_URL


@dataclass(slots=True)
class AppConfig:
    """Application configuration object."""

    sources: SourcesConfig = field(default_factory=SourcesConfig)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    endpoints: EndpointsConfig = field(default_factory=EndpointsConfig)


DEFAULT_CONFIG_PATH = Path("config/default_config.json")


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load configuration from JSON file.

    Args:
        path: Custom config path. If omitted, uses the default config file
            when it exists and built-in defaults otherwise.

    Returns:
        Parsed AppConfig object.

    Raises:
        FileNotFoundError: If an explicit config file does not exist.
        ValueError: If a source name is unknown or a number is not positive.
    """

    if path is None and not DEFAULT_CONFIG_PATH.exists():
        return AppConfig()

    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    data = json.loads(config_path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Config root must be a JSON object")

    defaults = SourcesConfig()
    sources_data = data.get("sources", {})
    sources = SourcesConfig(
        popular=_source_list(sources_data, "popular", defaults.popular),
        latest=_source_list(sources_data, "latest", defaults.latest),
        search=_source_list(sources_data, "search", defaults.search),
        details=_source_list(sources_data, "details", defaults.details),
    )

    runtime_data = data.get("runtime", {})
    runtime = RuntimeConfig(
        timeout_seconds=_positive(float(runtime_data.get("timeout_seconds", 10.0)), "timeout_seconds"),
        default_limit=_positive(int(runtime_data.get("default_limit", 20)), "default_limit"),
        chapter_limit=_positive(int(runtime_data.get("chapter_limit", 100)), "chapter_limit"),
        fallback_dataset=runtime_data.get("fallback_dataset"),
        log_level=str(runtime_data.get("log_level", "INFO")).upper(),
    )

    endpoints_data = data.get("endpoints", {})
    endpoints = EndpointsConfig(
        comick_base_url=endpoints_data.get("comick_base_url", COMICK_API_URL),
        comick_cover_base_url=endpoints_data.get("comick_cover_base_url", COMICK_COVER_URL),
        mangadex_base_url=endpoints_data.get("mangadex_base_url", MANGADEX_API_URL),
        mangadex_cover_base_url=endpoints_data.get("mangadex_cover_base_url", MANGADEX_COVER_URL),
    )

    return AppConfig(sources=sources, runtime=runtime, endpoints=endpoints)


def _source_list(data: dict, key: str, default: list[str]) -> list[str]:
    names = [str(item).strip().lower() for item in data.get(key, default)]
    unknown = [name for name in names if name not in KNOWN_SOURCES]
    if unknown:
        raise ValueError(f"Unknown source(s) in sources.{key}: {unknown}. Known: {list(KNOWN_SOURCES)}")
    return names


def _positive(value, name: str):
    if value <= 0:
        raise ValueError(f"runtime.{name} must be positive, got {value}")
    return value
