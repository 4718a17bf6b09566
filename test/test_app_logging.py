from manga_aggregator.app import _build_runtime_log_lines
from manga_aggregator.config import AppConfig, RuntimeConfig, SourcesConfig


def test_runtime_log_lines_use_actual_config_values() -> None:
    config = AppConfig(
        sources=SourcesConfig(popular=["mangadex"], search=["comick", "mangadex"]),
        runtime=RuntimeConfig(timeout_seconds=4.0, default_limit=12, fallback_dataset="data/catalog.json"),
    )

    lines = _build_runtime_log_lines(config)

    joined = "\n".join(lines)
    assert "popular_sources=['mangadex']" in joined
    assert "search_sources=['comick', 'mangadex']" in joined
    assert "timeout_seconds=4.0" in joined
    assert "default_limit=12" in joined
    assert "fallback_dataset=data/catalog.json" in joined


def test_bundled_dataset_is_reported_when_not_configured() -> None:
    lines = _build_runtime_log_lines(AppConfig())

    assert "  fallback_dataset=bundled" in lines
