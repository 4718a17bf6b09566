"""Application wiring and command line entry point."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from .aggregator import CatalogAggregator
from .comick_source import ComickSource
from .config import DEFAULT_CONFIG_PATH, AppConfig, load_config
from .errors import NotFoundError
from .fallback import FallbackProvider
from .interfaces import SourceInterface
from .mangadex_source import MangaDexSource
from .models import Query, QueryKind

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(name)s] - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Send package logs to stderr so stdout stays machine readable."""

    root = logging.getLogger()
    root.setLevel(level.upper())
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)


def _build_runtime_log_lines(config: AppConfig) -> list[str]:
    sources = config.sources
    runtime = config.runtime
    return [
        f"  popular_sources={sources.popular}",
        f"  latest_sources={sources.latest}",
        f"  search_sources={sources.search}",
        f"  details_sources={sources.details}",
        f"  timeout_seconds={runtime.timeout_seconds}",
        f"  default_limit={runtime.default_limit}",
        f"  chapter_limit={runtime.chapter_limit}",
        f"  fallback_dataset={runtime.fallback_dataset or 'bundled'}",
    ]


def _build_sources(config: AppConfig) -> dict[str, SourceInterface]:
    endpoints = config.endpoints
    timeout = config.runtime.timeout_seconds
    available: dict[str, SourceInterface] = {}

    for name in config.sources.all_names():
        if name == "comick":
            available[name] = ComickSource(
                base_url=endpoints.comick_base_url,
                cover_base_url=endpoints.comick_cover_base_url,
                timeout=timeout,
            )
        elif name == "mangadex":
            available[name] = MangaDexSource(
                base_url=endpoints.mangadex_base_url,
                cover_base_url=endpoints.mangadex_cover_base_url,
                timeout=timeout,
            )

    return available


def build_aggregator(config: AppConfig, fallback: FallbackProvider | None = None) -> CatalogAggregator:
    """Build sources, fallback and aggregator from config."""

    available = _build_sources(config)
    sources = config.sources
    sources_by_kind = {
        QueryKind.POPULAR: [available[name] for name in sources.popular],
        QueryKind.LATEST: [available[name] for name in sources.latest],
        QueryKind.SEARCH: [available[name] for name in sources.search],
    }

    return CatalogAggregator(
        sources_by_kind=sources_by_kind,
        fallback=fallback or FallbackProvider.from_file(config.runtime.fallback_dataset),
        detail_sources=[available[name] for name in sources.details],
        # adapters already time out at the socket; this bounds slow bodies too
        call_timeout=config.runtime.timeout_seconds,
    )


def run_command(args: argparse.Namespace, aggregator: CatalogAggregator) -> dict:
    """Execute one parsed CLI command and return the outward payload."""

    if args.command in ("popular", "latest", "search"):
        query = Query(
            kind=QueryKind(args.command),
            page=args.page,
            limit=args.limit,
            search_text=getattr(args, "query", None),
        )
        result = aggregator.resolve(query)
        logger.info("Served %d record(s) from %s", len(result.records), result.source)
        return result.to_dict()

    if args.command == "details":
        return {"manga": aggregator.details(args.manga_id).to_dict()}

    if args.command == "chapters":
        return aggregator.chapters(args.manga_id, page=args.page, limit=args.limit).to_dict()

    pages = aggregator.pages(args.chapter_id)
    return {"pages": pages, "total": len(pages)}


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def build_parser(config: AppConfig | None = None) -> argparse.ArgumentParser:
    runtime = config.runtime if config else AppConfig().runtime
    parser = argparse.ArgumentParser(description="Query manga catalogs with ordered source fallback")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help=f"Path to config json. Default: {DEFAULT_CONFIG_PATH}",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name in ("popular", "latest"):
        sub = subparsers.add_parser(name, help=f"List {name} manga")
        sub.add_argument("--page", type=_positive_int, default=1)
        sub.add_argument("--limit", type=_positive_int, default=runtime.default_limit)

    search = subparsers.add_parser("search", help="Search manga by title, author or genre")
    search.add_argument("query", type=str)
    search.add_argument("--page", type=_positive_int, default=1)
    search.add_argument("--limit", type=_positive_int, default=runtime.default_limit)

    details = subparsers.add_parser("details", help="Show one manga")
    details.add_argument("manga_id", type=str)

    chapters = subparsers.add_parser("chapters", help="List chapters of one manga")
    chapters.add_argument("manga_id", type=str)
    chapters.add_argument("--page", type=_positive_int, default=1)
    chapters.add_argument("--limit", type=_positive_int, default=runtime.chapter_limit)

    pages = subparsers.add_parser("pages", help="List page image URLs of one chapter")
    pages.add_argument("chapter_id", type=str)

    return parser


def _peek_config_path(argv: list[str]) -> str | None:
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", type=str, default=None)
    known, _ = pre.parse_known_args(argv)
    return known.config


def main(argv: list[str] | None = None) -> int:
    """CLI main function."""

    argv = list(sys.argv[1:] if argv is None else argv)
    config_path = _peek_config_path(argv)
    config = load_config(config_path)
    parser = build_parser(config)
    args = parser.parse_args(argv)

    configure_logging(config.runtime.log_level)
    effective = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    logger.info("Loaded configuration from %s", effective.resolve() if effective.exists() else "built-in defaults")
    for line in _build_runtime_log_lines(config):
        logger.info(line)

    aggregator = build_aggregator(config)
    try:
        payload = run_command(args, aggregator)
    except NotFoundError as exc:
        print(json.dumps({"message": str(exc)}), file=sys.stderr)
        return 1
    except ValueError as exc:
        parser.error(str(exc))
    finally:
        aggregator.close()

    print(json.dumps(payload, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
