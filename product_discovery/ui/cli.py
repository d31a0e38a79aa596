from __future__ import annotations

import argparse
import asyncio
import logging
from typing import List

from ..config import CrawlConfig
from ..engines.base import CrawlReport
from ..engines.frontier_engine import FrontierCrawlEngine
from ..errors import DiscoveryError, StartPageError
from ..export.base import Exporter, group_by_domain
from ..utils.logging import setup_logging
from ..utils.loader import load_symbol

logger = logging.getLogger(__name__)

EXPORTER_ALIASES = {
    "json": "product_discovery.export.json_exporter:JSONExporter",
    "csv": "product_discovery.export.csv_exporter:CSVExporter",
}


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Discover product-detail page URLs on an e-commerce site")
    p.add_argument("url", nargs="?", help="Start URL")
    p.add_argument("--config", type=str, help="Path to config JSON", default=None)
    p.add_argument("--base-url", type=str, default=None,
                   help="Base URL for resolving relative links (default: start URL's origin)")
    p.add_argument("--fetcher", type=str, default=None,
                   help="static, rendered, scroll, or a module:ClassName dotted path")
    p.add_argument("--max-concurrency", type=int, default=None, help="Max in-flight fetches (default from config)")
    p.add_argument("--max-pages", type=int, default=None, help="Stop expanding after this many pages")
    p.add_argument("--max-depth", type=int, default=None, help="Max link hops from the start URL")
    p.add_argument("--pattern", action="append", default=None, dest="patterns",
                   help="Product URL regex (repeatable; replaces the built-in rules)")
    p.add_argument("--scroll-delay", type=float, default=None, help="Seconds to wait after each scroll")
    p.add_argument("--max-scrolls", type=int, default=None, help="Scroll iteration bound per page")
    p.add_argument("--headed", action="store_true", help="Show the browser window for rendered fetchers")
    p.add_argument("--exporter", type=str, default=None, help="json, csv, or exporter dotted path (module:ClassName)")
    p.add_argument("--output", type=str, default=None, help="Output file path")
    p.add_argument("--log-level", type=str, default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
    p.add_argument("--serve", action="store_true", help="Run REST API server instead of CLI crawl")
    p.add_argument("--host", type=str, default="127.0.0.1", help="API host (when --serve)")
    p.add_argument("--port", type=int, default=8000, help="API port (when --serve)")
    return p


def _load_config(args: argparse.Namespace) -> CrawlConfig:
    if args.config:
        cfg = CrawlConfig.from_file(args.config)
    else:
        cfg = CrawlConfig.from_env()

    if args.url:
        cfg.start_url = args.url
    if args.base_url:
        cfg.base_url = args.base_url
    if args.fetcher:
        cfg.fetcher = args.fetcher
    if args.max_concurrency is not None:
        cfg.max_concurrency = args.max_concurrency
    if args.max_pages is not None:
        cfg.max_pages = args.max_pages
    if args.max_depth is not None:
        cfg.max_depth = args.max_depth
    if args.patterns:
        cfg.product_patterns = list(args.patterns)
    if args.scroll_delay is not None:
        cfg.scroll_delay = args.scroll_delay
    if args.max_scrolls is not None:
        cfg.max_scrolls = args.max_scrolls
    if args.headed:
        cfg.headless = False
    if args.exporter:
        cfg.exporter = args.exporter
    if args.output:
        cfg.output_path = args.output

    cfg.validate()
    return cfg


def run_server(host: str, port: int) -> None:
    try:
        import uvicorn  # type: ignore
    except ImportError as exc:  # pragma: no cover - optional dep
        raise SystemExit("To run the API, install the api extra: pip install 'product-discovery[api]'") from exc
    uvicorn.run("product_discovery.apis.app:app", host=host, port=port)


def run_cli(argv: List[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.log_level)

    if args.serve:
        run_server(args.host, args.port)
        return 0

    try:
        cfg = _load_config(args)
        exporter_cls = load_symbol(cfg.exporter, EXPORTER_ALIASES)
        engine = FrontierCrawlEngine(cfg)
    except (ValueError, DiscoveryError) as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    try:
        report: CrawlReport = asyncio.run(engine.crawl())
    except StartPageError as exc:
        logger.error("Start page unreachable: %s", exc)
        return 1
    except DiscoveryError as exc:
        logger.error("Crawl aborted: %s", exc)
        return 1

    exporter: Exporter = exporter_cls()
    exporter.export(group_by_domain(report.product_urls), cfg.output_path)

    logger.info("Visited: %s | Failed: %s | Products: %s | Output: %s",
                report.visited_count,
                len(report.failed),
                len(report.product_urls),
                cfg.output_path)
    return 0
