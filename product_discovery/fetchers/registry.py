from __future__ import annotations

from typing import Dict, Type

from .base import PageFetcher
from ..config import CrawlConfig
from ..utils.loader import load_symbol

#: Short names accepted by CrawlConfig.fetcher.
FETCHER_ALIASES: Dict[str, str] = {
    "static": "product_discovery.fetchers.static:StaticFetcher",
    "rendered": "product_discovery.fetchers.rendered:RenderedFetcher",
    "scroll": "product_discovery.fetchers.scroll:ScrollRenderedFetcher",
}


def resolve_fetcher_class(name: str) -> Type[PageFetcher]:
    """Map a short name or dotted path to a PageFetcher subclass."""
    cls = load_symbol(name, FETCHER_ALIASES)
    if not (isinstance(cls, type) and issubclass(cls, PageFetcher)):
        raise ValueError(f"{name!r} does not name a PageFetcher subclass")
    return cls


def build_fetcher(config: CrawlConfig) -> PageFetcher:
    return resolve_fetcher_class(config.fetcher).from_config(config)
