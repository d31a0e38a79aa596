from __future__ import annotations

import asyncio
from typing import Dict, Iterable, List, Optional

import pytest

from product_discovery.config import CrawlConfig
from product_discovery.errors import FetchError
from product_discovery.fetchers.base import PageContent, PageFetcher

SITE = "https://shop.test"


def page(*hrefs: str) -> str:
    anchors = "\n".join(f'<a href="{h}">link</a>' for h in hrefs)
    return f"<html><body>{anchors}</body></html>"


class GraphFetcher(PageFetcher):
    """In-memory fetcher over ``{url: html}``; unknown URLs answer 404."""

    name = "graph"

    def __init__(self, pages: Dict[str, str], failing: Iterable[str] = (), delay: float = 0.0) -> None:
        self.pages = pages
        self.failing = set(failing)
        self.delay = delay
        self.calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.started = False
        self.closed = False

    async def start(self) -> None:
        self.started = True

    async def close(self) -> None:
        self.closed = True

    async def fetch(self, url: str) -> PageContent:
        self.calls.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if url in self.failing:
                raise FetchError(url, "HTTP 500", status=500)
            if url not in self.pages:
                raise FetchError(url, "HTTP 404", status=404)
            return PageContent(url=url, html=self.pages[url], status=200, fetcher=self.name)
        finally:
            self.in_flight -= 1


#: Small shop: home -> catalog -> page 2, plus an about page and product pages.
SHOP_PAGES: Dict[str, str] = {
    f"{SITE}/": page("/catalog", "/about-us", "/p/1", "https://other.test/product/x", "/catalog", "mailto:x@shop.test"),
    f"{SITE}/catalog": page("/catalog/page-2", "/product/alpha", "/item/beta", "/", "#top"),
    f"{SITE}/catalog/page-2": page("/product/gamma", "/catalog", "/deals/product-77", "javascript:void(0)"),
    f"{SITE}/about-us": page("/", "https://shop.test/catalog"),
    f"{SITE}/product/alpha": page("/product/gamma", "/catalog"),
    f"{SITE}/item/beta": page(""),
}

SHOP_PRODUCTS = {
    f"{SITE}/p/1",
    "https://other.test/product/x",
    f"{SITE}/product/alpha",
    f"{SITE}/item/beta",
    f"{SITE}/product/gamma",
    f"{SITE}/deals/product-77",
}

SHOP_VISITED = {
    f"{SITE}/",
    f"{SITE}/catalog",
    f"{SITE}/about-us",
    f"{SITE}/p/1",
    f"{SITE}/catalog/page-2",
    f"{SITE}/product/alpha",
    f"{SITE}/item/beta",
    f"{SITE}/product/gamma",
    f"{SITE}/deals/product-77",
}


def make_config(start_url: str = f"{SITE}/", **overrides) -> CrawlConfig:
    overrides.setdefault("max_concurrency", 5)
    return CrawlConfig(start_url=start_url, **overrides)


@pytest.fixture
def shop_fetcher() -> GraphFetcher:
    return GraphFetcher(dict(SHOP_PAGES))


def chain_pages(length: int) -> Dict[str, str]:
    return {f"{SITE}/{i}": page(f"/{i + 1}") for i in range(length)}


def hub_pages(width: int, leaf_links: Optional[Dict[int, str]] = None) -> Dict[str, str]:
    leaf_links = leaf_links or {}
    pages = {f"{SITE}/": page(*(f"/c/{i}" for i in range(width)))}
    for i in range(width):
        pages[f"{SITE}/c/{i}"] = page(*([leaf_links[i]] if i in leaf_links else []))
    return pages
