from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from .base import CrawlEngine, CrawlReport, ProductURLSet, VisitedSet
from ..classifier import PatternTable, is_product_url
from ..config import CrawlConfig
from ..errors import FetchError, ResourceError, StartPageError
from ..fetchers.base import PageContent, PageFetcher
from ..fetchers.registry import build_fetcher
from ..utils.parsing import extract_links, is_same_origin

logger = logging.getLogger(__name__)


@dataclass
class FrontierItem:
    url: str
    depth: int


@dataclass
class _CrawlState:
    base_url: str
    visited: VisitedSet
    products: ProductURLSet = field(default_factory=ProductURLSet)
    failed: Dict[str, str] = field(default_factory=dict)
    # URLs ever put on the frontier; keeps repeat links off the queue.
    queued: Set[str] = field(default_factory=set)
    frontier: "asyncio.Queue[FrontierItem]" = field(default_factory=asyncio.Queue)


class FrontierCrawlEngine(CrawlEngine):
    """
    Single-site product URL discovery over an explicit frontier queue.
    - Fetcher strategy owns retrieval (static HTTP or headless browser).
    - Engine owns the frontier, visited set, classification and termination.
    - Concurrency capped by one crawl-wide semaphore.
    """
    def __init__(
        self,
        config: CrawlConfig,
        fetcher: Optional[PageFetcher] = None,
        patterns: Optional[PatternTable] = None,
    ) -> None:
        self.config = config
        self.fetcher = fetcher or build_fetcher(config)
        if patterns is None:
            patterns = (
                PatternTable.from_strings(config.product_patterns)
                if config.product_patterns
                else PatternTable.default()
            )
        self.patterns = patterns

    async def crawl(self) -> CrawlReport:
        cfg = self.config
        cfg.validate(create_output_dir=False)

        state = _CrawlState(base_url=cfg.resolved_base_url(), visited=VisitedSet(cfg.max_pages))
        sem = asyncio.Semaphore(cfg.max_concurrency)
        logger.info(
            "Crawling %s (base %s) with %s fetcher, concurrency=%d, max_pages=%s, max_depth=%s",
            cfg.start_url, state.base_url, self.fetcher.name, cfg.max_concurrency, cfg.max_pages, cfg.max_depth,
        )

        async with self.fetcher:
            # The start page is fetched up front: if it is unreachable the whole call fails.
            state.visited.claim(cfg.start_url)
            state.queued.add(cfg.start_url)
            try:
                async with sem:
                    page = await self.fetcher.fetch(cfg.start_url)
            except FetchError as exc:
                raise StartPageError(cfg.start_url, exc.reason, status=exc.status) from exc
            except ResourceError:
                raise
            except Exception as exc:
                raise StartPageError(cfg.start_url, repr(exc)) from exc
            self._expand_page(FrontierItem(cfg.start_url, 0), page, state)

            workers = [
                asyncio.create_task(self._worker(state, sem), name=f"crawl-worker-{i}")
                for i in range(cfg.max_concurrency)
            ]
            drained = asyncio.ensure_future(state.frontier.join())
            try:
                done, _ = await asyncio.wait([drained, *workers], return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    if task is not drained:
                        # Workers only exit on an escalated error (renderer lost).
                        task.result()
            finally:
                drained.cancel()
                for w in workers:
                    w.cancel()
                await asyncio.gather(drained, *workers, return_exceptions=True)

        report = CrawlReport(
            start_url=cfg.start_url,
            base_url=state.base_url,
            product_urls=state.products.snapshot(),
            visited=state.visited.snapshot(),
            failed=dict(state.failed),
            truncated=state.visited.refused > 0,
        )
        logger.info(
            "Crawl of %s finished: %d page(s) visited, %d failed, %d product URL(s)%s",
            cfg.start_url, report.visited_count, len(report.failed), len(report.product_urls),
            " (page ceiling reached)" if report.truncated else "",
        )
        return report

    async def _worker(self, state: _CrawlState, sem: asyncio.Semaphore) -> None:
        while True:
            item = await state.frontier.get()
            try:
                await self._visit(item, state, sem)
            finally:
                state.frontier.task_done()

    async def _visit(self, item: FrontierItem, state: _CrawlState, sem: asyncio.Semaphore) -> None:
        if not state.visited.claim(item.url):
            logger.debug("Skipping %s (already visited or page ceiling reached)", item.url)
            return

        try:
            async with sem:
                page = await self.fetcher.fetch(item.url)
        except FetchError as exc:
            logger.warning("Fetch failed for %s: %s", item.url, exc.reason)
            state.failed[item.url] = exc.reason
            return
        except ResourceError:
            raise
        except Exception as exc:  # broad catch to keep sibling workers moving
            logger.exception("Unexpected error fetching %s", item.url)
            state.failed[item.url] = repr(exc)
            return

        self._expand_page(item, page, state)

    def _expand_page(self, item: FrontierItem, page: PageContent, state: _CrawlState) -> None:
        try:
            self._expand(item, page, state)
        except Exception as exc:  # a page that cannot be parsed contributes nothing
            logger.exception("Failed to process links on %s", item.url)
            state.failed[item.url] = repr(exc)

    def _expand(self, item: FrontierItem, page: PageContent, state: _CrawlState) -> None:
        links = extract_links(page.html, state.base_url)

        found = [u for u in links if is_product_url(u, self.patterns)]
        added = state.products.add_all(found)
        if added:
            logger.debug("%s: %d new product URL(s)", item.url, added)

        next_depth = item.depth + 1
        if self.config.max_depth is not None and next_depth > self.config.max_depth:
            return

        for link in self._internal(links, state):
            state.queued.add(link)
            state.frontier.put_nowait(FrontierItem(url=link, depth=next_depth))

    def _internal(self, links: Iterable[str], state: _CrawlState) -> List[str]:
        return sorted(
            link for link in links
            if link not in state.queued and link not in state.visited and is_same_origin(link, state.base_url)
        )


async def discover_product_urls(
    start_url: str,
    base_url: Optional[str] = None,
    *,
    fetcher: Optional[PageFetcher] = None,
    max_concurrency: int = 5,
    max_pages: Optional[int] = 500,
    max_depth: Optional[int] = None,
    patterns: Optional[PatternTable] = None,
) -> Set[str]:
    """Crawl one site from ``start_url`` and return the product URLs found."""
    cfg = CrawlConfig(
        start_url=start_url,
        base_url=base_url,
        max_concurrency=max_concurrency,
        max_pages=max_pages,
        max_depth=max_depth,
    )
    report = await FrontierCrawlEngine(cfg, fetcher=fetcher, patterns=patterns).crawl()
    return report.product_urls
