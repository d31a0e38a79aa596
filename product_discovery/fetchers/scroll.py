from __future__ import annotations

import asyncio
import logging
from typing import Any

from .rendered import RenderedFetcher
from ..config import CrawlConfig

logger = logging.getLogger(__name__)

SCROLL_HEIGHT_JS = "() => document.body.scrollHeight"
SCROLL_TO_BOTTOM_JS = "() => window.scrollTo(0, document.body.scrollHeight)"


async def scroll_until_stable(page: Any, *, delay: float = 0.3, max_scrolls: int = 20) -> int:
    """
    Scroll ``page`` to the bottom until its height stops growing.

    Returns the number of scrolls performed, never more than ``max_scrolls``
    so feeds that grow forever still finish.
    """
    height = await page.evaluate(SCROLL_HEIGHT_JS)
    for count in range(1, max_scrolls + 1):
        await page.evaluate(SCROLL_TO_BOTTOM_JS)
        await asyncio.sleep(delay)
        new_height = await page.evaluate(SCROLL_HEIGHT_JS)
        if new_height == height:
            return count
        height = new_height
    logger.info("Page height still growing after %d scrolls; taking snapshot anyway", max_scrolls)
    return max_scrolls


class ScrollRenderedFetcher(RenderedFetcher):
    """Rendered fetch that first drains infinite-scroll / lazy-load listings."""

    name = "scroll"

    def __init__(self, *, scroll_delay: float = 0.3, max_scrolls: int = 20, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if max_scrolls <= 0:
            raise ValueError("max_scrolls must be > 0")
        self.scroll_delay = scroll_delay
        self.max_scrolls = max_scrolls

    @classmethod
    def from_config(cls, config: CrawlConfig) -> "ScrollRenderedFetcher":
        return cls(
            scroll_delay=config.scroll_delay,
            max_scrolls=config.max_scrolls,
            headless=config.headless,
            timeout=config.render_timeout,
            user_agent=config.user_agent,
            intercept_patterns=config.intercept_patterns,
        )

    async def settle(self, page: Any, url: str) -> None:
        scrolls = await scroll_until_stable(page, delay=self.scroll_delay, max_scrolls=self.max_scrolls)
        logger.debug("Scrolled %s %d time(s)", url, scrolls)
