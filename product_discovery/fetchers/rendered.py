from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Iterable, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from .base import PageContent, PageFetcher
from ..config import CrawlConfig
from ..errors import FetchError, ResourceError

logger = logging.getLogger(__name__)


def app_data_dir() -> Path:
    base = os.getenv("LOCALAPPDATA") or str(Path.home() / ".product-discovery")
    p = Path(base) / "product-discovery"
    p.mkdir(parents=True, exist_ok=True)
    return p


def browsers_dir() -> Path:
    return app_data_dir() / "ms-playwright"


class RenderedFetcher(PageFetcher):
    """
    Headless Chromium fetch for pages that build their links client-side.

    One browser process per fetcher; every fetch gets its own browser context
    and page, both closed on every exit path. Navigation waits for Playwright's
    "networkidle" state (no connections for at least 500 ms) before the DOM
    snapshot is taken.
    """

    name = "rendered"

    def __init__(
        self,
        *,
        headless: bool = True,
        timeout: float = 30.0,
        user_agent: Optional[str] = None,
        intercept_patterns: Iterable[str] = (),
    ) -> None:
        self.headless = headless
        self.timeout = timeout
        self.user_agent = user_agent
        self.intercept_patterns = tuple(intercept_patterns)
        self._playwright: Any = None
        self._browser: Any = None

    @classmethod
    def from_config(cls, config: CrawlConfig) -> "RenderedFetcher":
        return cls(
            headless=config.headless,
            timeout=config.render_timeout,
            user_agent=config.user_agent,
            intercept_patterns=config.intercept_patterns,
        )

    # ---- Lifecycle ----------------------------------------------------------

    async def start(self) -> None:
        if self._browser is not None:
            return
        os.environ.setdefault("PLAYWRIGHT_BROWSERS_PATH", str(browsers_dir()))
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(headless=self.headless)
        except (PlaywrightError, OSError) as exc:
            await self._stop_driver()
            raise ResourceError(f"cannot start headless browser: {exc}") from exc
        logger.info("Started headless browser (headless=%s)", self.headless)

    async def close(self) -> None:
        browser, self._browser = self._browser, None
        try:
            if browser is not None:
                await browser.close()
        except PlaywrightError as exc:
            raise ResourceError(f"cannot stop headless browser: {exc}") from exc
        finally:
            await self._stop_driver()

    async def _stop_driver(self) -> None:
        driver, self._playwright = self._playwright, None
        if driver is not None:
            await driver.stop()

    # ---- Fetch --------------------------------------------------------------

    async def fetch(self, url: str) -> PageContent:
        if self._browser is None:
            raise ResourceError(f"{type(self).__name__}.fetch() called before start()")

        try:
            context = await self._browser.new_context(user_agent=self.user_agent)
        except PlaywrightError as exc:
            raise ResourceError(f"cannot open browser context: {exc}") from exc

        try:
            page = await context.new_page()
            try:
                return await self._render(page, url)
            finally:
                await _close_quietly(page, "page")
        except PlaywrightTimeoutError as exc:
            raise FetchError(url, f"navigation timed out after {self.timeout}s") from exc
        except PlaywrightError as exc:
            raise FetchError(url, str(exc).splitlines()[0] if str(exc) else repr(exc)) from exc
        finally:
            await _close_quietly(context, "context")

    async def _render(self, page: Any, url: str) -> PageContent:
        if self.intercept_patterns:
            await page.route("**/*", self._observe_request)

        response = await page.goto(url, wait_until="networkidle", timeout=self.timeout * 1000)
        status = response.status if response is not None else None
        if status is not None and not 200 <= status < 300:
            raise FetchError(url, f"HTTP {status}", status=status)

        await self.settle(page, url)
        html = await page.content()
        return PageContent(url=page.url, html=html, status=status, fetcher=self.name)

    async def settle(self, page: Any, url: str) -> None:
        """Hook run after quiescence and before the DOM snapshot."""
        return None

    async def _observe_request(self, route: Any) -> None:
        request = route.request
        if request.resource_type in ("xhr", "fetch") and any(p in request.url for p in self.intercept_patterns):
            logger.debug("Intercepted %s request: %s", request.method, request.url)
        await route.continue_()


async def _close_quietly(resource: Any, what: str) -> None:
    # Page and context may already be gone along with a crashed browser.
    try:
        await resource.close()
    except PlaywrightError as exc:
        logger.warning("Failed to close browser %s: %s", what, exc)
