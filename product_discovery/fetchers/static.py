from __future__ import annotations

import logging
from typing import Optional

from aiohttp import ClientSession

from .base import PageContent, PageFetcher
from ..config import CrawlConfig
from ..errors import ResourceError
from ..utils.http import create_session, fetch_text

logger = logging.getLogger(__name__)


class StaticFetcher(PageFetcher):
    """Plain HTTP GET through a shared aiohttp session; no script execution."""

    name = "static"

    def __init__(
        self,
        *,
        timeout: float = 15.0,
        user_agent: Optional[str] = None,
        retries: int = 0,
        session: Optional[ClientSession] = None,
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self.retries = retries
        self._session = session
        self._owns_session = session is None

    @classmethod
    def from_config(cls, config: CrawlConfig) -> "StaticFetcher":
        return cls(timeout=config.request_timeout, user_agent=config.user_agent, retries=config.retries)

    async def start(self) -> None:
        if self._session is None:
            self._session = create_session(self.user_agent)
            self._owns_session = True

    async def close(self) -> None:
        session, self._session = self._session, None
        if session is not None and self._owns_session:
            await session.close()

    async def fetch(self, url: str) -> PageContent:
        if self._session is None:
            raise ResourceError("StaticFetcher.fetch() called before start()")
        html, status, final_url = await fetch_text(
            self._session,
            url,
            timeout=self.timeout,
            user_agent=self.user_agent,
            retries=self.retries,
        )
        logger.debug("GET %s -> %s (%d bytes)", url, status, len(html))
        return PageContent(url=final_url, html=html, status=status, fetcher=self.name)
