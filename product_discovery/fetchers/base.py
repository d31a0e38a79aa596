from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..config import CrawlConfig


@dataclass
class PageContent:
    url: str  # final URL after redirects
    html: str
    status: Optional[int] = None
    fetcher: str = ""


class PageFetcher(ABC):
    """
    Strategy interface for retrieving one page.

    ``fetch`` returns PageContent or raises FetchError; the engine treats that
    as a node-local failure. ``start`` acquires whatever the strategy needs
    (HTTP session, browser process) and raises ResourceError when it cannot;
    ``close`` releases it. Use as ``async with fetcher: ...``.
    """

    name: str = "base"

    @classmethod
    def from_config(cls, config: "CrawlConfig") -> "PageFetcher":
        return cls()

    async def start(self) -> None:
        return None

    async def close(self) -> None:
        return None

    @abstractmethod
    async def fetch(self, url: str) -> PageContent:  # pragma: no cover - interface
        ...

    async def __aenter__(self) -> "PageFetcher":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
