from __future__ import annotations

from typing import Optional


class DiscoveryError(Exception):
    """Base class for every error raised by the product discovery package."""


class FetchError(DiscoveryError):
    """
    A single page could not be retrieved.
    Covers transport errors, timeouts, non-2xx statuses and render navigation failures.
    """

    def __init__(self, url: str, reason: str, status: Optional[int] = None) -> None:
        self.url = url
        self.reason = reason
        self.status = status
        super().__init__(f"{url}: {reason}")


class StartPageError(FetchError):
    """The crawl's start page is unreachable, so nothing can be discovered."""


class ParseError(DiscoveryError):
    """An href or a configured pattern rule could not be interpreted."""


class ResourceError(DiscoveryError):
    """The rendering backend could not be started or stopped."""
