from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set
from abc import ABC, abstractmethod


@dataclass
class CrawlReport:
    start_url: str
    base_url: str
    product_urls: Set[str] = field(default_factory=set)
    visited: Set[str] = field(default_factory=set)
    failed: Dict[str, str] = field(default_factory=dict)  # url -> reason
    # True when the page ceiling stopped further expansion
    truncated: bool = False

    @property
    def visited_count(self) -> int:
        return len(self.visited)

    def sorted_products(self) -> List[str]:
        return sorted(self.product_urls)


class VisitedSet:
    """
    URLs already dispatched to a fetcher during one crawl.

    ``claim`` is the only way in: an atomic test-and-insert that also enforces
    the page ceiling. Every crawl worker shares one instance.
    """

    def __init__(self, max_pages: Optional[int] = None) -> None:
        self.max_pages = max_pages
        self._urls: Set[str] = set()
        self._lock = threading.Lock()
        self.refused = 0

    def claim(self, url: str) -> bool:
        with self._lock:
            if url in self._urls:
                return False
            if self.max_pages is not None and len(self._urls) >= self.max_pages:
                self.refused += 1
                return False
            self._urls.add(url)
            return True

    def __contains__(self, url: object) -> bool:
        with self._lock:
            return url in self._urls

    def __len__(self) -> int:
        with self._lock:
            return len(self._urls)

    def snapshot(self) -> Set[str]:
        with self._lock:
            return set(self._urls)


class ProductURLSet:
    """Accumulated product URLs; duplicates collapse."""

    def __init__(self) -> None:
        self._urls: Set[str] = set()
        self._lock = threading.Lock()

    def add_all(self, urls: Iterable[str]) -> int:
        """Add ``urls`` and return how many were new."""
        with self._lock:
            before = len(self._urls)
            self._urls.update(urls)
            return len(self._urls) - before

    def __len__(self) -> int:
        with self._lock:
            return len(self._urls)

    def snapshot(self) -> Set[str]:
        with self._lock:
            return set(self._urls)


class CrawlEngine(ABC):
    """
    Abstract engine interface. Implementations own the crawl lifecycle.
    """
    @abstractmethod
    async def crawl(self) -> CrawlReport:  # pragma: no cover - interface
        ...
