from __future__ import annotations

from typing import Dict, Iterable, List, Protocol
from urllib.parse import urlparse


class Exporter(Protocol):
    def export(self, data: Dict[str, List[str]], path: str) -> None:
        ...


def group_by_domain(urls: Iterable[str]) -> Dict[str, List[str]]:
    """Group product URLs by host, each list sorted for stable output."""
    grouped: Dict[str, List[str]] = {}
    for url in urls:
        grouped.setdefault(urlparse(url).netloc, []).append(url)
    return {domain: sorted(items) for domain, items in sorted(grouped.items())}
