from __future__ import annotations

import logging
from typing import Optional, Set
from urllib.parse import urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup

from ..errors import ParseError

logger = logging.getLogger(__name__)

_WEB_SCHEMES = ("http", "https")


def strip_fragment(url: str) -> str:
    """Return ``url`` without its ``#fragment`` part."""
    return urldefrag(url).url


def resolve_href(href: Optional[str], base_url: str) -> str:
    """
    Resolve an anchor href to an absolute http(s) URL.

    Fragment-only hrefs ("#top") point back at the base page, so they resolve
    to ``base_url`` stripped of its own fragment. Every other href keeps its
    exact resolved form: no trailing-slash, query or fragment canonicalization.

    Raises ParseError for empty hrefs, non-web schemes (javascript:, mailto:,
    tel:, data:, ...) and anything urljoin/urlparse rejects.
    """
    if not isinstance(href, str):
        raise ParseError(f"href is not a string: {href!r}")
    href = href.strip()
    if not href:
        raise ParseError("empty href")

    if href.startswith("#"):
        return strip_fragment(base_url)

    try:
        absolute = urljoin(base_url, href)
        parsed = urlparse(absolute)
        # Touch .port so malformed netlocs ("host:abc") fail here, not later.
        parsed.port
    except ValueError as exc:
        raise ParseError(f"cannot resolve {href!r} against {base_url!r}: {exc}") from exc

    if parsed.scheme.lower() not in _WEB_SCHEMES or not parsed.netloc:
        raise ParseError(f"not a web URL: {absolute!r}")
    return absolute


def extract_links(html: str, base_url: str) -> Set[str]:
    """
    Extract absolute links from an HTML string.
    Unresolvable hrefs are dropped; duplicates collapse by exact string.
    """
    soup = BeautifulSoup(html, "html.parser")
    out: Set[str] = set()
    for a in soup.select("a[href]"):
        try:
            out.add(resolve_href(a.get("href"), base_url))
        except ParseError as exc:
            logger.debug("Dropping href on %s: %s", base_url, exc)
    return out


def host_of(url: str) -> str:
    """Lower-cased ``host[:port]`` of ``url``; empty when it has none."""
    return urlparse(url).netloc.lower()


def is_same_origin(href: str, base_url: str) -> bool:
    """
    Frontier-expansion test.

    A link is internal when the raw href is path-absolute ("/x", but not the
    protocol-relative "//host/x"), or when it resolves to an http(s) URL on
    exactly the base URL's host. Subdomains count as different origins.
    """
    if not isinstance(href, str):
        return False
    raw = href.strip()
    if raw.startswith("/") and not raw.startswith("//"):
        return True
    try:
        absolute = resolve_href(raw, base_url)
    except ParseError:
        return False
    return host_of(absolute) == host_of(base_url)
