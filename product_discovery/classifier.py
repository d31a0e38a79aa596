from __future__ import annotations

import logging
import re
from typing import Iterable, Optional, Pattern, Tuple
from urllib.parse import urlsplit, urlunsplit

from .errors import ParseError
from .utils.parsing import resolve_href

logger = logging.getLogger(__name__)

#: Rules that mark a URL as a product-detail page, checked in order.
DEFAULT_PRODUCT_PATTERNS: Tuple[str, ...] = (
    r"/product/",
    r"/item/",
    r"/p/",
    r"product-",
    r"item-",
    r"product-id-",
)


class PatternTable:
    """
    Ordered, read-only set of compiled product URL rules.
    Build once (from defaults or configuration) and share across the whole crawl.
    """

    __slots__ = ("_rules",)

    def __init__(self, rules: Iterable[Pattern[str]]) -> None:
        self._rules: Tuple[Pattern[str], ...] = tuple(rules)

    @classmethod
    def from_strings(cls, patterns: Iterable[str]) -> "PatternTable":
        compiled = []
        for source in patterns:
            try:
                compiled.append(re.compile(source))
            except (re.error, TypeError) as exc:
                raise ParseError(f"invalid product pattern {source!r}: {exc}") from exc
        return cls(compiled)

    @classmethod
    def default(cls) -> "PatternTable":
        return _DEFAULT_TABLE

    @property
    def sources(self) -> Tuple[str, ...]:
        return tuple(rule.pattern for rule in self._rules)

    def match(self, url: str) -> Optional[str]:
        """Return the source of the first rule matching ``url``, or None."""
        if not isinstance(url, str):
            return None
        for rule in self._rules:
            if rule.search(url):
                return rule.pattern
        return None

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"PatternTable({list(self.sources)!r})"


_DEFAULT_TABLE = PatternTable(re.compile(p) for p in DEFAULT_PRODUCT_PATTERNS)


def _location_part(url: str) -> Optional[str]:
    # Scheme and host never decide: only path, query and fragment are matched.
    if not isinstance(url, str):
        return None
    try:
        parts = urlsplit(url)
    except ValueError:
        return None
    if parts.scheme and parts.netloc:
        return urlunsplit(("", "", parts.path, parts.query, parts.fragment))
    return url


def is_product_url(url: str, patterns: Optional[PatternTable] = None) -> bool:
    """
    True if ``url`` matches any rule of ``patterns`` (the defaults when omitted).
    Absolute URLs are judged on their path, query and fragment only.
    """
    table = patterns if patterns is not None else _DEFAULT_TABLE
    location = _location_part(url)
    if location is None:
        return False
    rule = table.match(location)
    if rule is not None:
        logger.debug("Pattern %r matched %s", rule, url)
        return True
    return False


def classify_href(href: str, base_url: str, patterns: Optional[PatternTable] = None) -> bool:
    """
    Resolve ``href`` against ``base_url`` and classify the absolute result.
    Hrefs that cannot be resolved are never product URLs.
    """
    try:
        absolute = resolve_href(href, base_url)
    except ParseError:
        return False
    return is_product_url(absolute, patterns)
