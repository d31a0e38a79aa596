from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import List, Optional, Dict, Any
from pathlib import Path
from urllib.parse import urlparse
import os
import json

from .version import __version__, CONFIG_SCHEMA_VERSION


@dataclass
class CrawlConfig:
    """
    Canonical configuration object passed throughout the system.
    Keep it dataclass-only (no heavy deps) so engine, CLI and API share it.
    """
    schema_version: int = CONFIG_SCHEMA_VERSION
    start_url: str = ""
    # Base for resolving relative links; defaults to the start URL's origin.
    base_url: Optional[str] = None
    # Short name ("static", "rendered", "scroll") or dotted module:Class path.
    fetcher: str = "static"
    max_concurrency: int = 5
    # Termination ceilings; at least one must be set.
    max_pages: Optional[int] = 500
    max_depth: Optional[int] = None
    request_timeout: float = 15.0
    retries: int = 0
    user_agent: str = f"product_discovery/{__version__}"
    # Regex rules; None keeps the built-in product patterns.
    product_patterns: Optional[List[str]] = None
    # Rendered fetchers only
    scroll_delay: float = 0.3
    max_scrolls: int = 20
    render_timeout: float = 30.0
    headless: bool = True
    intercept_patterns: List[str] = field(default_factory=list)
    exporter: str = "product_discovery.export.json_exporter:JSONExporter"
    output_path: str = "output/product_urls.json"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def resolved_base_url(self) -> str:
        if self.base_url:
            return self.base_url
        parsed = urlparse(self.start_url)
        return f"{parsed.scheme}://{parsed.netloc}/"

    # ---------- Loaders ----------

    @classmethod
    def from_env(cls) -> "CrawlConfig":
        """
        Build config from DISCOVERY_* environment variables (all optional).
        """
        def _get(name: str, default: str) -> str:
            return os.getenv(name, default)

        def _opt_int(name: str, default: str) -> Optional[int]:
            raw = _get(name, default).strip()
            return int(raw) if raw else None

        patterns = [p for p in _get("DISCOVERY_PRODUCT_PATTERNS", "").split(",") if p.strip()]

        return cls(
            start_url=_get("DISCOVERY_START_URL", ""),
            base_url=_get("DISCOVERY_BASE_URL", "") or None,
            fetcher=_get("DISCOVERY_FETCHER", "static"),
            max_concurrency=int(_get("DISCOVERY_MAX_CONCURRENCY", "5")),
            max_pages=_opt_int("DISCOVERY_MAX_PAGES", "500"),
            max_depth=_opt_int("DISCOVERY_MAX_DEPTH", ""),
            request_timeout=float(_get("DISCOVERY_REQUEST_TIMEOUT", "15.0")),
            retries=int(_get("DISCOVERY_RETRIES", "0")),
            user_agent=_get("DISCOVERY_USER_AGENT", f"product_discovery/{__version__}"),
            product_patterns=[p.strip() for p in patterns] or None,
            scroll_delay=float(_get("DISCOVERY_SCROLL_DELAY", "0.3")),
            max_scrolls=int(_get("DISCOVERY_MAX_SCROLLS", "20")),
            render_timeout=float(_get("DISCOVERY_RENDER_TIMEOUT", "30.0")),
            headless=_get("DISCOVERY_HEADLESS", "1").lower() not in ("0", "false", "no"),
            exporter=_get("DISCOVERY_EXPORTER", "product_discovery.export.json_exporter:JSONExporter"),
            output_path=_get("DISCOVERY_OUTPUT_PATH", "output/product_urls.json"),
        )

    @classmethod
    def from_file(cls, path: str | os.PathLike[str]) -> "CrawlConfig":
        """
        Load configuration from a JSON file. Supports schema migration for older versions.
        """
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        data = migrate_config(data)
        return cls(**data)

    # ---------- Validation ----------

    def validate(self, *, create_output_dir: bool = True) -> None:
        for name, value in (("start_url", self.start_url), ("base_url", self.resolved_base_url())):
            parsed = urlparse(value or "")
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ValueError(f"{name} must be an absolute http(s) URL, got {value!r}")
        if self.max_concurrency <= 0:
            raise ValueError("max_concurrency must be > 0")
        if self.max_pages is None and self.max_depth is None:
            raise ValueError("set max_pages and/or max_depth; an unbounded crawl may never finish")
        if self.max_pages is not None and self.max_pages <= 0:
            raise ValueError("max_pages must be > 0")
        if self.max_depth is not None and self.max_depth < 0:
            raise ValueError("max_depth must be >= 0")
        if self.retries < 0:
            raise ValueError("retries must be >= 0")
        if self.max_scrolls <= 0:
            raise ValueError("max_scrolls must be > 0")
        if create_output_dir:
            # Validate output path parent exists or is creatable
            parent = Path(self.output_path).parent
            parent.mkdir(parents=True, exist_ok=True)


def migrate_config(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Migrate config dict to the latest schema version.
    Keep this pure and additive. Add migrations here as you bump schema.
    """
    raw = dict(raw)
    schema = raw.get("schema_version", 1)

    if schema < 2:
        # v1 crawled a list of start URLs with a pluggable "engine"; v2 crawls one site.
        start_urls = raw.pop("start_urls", None) or []
        if start_urls and not raw.get("start_url"):
            raw["start_url"] = start_urls[0]
        for dropped in ("allowed_domains", "engine", "extra_adapters", "keywords"):
            raw.pop(dropped, None)
        exporter = raw.get("exporter")
        if isinstance(exporter, str) and exporter.startswith("export."):
            raw["exporter"] = f"product_discovery.{exporter}"
        raw["schema_version"] = 2

    raw.setdefault("schema_version", CONFIG_SCHEMA_VERSION)
    return raw
