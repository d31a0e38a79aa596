from __future__ import annotations

from typing import Any, Dict, List, Optional
import logging

try:
    from fastapi import FastAPI, HTTPException
    from pydantic import BaseModel
except ImportError as exc:  # pragma: no cover - optional dependency
    raise RuntimeError(
        "FastAPI not installed. Install with `pip install 'product-discovery[api]'` "
        "or avoid using the API server."
    ) from exc

from ..config import CrawlConfig
from ..engines.base import CrawlReport
from ..engines.frontier_engine import FrontierCrawlEngine
from ..errors import DiscoveryError, StartPageError
from ..version import __version__

logger = logging.getLogger(__name__)

app = FastAPI(title="product_discovery API", version=__version__)


class CrawlRequest(BaseModel):
    start_url: str
    base_url: Optional[str] = None
    fetcher: Optional[str] = None
    max_concurrency: Optional[int] = None
    max_pages: Optional[int] = None
    max_depth: Optional[int] = None
    product_patterns: Optional[List[str]] = None


def build_engine(cfg: CrawlConfig) -> FrontierCrawlEngine:
    return FrontierCrawlEngine(cfg)


@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok", "version": __version__}


@app.post("/crawl")
async def crawl(req: CrawlRequest) -> Dict[str, Any]:
    cfg = CrawlConfig.from_env()
    cfg.start_url = req.start_url
    if req.base_url is not None:
        cfg.base_url = req.base_url
    if req.fetcher:
        cfg.fetcher = req.fetcher
    if req.max_concurrency is not None:
        cfg.max_concurrency = req.max_concurrency
    if req.max_pages is not None:
        cfg.max_pages = req.max_pages
    if req.max_depth is not None:
        cfg.max_depth = req.max_depth
    if req.product_patterns:
        cfg.product_patterns = req.product_patterns

    try:
        cfg.validate(create_output_dir=False)
        engine = build_engine(cfg)
    except (ValueError, DiscoveryError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    try:
        report: CrawlReport = await engine.crawl()
    except StartPageError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except DiscoveryError as exc:
        logger.error("Crawl of %s aborted: %s", cfg.start_url, exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    return {
        "visited": report.visited_count,
        "product_urls": report.sorted_products(),
        "failed": report.failed,
        "truncated": report.truncated,
    }
