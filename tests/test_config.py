from __future__ import annotations

import json
from pathlib import Path

import pytest

from product_discovery.config import CrawlConfig, migrate_config
from product_discovery.version import CONFIG_SCHEMA_VERSION


def test_defaults_are_bounded() -> None:
    cfg = CrawlConfig(start_url="https://shop.test/catalog")
    assert cfg.max_concurrency == 5
    assert cfg.max_pages == 500
    assert cfg.fetcher == "static"
    assert cfg.resolved_base_url() == "https://shop.test/"


def test_explicit_base_url_wins() -> None:
    cfg = CrawlConfig(start_url="https://shop.test/catalog", base_url="https://shop.test/catalog/")
    assert cfg.resolved_base_url() == "https://shop.test/catalog/"


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DISCOVERY_START_URL", "https://shop.test/")
    monkeypatch.setenv("DISCOVERY_FETCHER", "scroll")
    monkeypatch.setenv("DISCOVERY_MAX_CONCURRENCY", "9")
    monkeypatch.setenv("DISCOVERY_MAX_PAGES", "")
    monkeypatch.setenv("DISCOVERY_MAX_DEPTH", "3")
    monkeypatch.setenv("DISCOVERY_PRODUCT_PATTERNS", "/dp/, iid=")
    monkeypatch.setenv("DISCOVERY_HEADLESS", "false")

    cfg = CrawlConfig.from_env()

    assert cfg.start_url == "https://shop.test/"
    assert cfg.fetcher == "scroll"
    assert cfg.max_concurrency == 9
    assert cfg.max_pages is None
    assert cfg.max_depth == 3
    assert cfg.product_patterns == ["/dp/", "iid="]
    assert cfg.headless is False


def test_from_file_migrates_v1(tmp_path: Path) -> None:
    path = tmp_path / "crawl.json"
    path.write_text(
        json.dumps(
            {
                "start_urls": ["https://shop.test/", "https://other.test/"],
                "allowed_domains": ["shop.test"],
                "engine": "engines.simple_engine:SimpleCrawlEngine",
                "exporter": "export.csv_exporter:CSVExporter",
                "max_depth": 2,
            }
        ),
        encoding="utf-8",
    )

    cfg = CrawlConfig.from_file(path)

    assert cfg.schema_version == CONFIG_SCHEMA_VERSION
    assert cfg.start_url == "https://shop.test/"
    assert cfg.max_depth == 2
    assert cfg.exporter == "product_discovery.export.csv_exporter:CSVExporter"


def test_migrate_is_pure() -> None:
    raw = {"schema_version": 1, "start_urls": ["https://shop.test/"]}
    migrate_config(raw)
    assert raw == {"schema_version": 1, "start_urls": ["https://shop.test/"]}


@pytest.mark.parametrize(
    "overrides",
    [
        {"start_url": ""},
        {"start_url": "shop.test/catalog"},
        {"start_url": "ftp://shop.test/"},
        {"base_url": "/relative"},
        {"max_concurrency": 0},
        {"max_pages": None, "max_depth": None},
        {"max_pages": 0},
        {"max_depth": -1},
        {"retries": -1},
        {"max_scrolls": 0},
    ],
)
def test_validate_rejects(overrides: dict, tmp_path: Path) -> None:
    values = {"start_url": "https://shop.test/", "output_path": str(tmp_path / "out.json")}
    values.update(overrides)
    with pytest.raises(ValueError):
        CrawlConfig(**values).validate()


def test_validate_creates_output_dir(tmp_path: Path) -> None:
    out = tmp_path / "nested" / "dir" / "urls.json"
    CrawlConfig(start_url="https://shop.test/", output_path=str(out)).validate()
    assert out.parent.is_dir()


def test_depth_alone_is_an_acceptable_ceiling(tmp_path: Path) -> None:
    CrawlConfig(
        start_url="https://shop.test/", max_pages=None, max_depth=4, output_path=str(tmp_path / "o.json")
    ).validate()
