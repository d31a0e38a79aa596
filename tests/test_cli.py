from __future__ import annotations

import csv
import json
from pathlib import Path

import pytest

from product_discovery.engines.frontier_engine import FrontierCrawlEngine
from product_discovery.ui import cli

from conftest import SHOP_PAGES, SHOP_PRODUCTS, GraphFetcher


@pytest.fixture
def graph_engine(monkeypatch: pytest.MonkeyPatch):
    created = []

    def _engine(cfg):
        engine = FrontierCrawlEngine(cfg, fetcher=GraphFetcher(dict(SHOP_PAGES)))
        created.append(engine)
        return engine

    monkeypatch.setattr(cli, "FrontierCrawlEngine", _engine)
    return created


def test_parser_defaults() -> None:
    args = cli.build_arg_parser().parse_args(["https://shop.test/"])
    assert args.url == "https://shop.test/"
    assert args.patterns is None
    assert not args.serve


def test_flags_override_config(tmp_path: Path) -> None:
    args = cli.build_arg_parser().parse_args(
        [
            "https://shop.test/",
            "--fetcher", "scroll",
            "--max-concurrency", "2",
            "--max-pages", "40",
            "--max-depth", "3",
            "--pattern", "/dp/",
            "--pattern", "iid=",
            "--max-scrolls", "5",
            "--headed",
            "--output", str(tmp_path / "o.json"),
        ]
    )
    cfg = cli._load_config(args)

    assert cfg.fetcher == "scroll"
    assert (cfg.max_concurrency, cfg.max_pages, cfg.max_depth) == (2, 40, 3)
    assert cfg.product_patterns == ["/dp/", "iid="]
    assert cfg.max_scrolls == 5
    assert cfg.headless is False


def test_run_cli_writes_json(tmp_path: Path, graph_engine) -> None:
    out = tmp_path / "urls.json"
    code = cli.run_cli(["https://shop.test/", "--output", str(out), "--log-level", "WARNING"])

    assert code == 0
    data = json.loads(out.read_text(encoding="utf-8"))
    assert set(data) == {"shop.test", "other.test"}
    assert {u for urls in data.values() for u in urls} == SHOP_PRODUCTS
    assert data["shop.test"] == sorted(data["shop.test"])


def test_run_cli_csv_exporter(tmp_path: Path, graph_engine) -> None:
    out = tmp_path / "urls.csv"
    code = cli.run_cli(["https://shop.test/", "--exporter", "csv", "--output", str(out)])

    assert code == 0
    with open(out, encoding="utf-8", newline="") as f:
        rows = list(csv.DictReader(f))
    assert {r["url"] for r in rows} == SHOP_PRODUCTS


def test_run_cli_unreachable_start(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        cli, "FrontierCrawlEngine", lambda cfg: FrontierCrawlEngine(cfg, fetcher=GraphFetcher({}))
    )
    out = tmp_path / "urls.json"
    assert cli.run_cli(["https://shop.test/", "--output", str(out)]) == 1
    assert not out.exists()


def test_run_cli_bad_configuration(tmp_path: Path) -> None:
    assert cli.run_cli(["not-a-url", "--output", str(tmp_path / "o.json")]) == 2
    assert cli.run_cli(
        ["https://shop.test/", "--pattern", "(", "--output", str(tmp_path / "o.json")]
    ) == 2
    assert cli.run_cli(
        ["https://shop.test/", "--fetcher", "nope", "--output", str(tmp_path / "o.json")]
    ) == 2
