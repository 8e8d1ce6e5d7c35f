import json
import signal
from unittest.mock import MagicMock, patch

import pytest

from webcrawler.cli import build_parser, install_interrupt_handler, main
from webcrawler.config import ConfigError, CrawlConfig

from conftest import StubFetcher, make_page

PAGES = {
    "https://a.test": make_page("Root", ("/a", "/b")),
    "https://a.test/a": make_page("A"),
    "https://a.test/b": make_page("B"),
}


@pytest.mark.parametrize("kwargs", [
    {"root_url": ""},
    {"root_url": "   "},
    {"root_url": "example.com"},
    {"root_url": "ftp://example.com/"},
    {"root_url": "https://example.com/", "max_depth": -1},
    {"root_url": "https://example.com/", "max_pages": 0},
    {"root_url": "https://example.com/", "workers": 0},
    {"root_url": "https://example.com/", "idle_backoff_s": 0},
])
def test_invalid_config_fails_fast(kwargs):
    with pytest.raises(ConfigError):
        CrawlConfig(**kwargs)


def test_config_derives_root_domain():
    config = CrawlConfig(root_url="  https://Example.com:8080/start  ")
    assert config.root_url == "https://Example.com:8080/start"
    assert config.root_domain == "example.com"


def test_parser_defaults():
    args = build_parser().parse_args(["https://example.com/"])
    assert args.max_depth == 3
    assert args.max_pages == 100
    assert args.workers == 10
    assert args.allow_external is False


def test_main_rejects_bad_root_url(capsys):
    assert main(["not-a-url"]) == 2
    assert "Invalid root URL" in capsys.readouterr().err


def test_main_prints_json_summary(tmp_path, capsys):
    with patch("webcrawler.scheduler.Fetcher", return_value=StubFetcher(PAGES)):
        code = main([
            "https://a.test/",
            "--output-dir", str(tmp_path / "out"),
            "--workers", "2",
            "--out", "-",
            "--verbose",
        ])

    assert code == 0
    captured = capsys.readouterr()
    payload = json.loads(captured.out)
    assert payload["root_url"] == "https://a.test/"
    assert payload["pages_crawled"] == 3
    assert payload["urls_discovered"] == 3
    assert "CRAWL SUMMARY" in captured.err
    assert "Links found:            2" in captured.err
    assert payload["links_found"] == 2
    assert len(list((tmp_path / "out").glob("*.html"))) == 3


def test_main_writes_summary_file(tmp_path):
    out_file = tmp_path / "reports" / "summary.json"
    with patch("webcrawler.scheduler.Fetcher", return_value=StubFetcher(PAGES)):
        code = main([
            "https://a.test/",
            "--output-dir", str(tmp_path / "out"),
            "--max-pages", "1",
            "--out", str(out_file),
        ])

    assert code == 0
    payload = json.loads(out_file.read_text(encoding="utf-8"))
    assert payload["pages_crawled"] == 1


def test_first_interrupt_stops_second_one_raises():
    scheduler = MagicMock()
    original = signal.getsignal(signal.SIGINT)
    try:
        previous = install_interrupt_handler(scheduler)
        assert previous is original

        handler = signal.getsignal(signal.SIGINT)
        handler(signal.SIGINT, None)

        scheduler.stop.assert_called_once_with()
        # A second Ctrl-C goes to the handler that was there before
        assert signal.getsignal(signal.SIGINT) is original
    finally:
        signal.signal(signal.SIGINT, original)
