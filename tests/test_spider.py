"""Tests for the crawl orchestrator."""

import json
import threading

import pytest

from tinycrawl.crawler.config import CrawlConfig
from tinycrawl.crawler.errors import HttpStatusError, NetworkError, StorageError
from tinycrawl.crawler.fetcher import Fetcher
from tinycrawl.crawler.spider import Spider
from tinycrawl.crawler.storage import Storage
from tinycrawl.crawler.types import FetchResult


def _page(*hrefs):
    links = "".join(f'<a href="{href}">link</a>' for href in hrefs)
    return f"<html><body>{links}</body></html>"


class FakeFetcher(Fetcher):
    """Serves canned pages instead of hitting the network.

    `pages` maps a URL to an HTML string, a `(content_type, body)` tuple, or an
    exception instance to raise. `redirects` maps a URL to its final URL.
    """

    def __init__(self, config, pages, redirects=None):
        super().__init__(config)
        self.pages = pages
        self.redirects = redirects or {}
        self.calls = []
        self._calls_lock = threading.Lock()

    def fetch(self, url):
        with self._calls_lock:
            self.calls.append(url)

        page = self.pages.get(url)
        if page is None:
            raise HttpStatusError(f"HTTP error status: 404 for {url}", url=url, status_code=404)
        if isinstance(page, Exception):
            raise page

        content_type, body = page if isinstance(page, tuple) else ("text/html", page)
        return FetchResult(
            requested_url=url,
            final_url=self.redirects.get(url, url),
            status_code=200,
            content_type=content_type,
            body=body.encode("utf-8") if isinstance(body, str) else body,
        )


class TestSpider:
    """Test cases for Spider.crawl."""

    @pytest.fixture
    def config(self, tmp_path):
        """Fast config writing into the temporary directory."""
        return CrawlConfig(
            max_depth=5,
            max_loops=10,
            max_concurrent=4,
            min_request_delay_ms=0,
            max_request_delay_ms=0,
            output_dir=tmp_path / "output" / "crawler",
            debug_dir=tmp_path / "debug",
        )

    def _crawl(self, config, pages, start_url="https://example.com", redirects=None):
        fetcher = FakeFetcher(config, pages, redirects)
        with Spider(config, fetcher=fetcher) as spider:
            report = spider.crawl(start_url)
        return report, fetcher

    def test_single_loop_processes_only_the_seed(self, config):
        pages = {
            "https://example.com/": _page("/one", "/two", "https://other.org/x"),
            "https://example.com/one": _page(),
            "https://example.com/two": _page(),
        }
        report, fetcher = self._crawl(config.with_overrides(max_depth=1, max_loops=1), pages)

        assert report.base_url == "https://example.com/"
        assert report.base_domain == "example.com"
        assert report.urls == ["https://example.com/"]
        assert sorted(report.remaining_queue) == [
            "https://example.com/one",
            "https://example.com/two",
        ]
        assert fetcher.calls == ["https://example.com/"]

    def test_second_loop_crawls_discovered_links(self, config):
        pages = {
            "https://example.com/": _page("/one", "/two", "https://other.org/x"),
            "https://example.com/one": _page("/"),
            "https://example.com/two": _page("/"),
        }
        report, fetcher = self._crawl(config.with_overrides(max_depth=2, max_loops=2), pages)

        assert report.urls == [
            "https://example.com/",
            "https://example.com/one",
            "https://example.com/two",
        ]
        assert report.remaining_queue == []
        assert "https://other.org/x" not in fetcher.calls
        assert report.stats["loops"] == 2

    def test_links_past_max_depth_are_skipped(self, config):
        pages = {
            "https://example.com/": _page("/one"),
            "https://example.com/one": _page("/two"),
            "https://example.com/two": _page(),
        }
        report, _ = self._crawl(config.with_overrides(max_depth=2), pages)

        assert report.urls == ["https://example.com/", "https://example.com/one"]
        assert report.skipped_urls == {"max_depth_exceeded": ["https://example.com/two"]}

    def test_each_url_is_fetched_at_most_once(self, config):
        pages = {
            "https://example.com/": _page("/a", "/b", "/c", "/a", "/"),
            "https://example.com/a": _page("/b", "/c", "/"),
            "https://example.com/b": _page("/a", "/c"),
            "https://example.com/c": _page("/a", "/b", "/"),
        }
        report, fetcher = self._crawl(config, pages)

        assert sorted(fetcher.calls) == sorted(set(fetcher.calls))
        assert len(report.urls) == len(set(report.urls)) == 4
        assert report.urls == sorted(report.urls)
        assert report.stats["visited_urls"] >= len(report.urls)

    def test_priority_links_are_dispatched_first(self, config):
        pages = {
            "https://example.com/": _page("/shop", "/news", "/contact"),
            "https://example.com/shop": _page(),
            "https://example.com/news": _page(),
            "https://example.com/contact": _page(),
        }
        report, fetcher = self._crawl(config.with_overrides(max_concurrent=1), pages)

        assert fetcher.calls[:2] == ["https://example.com/", "https://example.com/contact"]
        assert len(report.urls) == 4

    def test_redirects_are_recorded(self, config):
        pages = {
            "https://example.com/": _page("/old"),
            "https://example.com/old": _page("fresh"),
            "https://example.com/new/fresh": _page(),
        }
        redirects = {"https://example.com/old": "https://example.com/new/"}
        report, fetcher = self._crawl(config, pages, redirects=redirects)

        assert report.redirects == {"https://example.com/old": "https://example.com/new/"}
        # Relative links resolve against the final URL.
        assert "https://example.com/new/fresh" in fetcher.calls

    def test_unreachable_urls_are_recorded(self, config):
        pages = {
            "https://example.com/": _page("/missing", "/timeout"),
            "https://example.com/timeout": NetworkError("timed out"),
        }
        report, _ = self._crawl(config, pages)

        assert sorted(report.unreachable_urls) == [
            "https://example.com/missing",
            "https://example.com/timeout",
        ]
        assert report.urls == ["https://example.com/"]

    def test_unreachable_seed_still_saves_report(self, config):
        report, _ = self._crawl(config, {})

        assert report.urls == []
        assert report.unreachable_urls == ["https://example.com/"]
        assert (config.output_dir / "example_com.json").exists()

    def test_non_html_is_skipped_silently(self, config):
        pages = {
            "https://example.com/": _page("/report.pdf"),
            "https://example.com/report.pdf": ("application/pdf", b"%PDF-1.4"),
        }
        report, _ = self._crawl(config, pages)

        assert report.urls == ["https://example.com/", "https://example.com/report.pdf"]
        assert report.unreachable_urls == []
        assert report.skipped_urls == {}

    def test_unfollowable_hrefs_are_ignored(self, config):
        pages = {
            "https://example.com/": _page("#top", "javascript:void(0)", "mailto:a@example.com", ""),
        }
        report, fetcher = self._crawl(config, pages)

        assert fetcher.calls == ["https://example.com/"]
        assert report.remaining_queue == []
        # An empty queue ends the crawl before max_loops.
        assert report.stats["loops"] == 1

    def test_skip_and_subdomain_patterns(self, config):
        pages = {
            "https://example.com/": _page(
                "/blog/post",
                "https://docs.example.com/guide",
                "https://camps.example.com/",
            ),
            "https://camps.example.com/": _page(),
        }
        report, _ = self._crawl(config, pages)

        assert report.skipped_urls == {
            "skip_pattern": ["https://example.com/blog/post"],
            "subdomain_pattern": ["https://docs.example.com/guide"],
        }
        assert "https://camps.example.com/" in report.urls

    def test_trap_patterns_stop_expansion(self, config):
        listing = [f"/item/{i}" for i in range(1, 5)]
        pages = {"https://example.com/": _page(*listing)}
        for href in listing:
            pages[f"https://example.com{href}"] = _page(f"{href}/more")

        config = config.with_overrides(pattern_threshold=4)
        report, fetcher = self._crawl(config, pages)

        assert report.massive_link_patterns == ["https://example.com/item/*"]
        assert sorted(report.skipped_urls["massive_link_pattern"]) == [
            f"https://example.com/item/{i}" for i in range(1, 5)
        ]
        assert fetcher.calls == ["https://example.com/"]

    def test_depth_filter_runs_before_pattern_filters(self, config):
        listing = [f"/blog/item/{i}" for i in range(1, 5)]
        pages = {"https://example.com/": _page(*listing)}

        config = config.with_overrides(max_depth=1, pattern_threshold=4)
        report, fetcher = self._crawl(config, pages)

        # Too deep, a trap and a skip-pattern match at once: depth wins.
        assert report.massive_link_patterns == ["https://example.com/blog/item/*"]
        assert list(report.skipped_urls) == ["max_depth_exceeded"]
        assert sorted(report.skipped_urls["max_depth_exceeded"]) == [
            f"https://example.com/blog/item/{i}" for i in range(1, 5)
        ]
        assert fetcher.calls == ["https://example.com/"]

    def test_trap_filter_runs_before_skip_patterns(self, config):
        listing = [f"/blog/item/{i}" for i in range(1, 5)]
        pages = {"https://example.com/": _page(*listing)}

        report, _ = self._crawl(config.with_overrides(pattern_threshold=4), pages)

        assert list(report.skipped_urls) == ["massive_link_pattern"]
        assert sorted(report.skipped_urls["massive_link_pattern"]) == [
            f"https://example.com/blog/item/{i}" for i in range(1, 5)
        ]

    def test_skip_patterns_run_before_subdomain_patterns(self, config):
        pages = {"https://example.com/": _page("https://docs.example.com/blog/x")}
        report, _ = self._crawl(config, pages)

        assert report.skipped_urls == {"skip_pattern": ["https://docs.example.com/blog/x"]}

    def test_equivalent_encodings_are_fetched_once(self, config):
        pages = {
            "https://example.com/": _page("/a b", "/a%20b"),
            "https://example.com/a%20b": _page(),
        }
        report, fetcher = self._crawl(config, pages)

        assert fetcher.calls == ["https://example.com/", "https://example.com/a%20b"]
        assert report.urls == ["https://example.com/", "https://example.com/a%20b"]
        assert report.redirects == {}

    def test_sparse_page_saves_debug_html(self, config):
        pages = {"https://example.com/": "<html><body>captcha</body></html>"}
        self._crawl(config, pages)

        debug_file = config.debug_dir / "example.com" / "debug_https_example_com_.html"
        assert debug_file.read_text(encoding="utf-8") == pages["https://example.com/"]

    def test_report_is_persisted(self, config):
        pages = {"https://www.example.com/": _page("/about"), "https://www.example.com/about": _page()}
        report, _ = self._crawl(config, pages, start_url="https://www.example.com")

        saved = json.loads((config.output_dir / "example_com.json").read_text(encoding="utf-8"))
        assert saved == report.to_json()

    def test_storage_failure_propagates(self, config, tmp_path):
        blocker = tmp_path / "blocked"
        blocker.write_text("x", encoding="utf-8")
        fetcher = FakeFetcher(config, {"https://example.com/": _page()})
        spider = Spider(config, fetcher=fetcher, storage=Storage(blocker / "crawler", tmp_path / "debug"))

        with pytest.raises(StorageError):
            spider.crawl("https://example.com")

    def test_unexpected_worker_error_is_contained(self, config):
        pages = {"https://example.com/": _page("/boom"), "https://example.com/boom": RuntimeError("bug")}
        report, _ = self._crawl(config, pages)

        assert report.urls == ["https://example.com/", "https://example.com/boom"]
        assert report.unreachable_urls == []

    def test_zero_loops_leaves_seed_queued(self, config):
        report, fetcher = self._crawl(config.with_overrides(max_loops=0), {})

        assert fetcher.calls == []
        assert report.remaining_queue == ["https://example.com/"]
