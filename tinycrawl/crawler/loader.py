"""Crawl many seed URLs, one independent Spider per site."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable

from .config import CrawlConfig
from .constants import DEFAULT_MAX_CONCURRENT_SITES, DEFAULT_URL_FILE
from .errors import StorageError
from .spider import Spider
from .types import SiteOutcome


LOGGER = logging.getLogger(__name__)

SpiderFactory = Callable[[CrawlConfig], Spider]


class Loader:
    """Run a bounded number of site crawls in parallel.

    Sites share only the immutable config. A failure on one site ends up in its
    own `SiteOutcome` and never stops the others.
    """

    def __init__(
        self,
        config: CrawlConfig | None = None,
        *,
        max_concurrent_sites: int = DEFAULT_MAX_CONCURRENT_SITES,
        url_file_path: str | Path = DEFAULT_URL_FILE,
        spider_factory: SpiderFactory = Spider,
    ) -> None:
        if max_concurrent_sites <= 0:
            raise ValueError("max_concurrent_sites must be > 0")

        self.config = config or CrawlConfig()
        self.max_concurrent_sites = max_concurrent_sites
        self.url_file_path = Path(url_file_path)
        self.spider_factory = spider_factory

    def load_urls(self) -> list[str]:
        """Read seed URLs, one per line, ignoring blanks and `#` comments."""

        try:
            text = self.url_file_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"URL file not found: {self.url_file_path} - {exc}") from exc

        urls = []
        for line in text.splitlines():
            stripped = line.strip()
            if stripped and not stripped.startswith("#"):
                urls.append(stripped)
        return urls

    def crawl_all(self) -> list[SiteOutcome]:
        """Crawl every seed; outcomes come back in completion order."""

        urls = self.load_urls()
        total = len(urls)

        LOGGER.info("Loaded %d URLs from %s", total, self.url_file_path)
        LOGGER.info("Starting crawl with %d concurrent sites", self.max_concurrent_sites)

        processed = 0
        outcomes: list[SiteOutcome] = []

        with ThreadPoolExecutor(
            max_workers=self.max_concurrent_sites,
            thread_name_prefix="crawler-site",
        ) as executor:
            futures = {executor.submit(self._crawl_site, url): url for url in urls}
            for future in as_completed(futures):
                outcomes.append(future.result())
                processed += 1
                LOGGER.info("Progress: %d/%d URLs crawled", processed, total)

        LOGGER.info("Completed crawling all URLs")
        return outcomes

    def _crawl_site(self, url: str) -> SiteOutcome:
        try:
            with self.spider_factory(self.config) as spider:
                report = spider.crawl(url)
        except Exception as exc:
            message = f"Failed to crawl {url}: {exc}"
            LOGGER.error(message)
            return SiteOutcome(seed_url=url, success=False, message=message)

        return SiteOutcome(
            seed_url=url,
            success=True,
            message=f"Successfully crawled {url}: {len(report.urls)} URLs found",
            url_count=len(report.urls),
        )


__all__ = ["Loader"]
