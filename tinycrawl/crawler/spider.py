"""Batch-loop crawl orchestration for a single site."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed

from .config import CrawlConfig
from .constants import (
    DEBUG_MIN_BODY_CHARS,
    DEBUG_MIN_LINKS,
    DEFAULT_LINK_PRIORITY,
    PRIORITY_LINK_PRIORITY,
)
from .errors import ContentTypeError, FetchError, UrlError
from .fetcher import Fetcher, has_anti_bot_protection, html_stats, requires_javascript
from .frontier import Frontier
from .stats import StatsCollector
from .storage import Storage
from .types import CrawlReport, FrontierEntry, SkipReason
from .url import (
    detect_trap_pattern,
    extract_base_domain,
    extract_hrefs,
    is_followable_href,
    is_priority_url,
    is_same_domain,
    matches_trap_pattern,
    normalize_url,
    resolve_url,
    should_skip_subdomain,
    should_skip_url,
)


LOGGER = logging.getLogger(__name__)


class Spider:
    """Crawl one site from a start URL.

    Each loop drains the highest-priority `max_concurrent` frontier entries,
    processes them on a thread pool, and waits for the whole batch before the
    next selection, so links found in loop N are first eligible in loop N+1.
    """

    def __init__(
        self,
        config: CrawlConfig | None = None,
        *,
        fetcher: Fetcher | None = None,
        storage: Storage | None = None,
    ) -> None:
        self.config = config or CrawlConfig()

        self.fetcher = fetcher or Fetcher(self.config)
        self.storage = storage or Storage(self.config.output_dir, self.config.debug_dir)

        self._owns_fetcher = fetcher is None

    def close(self) -> None:
        if self._owns_fetcher:
            self.fetcher.close()

    def __enter__(self) -> "Spider":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def crawl(self, start_url: str) -> CrawlReport:
        """Crawl from `start_url` and persist the resulting report.

        Per-URL failures are recorded in the report. Invalid start URLs raise
        `UrlError`; a report that cannot be written raises `StorageError`.
        """

        base_domain = extract_base_domain(start_url)
        normalized_start_url = normalize_url(start_url)

        self._log_config()
        LOGGER.info("Starting crawl of %s (base domain: %s)", normalized_start_url, base_domain)

        frontier = Frontier()
        stats = StatsCollector()
        stats.record_enqueue(frontier.seed(normalized_start_url))

        self._run_loops(frontier, stats, base_domain)

        report = stats.build_report(
            base_url=normalized_start_url,
            base_domain=base_domain,
            remaining_queue=frontier.remaining_urls(),
            visited_count=frontier.visited_count(),
        )
        self.storage.save_report(report)
        self._log_summary(report)
        return report

    def _run_loops(self, frontier: Frontier, stats: StatsCollector, base_domain: str) -> None:
        with ThreadPoolExecutor(
            max_workers=self.config.max_concurrent,
            thread_name_prefix="crawler-worker",
        ) as executor:
            for loop_number in range(1, self.config.max_loops + 1):
                if frontier.empty():
                    LOGGER.info("Queue is empty, crawl complete")
                    break
                batch = frontier.next_batch(self.config.max_concurrent)

                # Compared against this batch only, not the whole crawl.
                pattern = detect_trap_pattern(
                    [entry.url for entry in batch],
                    self.config.pattern_threshold,
                )
                if pattern is not None and stats.add_pattern(pattern):
                    LOGGER.info("Detected massive link pattern: %s", pattern)

                futures = {
                    executor.submit(self._process_entry, entry, frontier, stats, base_domain): entry
                    for entry in batch
                }
                for future in as_completed(futures):
                    try:
                        future.result()
                    except Exception:
                        LOGGER.exception("Unexpected error while processing %s", futures[future].url)

                stats.record_loop(len(batch))
                self._log_loop_stats(loop_number, len(batch), frontier, stats, base_domain)
            else:
                LOGGER.info("Reached max_loops=%d", self.config.max_loops)

    def _process_entry(
        self,
        entry: FrontierEntry,
        frontier: Frontier,
        stats: StatsCollector,
        base_domain: str,
    ) -> None:
        reason = self._skip_reason(entry, stats)
        if reason is not None:
            LOGGER.debug("Skipping %s (%s)", entry.url, reason.value)
            stats.record_skip(reason, entry.url)
            return

        self._dispatch(entry, frontier, stats, base_domain)

    def _skip_reason(self, entry: FrontierEntry, stats: StatsCollector) -> SkipReason | None:
        if entry.depth >= self.config.max_depth:
            return SkipReason.MAX_DEPTH_EXCEEDED

        if any(matches_trap_pattern(entry.url, pattern) for pattern in stats.patterns()):
            return SkipReason.MASSIVE_LINK_PATTERN

        if should_skip_url(entry.url, self.config.skip_patterns):
            return SkipReason.SKIP_PATTERN

        try:
            if should_skip_subdomain(entry.url, self.config.skip_subdomain_patterns):
                return SkipReason.SUBDOMAIN_PATTERN
        except UrlError as exc:
            # Fail open: an unparseable host is not a reason to skip.
            LOGGER.debug("Error checking subdomain pattern for %s: %s", entry.url, exc)

        return None

    def _dispatch(
        self,
        entry: FrontierEntry,
        frontier: Frontier,
        stats: StatsCollector,
        base_domain: str,
    ) -> None:
        url = entry.url
        if not frontier.mark_visited(url):
            LOGGER.debug("Already visited %s", url)
            return
        stats.record_found(url)

        try:
            result = self.fetcher.fetch(url)
        except (FetchError, UrlError) as exc:
            LOGGER.warning("Failed to fetch %s: %s", url, exc)
            stats.record_unreachable(url)
            return

        LOGGER.debug(
            "Fetched %s (%d bytes, status %d, %s ms)",
            url,
            result.content_length,
            result.status_code,
            result.elapsed_ms,
        )
        if result.redirected:
            stats.record_redirect(url, result.final_url)

        try:
            html = self.fetcher.extract_html(result)
        except ContentTypeError:
            LOGGER.debug("Skipping non-HTML content: %s", url)
            return

        hrefs = extract_hrefs(html)
        LOGGER.debug("Found %d links on page %s", len(hrefs), url)
        if not hrefs or (len(hrefs) < DEBUG_MIN_LINKS and len(html) > DEBUG_MIN_BODY_CHARS):
            self._diagnose_sparse_page(url, html, len(hrefs))

        for href in hrefs:
            self._enqueue_link(
                href,
                current_url=result.final_url,
                depth=entry.depth,
                frontier=frontier,
                stats=stats,
                base_domain=base_domain,
            )

    def _enqueue_link(
        self,
        href: str,
        *,
        current_url: str,
        depth: int,
        frontier: Frontier,
        stats: StatsCollector,
        base_domain: str,
    ) -> None:
        if not is_followable_href(href):
            LOGGER.debug("Skipping link: %s", href)
            return

        try:
            absolute_url = resolve_url(current_url, href)
        except UrlError as exc:
            LOGGER.debug("Failed to resolve URL %s: %s", href, exc)
            return

        try:
            if not is_same_domain(absolute_url, base_domain):
                LOGGER.debug("Skipping external URL: %s", absolute_url)
                return
        except UrlError as exc:
            LOGGER.debug("Failed to check domain for %s: %s", absolute_url, exc)
            return

        priority = (
            PRIORITY_LINK_PRIORITY
            if is_priority_url(absolute_url, self.config.priority_paths)
            else DEFAULT_LINK_PRIORITY
        )
        result = frontier.push(absolute_url, depth=depth + 1, priority=priority)
        stats.record_enqueue(result)
        if not result.accepted:
            LOGGER.debug("Not enqueuing %s (%s)", absolute_url, result.status.value)

    def _diagnose_sparse_page(self, url: str, html: str, link_count: int) -> None:
        LOGGER.debug("Few or no links found (%d) on page %s", link_count, url)
        self.storage.save_debug_html(url, html)

        if has_anti_bot_protection(html):
            LOGGER.warning("Possible anti-bot protection detected on page: %s", url)
        if requires_javascript(html):
            LOGGER.warning("Page may require JavaScript to display content: %s", url)
        LOGGER.debug("Page stats: %s", html_stats(html))

    def _log_config(self) -> None:
        LOGGER.info("Spider configuration:")
        LOGGER.info("  max_depth: %d", self.config.max_depth)
        LOGGER.info("  max_loops: %d", self.config.max_loops)
        LOGGER.info("  max_concurrent: %d", self.config.max_concurrent)
        LOGGER.info("  pattern_threshold: %d", self.config.pattern_threshold)
        LOGGER.info("  skip_patterns: %s", list(self.config.skip_patterns))
        LOGGER.info("  skip_subdomain_patterns: %s", list(self.config.skip_subdomain_patterns))
        LOGGER.info("  priority_paths: %s", list(self.config.priority_paths))

    @staticmethod
    def _log_loop_stats(
        loop_number: int,
        batch_size: int,
        frontier: Frontier,
        stats: StatsCollector,
        base_domain: str,
    ) -> None:
        counts = stats.counts()
        LOGGER.info("--- Loop stats for %s (loop #%d) ---", base_domain, loop_number)
        LOGGER.info(
            "  Processed: %d URLs total (%d in this batch)",
            counts["processed_urls"],
            batch_size,
        )
        LOGGER.info("  Queue: %d remaining URLs", frontier.qsize())
        LOGGER.info("  Visited: %d URLs", frontier.visited_count())
        LOGGER.info("  Found: %d unique URLs", counts["found_urls"])
        LOGGER.info("  Skipped: %d URLs", counts["skipped_urls"])
        LOGGER.info("  Patterns: %d detected", counts["patterns_detected"])
        LOGGER.info("  Redirects: %d captured", counts["redirects"])
        LOGGER.info("  Unreachable: %d URLs", counts["unreachable_urls"])
        LOGGER.info("  Enqueued: %d new URLs", counts["enqueued"])
        LOGGER.debug("  Frontier: %s", frontier.snapshot())

    @staticmethod
    def _log_summary(report: CrawlReport) -> None:
        LOGGER.info("=== Final crawl statistics ===")
        LOGGER.info("  Base URL: %s", report.base_url)
        LOGGER.info("  Base domain: %s", report.base_domain)
        LOGGER.info("  Found: %d unique URLs", len(report.urls))
        LOGGER.info("  Skipped: %d URLs", report.skipped_count)
        LOGGER.info("  Redirects: %d captured", len(report.redirects))
        LOGGER.info("  Unreachable: %d URLs", len(report.unreachable_urls))
        LOGGER.info("  Patterns detected: %d", len(report.massive_link_patterns))
        LOGGER.info("  Number of loops: %d", report.stats.get("loops", 0))
        LOGGER.info("  Total URLs processed: %d", report.stats.get("processed_urls", 0))
        LOGGER.info("  URLs remaining in queue: %d", len(report.remaining_queue))


__all__ = ["Spider"]
