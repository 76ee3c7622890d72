"""Thread-safe crawl accumulators and report assembly."""

from __future__ import annotations

import threading
from collections import defaultdict

from .frontier import EnqueueResult, EnqueueStatus
from .types import CrawlReport, SkipReason


class StatsCollector:
    """Collect per-URL outcomes from concurrent workers of one crawl.

    Each record method is a single append/insert under the lock. The collector is
    owned by one crawl and never shared between sites.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()

        self._found_urls: list[str] = []
        self._skipped_urls: dict[str, list[str]] = defaultdict(list)
        # dict keeps first-detection order for the report.
        self._patterns: dict[str, None] = {}
        self._redirects: dict[str, str] = {}
        self._unreachable_urls: list[str] = []

        self._loops = 0
        self._processed_urls = 0
        self._enqueue_counts: dict[str, int] = defaultdict(int)

    def record_found(self, url: str) -> None:
        with self._lock:
            self._found_urls.append(url)

    def record_skip(self, reason: SkipReason | str, url: str) -> None:
        key = reason.value if isinstance(reason, SkipReason) else str(reason)
        with self._lock:
            self._skipped_urls[key].append(url)

    def record_redirect(self, source_url: str, target_url: str) -> None:
        with self._lock:
            self._redirects[source_url] = target_url

    def record_unreachable(self, url: str) -> None:
        with self._lock:
            self._unreachable_urls.append(url)

    def add_pattern(self, pattern: str) -> bool:
        """Remember a trap pattern; False if it was already known."""

        with self._lock:
            if pattern in self._patterns:
                return False
            self._patterns[pattern] = None
            return True

    def patterns(self) -> list[str]:
        with self._lock:
            return list(self._patterns)

    def record_enqueue(self, result: EnqueueResult | EnqueueStatus) -> None:
        status = result.status if isinstance(result, EnqueueResult) else result
        with self._lock:
            self._enqueue_counts[status.value] += 1

    def record_loop(self, batch_size: int) -> None:
        with self._lock:
            self._loops += 1
            self._processed_urls += batch_size

    def counts(self) -> dict[str, int]:
        """Running counters for per-loop log lines."""

        with self._lock:
            return {
                "loops": self._loops,
                "processed_urls": self._processed_urls,
                "found_urls": len(set(self._found_urls)),
                "skipped_urls": sum(len(urls) for urls in self._skipped_urls.values()),
                "patterns_detected": len(self._patterns),
                "redirects": len(self._redirects),
                "unreachable_urls": len(self._unreachable_urls),
                "enqueued": self._enqueue_counts[EnqueueStatus.ENQUEUED.value],
            }

    def build_report(
        self,
        *,
        base_url: str,
        base_domain: str,
        remaining_queue: list[str],
        visited_count: int,
    ) -> CrawlReport:
        """Snapshot all accumulators into a finalized `CrawlReport`.

        Found URLs are deduplicated and sorted; URLs that turned out to be
        unreachable are left out of `urls`.
        """

        with self._lock:
            unreachable = list(self._unreachable_urls)
            unreachable_set = set(unreachable)
            urls = sorted(set(self._found_urls) - unreachable_set)
            skipped = {reason: list(items) for reason, items in self._skipped_urls.items()}
            patterns = list(self._patterns)
            redirects = dict(self._redirects)
            loops = self._loops
            processed = self._processed_urls

        report = CrawlReport(
            base_url=base_url,
            base_domain=base_domain,
            urls=urls,
            skipped_urls=skipped,
            massive_link_patterns=patterns,
            redirects=redirects,
            unreachable_urls=unreachable,
            remaining_queue=list(remaining_queue),
        )
        report.stats = {
            "loops": loops,
            "processed_urls": processed,
            "visited_urls": visited_count,
            "found_urls": len(report.urls),
            "skipped_urls": report.skipped_count,
            "redirects": len(report.redirects),
            "unreachable_urls": len(report.unreachable_urls),
            "patterns_detected": len(report.massive_link_patterns),
        }
        return report


__all__ = ["StatsCollector"]
