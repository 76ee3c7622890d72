"""Thread-safe priority frontier with the crawl's visited ledger."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum

from .constants import SEED_PRIORITY
from .types import FrontierEntry
from .url import normalize_url


class EnqueueStatus(str, Enum):
    """Result status for frontier enqueue attempts."""

    ENQUEUED = "enqueued"
    SKIPPED_VISITED = "skipped_visited"
    SKIPPED_QUEUED = "skipped_queued"


@dataclass(frozen=True, slots=True)
class EnqueueResult:
    """Outcome of one enqueue attempt."""

    status: EnqueueStatus
    entry: FrontierEntry | None = None

    @property
    def accepted(self) -> bool:
        return self.status == EnqueueStatus.ENQUEUED


class Frontier:
    """Pending URLs plus the set of URLs already dispatched.

    - Every public method takes the lock once; no caller holds it across I/O.
    - A URL is rejected at push time if it is visited or already queued. Entries
      drained into a batch are no longer "queued", so a link to a URL from the
      current batch can be pushed again; `mark_visited` stops the second fetch.
    - Batches are selected by descending priority, discovery order within a tie.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()

        self._queue: list[FrontierEntry] = []
        self._queued_urls: set[str] = set()
        self._visited_urls: set[str] = set()

        self._enqueued_count = 0
        self._dequeued_count = 0
        self._skipped_visited_count = 0
        self._skipped_queued_count = 0

    def seed(self, url: str, *, priority: int = SEED_PRIORITY) -> EnqueueResult:
        """Normalize the start URL and enqueue it at depth 0."""

        return self.push(normalize_url(url), depth=0, priority=priority)

    def push(self, url: str, *, depth: int, priority: int) -> EnqueueResult:
        """Enqueue one URL unless it was visited or is already waiting."""

        with self._lock:
            if url in self._visited_urls:
                self._skipped_visited_count += 1
                return EnqueueResult(EnqueueStatus.SKIPPED_VISITED)

            if url in self._queued_urls:
                self._skipped_queued_count += 1
                return EnqueueResult(EnqueueStatus.SKIPPED_QUEUED)

            entry = FrontierEntry(url=url, depth=depth, priority=priority)
            self._queue.append(entry)
            self._queued_urls.add(url)
            self._enqueued_count += 1

        return EnqueueResult(EnqueueStatus.ENQUEUED, entry=entry)

    def next_batch(self, max_items: int) -> list[FrontierEntry]:
        """Remove and return up to `max_items` highest-priority entries."""

        if max_items <= 0:
            raise ValueError("max_items must be > 0")

        with self._lock:
            # sorted() is stable, so equal priorities keep discovery order.
            entries = sorted(self._queue, key=lambda entry: entry.priority, reverse=True)
            batch, rest = entries[:max_items], entries[max_items:]

            self._queue = rest
            for entry in batch:
                self._queued_urls.discard(entry.url)
            self._dequeued_count += len(batch)

        return batch

    def mark_visited(self, url: str) -> bool:
        """Atomically record a dispatch; False if the URL was already visited."""

        with self._lock:
            if url in self._visited_urls:
                return False
            self._visited_urls.add(url)
            return True

    def qsize(self) -> int:
        with self._lock:
            return len(self._queue)

    def empty(self) -> bool:
        with self._lock:
            return not self._queue

    def visited_count(self) -> int:
        with self._lock:
            return len(self._visited_urls)

    def remaining_urls(self) -> list[str]:
        """URLs still waiting, in queue order."""

        with self._lock:
            return [entry.url for entry in self._queue]

    def snapshot(self) -> dict[str, int]:
        """Return frontier counters for logs."""

        with self._lock:
            return {
                "queue_size": len(self._queue),
                "visited_urls": len(self._visited_urls),
                "enqueued": self._enqueued_count,
                "dequeued": self._dequeued_count,
                "skipped_visited": self._skipped_visited_count,
                "skipped_queued": self._skipped_queued_count,
            }


__all__ = [
    "EnqueueResult",
    "EnqueueStatus",
    "Frontier",
]
