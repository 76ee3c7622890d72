"""Tests for the crawl frontier."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from tinycrawl.crawler.frontier import EnqueueStatus, Frontier


class TestFrontier:
    """Test cases for Frontier."""

    @pytest.fixture
    def frontier(self):
        """An empty frontier."""
        return Frontier()

    def test_seed_is_normalized_with_top_priority(self, frontier):
        result = frontier.seed("https://Example.com")

        assert result.accepted
        assert result.entry.url == "https://example.com/"
        assert result.entry.depth == 0
        assert result.entry.priority == 100

    def test_push_rejects_queued_url(self, frontier):
        frontier.push("https://example.com/a", depth=1, priority=10)
        result = frontier.push("https://example.com/a", depth=2, priority=50)

        assert result.status == EnqueueStatus.SKIPPED_QUEUED
        assert frontier.qsize() == 1

    def test_push_rejects_visited_url(self, frontier):
        frontier.mark_visited("https://example.com/a")
        result = frontier.push("https://example.com/a", depth=1, priority=10)

        assert result.status == EnqueueStatus.SKIPPED_VISITED
        assert frontier.empty()

    def test_next_batch_orders_by_priority_then_discovery(self, frontier):
        frontier.push("https://example.com/low-1", depth=1, priority=10)
        frontier.push("https://example.com/contact", depth=1, priority=50)
        frontier.push("https://example.com/low-2", depth=1, priority=10)
        frontier.push("https://example.com/about", depth=1, priority=50)

        batch = frontier.next_batch(3)

        assert [entry.url for entry in batch] == [
            "https://example.com/contact",
            "https://example.com/about",
            "https://example.com/low-1",
        ]
        assert frontier.remaining_urls() == ["https://example.com/low-2"]

    def test_next_batch_on_empty_queue(self, frontier):
        assert frontier.next_batch(5) == []

    def test_next_batch_requires_positive_size(self, frontier):
        with pytest.raises(ValueError):
            frontier.next_batch(0)

    def test_drained_url_is_no_longer_queued(self, frontier):
        frontier.push("https://example.com/a", depth=1, priority=10)
        frontier.next_batch(1)

        assert frontier.push("https://example.com/a", depth=2, priority=10).accepted

    def test_mark_visited_once(self, frontier):
        assert frontier.mark_visited("https://example.com/") is True
        assert frontier.mark_visited("https://example.com/") is False
        assert frontier.push("https://example.com/", depth=1, priority=10).status == EnqueueStatus.SKIPPED_VISITED
        assert frontier.visited_count() == 1

    def test_mark_visited_is_atomic_under_contention(self, frontier):
        url = "https://example.com/contended"
        with ThreadPoolExecutor(max_workers=16) as executor:
            results = list(executor.map(lambda _: frontier.mark_visited(url), range(200)))

        assert results.count(True) == 1

    def test_snapshot_counters(self, frontier):
        frontier.seed("https://example.com")
        frontier.push("https://example.com/", depth=1, priority=10)
        frontier.next_batch(1)
        frontier.mark_visited("https://example.com/")
        frontier.push("https://example.com/", depth=1, priority=10)

        snapshot = frontier.snapshot()

        assert snapshot == {
            "queue_size": 0,
            "visited_urls": 1,
            "enqueued": 1,
            "dequeued": 1,
            "skipped_visited": 1,
            "skipped_queued": 1,
        }
