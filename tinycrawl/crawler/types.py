"""Core type definitions for the crawler.

This module is intentionally dependency-light so other crawler modules can import
shared records without introducing cycles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


JSONPrimitive = str | int | float | bool | None
JSONValue = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]
JSONDict = dict[str, JSONValue]


class SkipReason(str, Enum):
    """Why a frontier entry was dropped before dispatch.

    Members are listed in the order the spider evaluates them.
    """

    MAX_DEPTH_EXCEEDED = "max_depth_exceeded"
    MASSIVE_LINK_PATTERN = "massive_link_pattern"
    SKIP_PATTERN = "skip_pattern"
    SUBDOMAIN_PATTERN = "subdomain_pattern"


@dataclass(frozen=True, slots=True)
class FrontierEntry:
    """A crawl candidate tracked by the frontier."""

    url: str
    depth: int
    priority: int


@dataclass(slots=True)
class FetchResult:
    """Successful response for one requested URL."""

    requested_url: str
    final_url: str
    status_code: int
    content_type: str | None
    body: bytes
    encoding: str | None = None
    elapsed_ms: int | None = None

    @property
    def redirected(self) -> bool:
        return self.final_url != self.requested_url

    @property
    def content_length(self) -> int:
        return len(self.body)


@dataclass(slots=True)
class CrawlReport:
    """Crawl-scoped result, persisted once per site."""

    base_url: str
    base_domain: str
    urls: list[str] = field(default_factory=list)
    skipped_urls: dict[str, list[str]] = field(default_factory=dict)
    massive_link_patterns: list[str] = field(default_factory=list)
    redirects: dict[str, str] = field(default_factory=dict)
    unreachable_urls: list[str] = field(default_factory=list)
    remaining_queue: list[str] = field(default_factory=list)
    stats: dict[str, int] = field(default_factory=dict)

    @property
    def skipped_count(self) -> int:
        return sum(len(urls) for urls in self.skipped_urls.values())

    def to_json(self) -> JSONDict:
        return {
            "base_url": self.base_url,
            "base_domain": self.base_domain,
            "urls": list(self.urls),
            "skipped_urls": {reason: list(urls) for reason, urls in self.skipped_urls.items()},
            "massive_link_patterns": list(self.massive_link_patterns),
            "redirects": dict(self.redirects),
            "unreachable_urls": list(self.unreachable_urls),
            "remaining_queue": list(self.remaining_queue),
            "stats": dict(self.stats),
        }

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "CrawlReport":
        return cls(
            base_url=str(payload["base_url"]),
            base_domain=str(payload["base_domain"]),
            urls=[str(url) for url in payload.get("urls", [])],
            skipped_urls={
                str(reason): [str(url) for url in urls]
                for reason, urls in dict(payload.get("skipped_urls", {})).items()
            },
            massive_link_patterns=[str(p) for p in payload.get("massive_link_patterns", [])],
            redirects={str(k): str(v) for k, v in dict(payload.get("redirects", {})).items()},
            unreachable_urls=[str(url) for url in payload.get("unreachable_urls", [])],
            remaining_queue=[str(url) for url in payload.get("remaining_queue", [])],
            stats={str(k): int(v) for k, v in dict(payload.get("stats", {})).items()},
        )


@dataclass(frozen=True, slots=True)
class SiteOutcome:
    """Result of crawling one seed in batch mode."""

    seed_url: str
    success: bool
    message: str
    url_count: int | None = None


__all__ = [
    "CrawlReport",
    "FetchResult",
    "FrontierEntry",
    "JSONDict",
    "JSONPrimitive",
    "JSONValue",
    "SiteOutcome",
    "SkipReason",
]
