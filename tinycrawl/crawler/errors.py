"""Exception hierarchy raised by crawler components."""

from __future__ import annotations


class CrawlerError(Exception):
    """Base class for all crawler failures."""


class UrlError(CrawlerError):
    """A URL could not be used."""


class UrlParseError(UrlError):
    """Malformed URL or relative reference."""


class InvalidUrlError(UrlError):
    """URL parsed but carries no host."""


class FetchError(CrawlerError):
    """A request did not produce a usable response."""

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class NetworkError(FetchError):
    """Transport-level failure (DNS, connect, timeout, redirect loop)."""


class HttpStatusError(FetchError):
    """Response status outside the 2xx range."""

    def __init__(self, message: str, *, url: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message, url=url)
        self.status_code = status_code


class ContentTypeError(CrawlerError):
    """Response body is not HTML; callers skip it silently."""


class HttpClientError(CrawlerError):
    """HTTP client could not be constructed."""


class StorageError(CrawlerError):
    """Reading or writing a crawl artifact failed."""


__all__ = [
    "ContentTypeError",
    "CrawlerError",
    "FetchError",
    "HttpClientError",
    "HttpStatusError",
    "InvalidUrlError",
    "NetworkError",
    "StorageError",
    "UrlError",
    "UrlParseError",
]
