"""Rate-limited, fingerprint-rotating HTTP fetching plus HTML diagnostics."""

from __future__ import annotations

import logging
import random
import threading
import time

import requests
from requests.adapters import HTTPAdapter

from .config import CrawlConfig
from .constants import HTML_CONTENT_TYPES
from .errors import ContentTypeError, HttpClientError, HttpStatusError, NetworkError
from .types import FetchResult
from .url import parse_url


LOGGER = logging.getLogger(__name__)


def _charset_from_content_type(content_type: str | None) -> str | None:
    if not content_type:
        return None
    for param in content_type.split(";")[1:]:
        key, _, value = param.partition("=")
        if key.strip().lower() == "charset":
            charset = value.strip().strip("'\"")
            return charset or None
    return None


class Fetcher:
    """Fetch pages the way a browser would, one random delay per request.

    Concurrency model:
    - Each worker thread lazily gets its own pooled `requests.Session`, so no
      session is shared between threads.
    - The delay before every request is per call and not coordinated between
      workers; throughput is roughly `max_concurrent / average_delay`.
    """

    def __init__(self, config: CrawlConfig) -> None:
        self.config = config

        self._thread_local = threading.local()
        self._sessions_lock = threading.Lock()
        self._sessions: list[requests.Session] = []

        self._closed = False

    def apply_delay(self) -> float:
        """Sleep a uniformly random delay within the configured bounds.

        Returns the delay in seconds.
        """

        delay_ms = random.randint(self.config.min_request_delay_ms, self.config.max_request_delay_ms)
        seconds = delay_ms / 1000.0
        if seconds > 0:
            time.sleep(seconds)
        return seconds

    def random_user_agent(self) -> str:
        return random.choice(self.config.user_agents)

    def fetch(self, url: str) -> FetchResult:
        """GET one URL with a rotated User-Agent.

        Raises `UrlParseError` for malformed URLs, `NetworkError` for transport
        failures, and `HttpStatusError` for non-2xx responses.
        """

        parsed = parse_url(url)
        host = parsed.hostname or "example.com"

        self.apply_delay()

        headers = {
            "User-Agent": self.random_user_agent(),
            # Same-origin referer on every request, regardless of the linking page.
            "Referer": f"{parsed.scheme}://{host}/",
            "Cookie": "",
        }

        session = self._thread_local_session()
        started = time.perf_counter()
        try:
            response = session.get(
                url,
                headers=headers,
                timeout=self.config.timeout_seconds,
                allow_redirects=True,
            )
        except requests.RequestException as exc:
            raise NetworkError(
                f"Failed to fetch {url}: {exc.__class__.__name__}: {exc}", url=url
            ) from exc
        elapsed_ms = int((time.perf_counter() - started) * 1000)

        if not 200 <= response.status_code < 300:
            response.close()
            raise HttpStatusError(
                f"HTTP error status: {response.status_code} for {url}",
                url=url,
                status_code=response.status_code,
            )

        content_type = response.headers.get("Content-Type")
        return FetchResult(
            requested_url=url,
            final_url=response.url or url,
            status_code=response.status_code,
            content_type=content_type,
            body=response.content or b"",
            encoding=_charset_from_content_type(content_type),
            elapsed_ms=elapsed_ms,
        )

    def extract_html(self, result: FetchResult) -> str:
        """Return the decoded body of an HTML response.

        Raises `ContentTypeError` when the response is not HTML/XHTML.
        """

        content_type = (result.content_type or "").lower()
        if not any(kind in content_type for kind in HTML_CONTENT_TYPES):
            raise ContentTypeError(f"Not HTML content: {content_type}")

        encoding = result.encoding or "utf-8"
        try:
            return result.body.decode(encoding, errors="replace")
        except LookupError:
            LOGGER.debug("Unknown charset %r for %s, decoding as utf-8", encoding, result.final_url)
            return result.body.decode("utf-8", errors="replace")

    def close(self) -> None:
        """Close every session this fetcher created."""

        with self._sessions_lock:
            self._closed = True
            sessions, self._sessions = self._sessions, []

        for session in sessions:
            session.close()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _thread_local_session(self) -> requests.Session:
        session = getattr(self._thread_local, "session", None)
        if session is not None:
            return session

        session = self._build_session()
        with self._sessions_lock:
            if self._closed:
                session.close()
                raise HttpClientError("Fetcher is closed")
            self._sessions.append(session)
        self._thread_local.session = session
        return session

    def _build_session(self) -> requests.Session:
        try:
            session = requests.Session()
            session.max_redirects = self.config.max_redirects
            session.headers.update(dict(self.config.default_headers))
            adapter = HTTPAdapter(pool_maxsize=self.config.max_concurrent)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        except (TypeError, ValueError) as exc:
            raise HttpClientError(f"Failed to build HTTP client: {exc}") from exc
        return session


def has_anti_bot_protection(html: str) -> bool:
    """Heuristic: page mentions captchas, robots, or automated access."""

    return any(
        marker in html
        for marker in ("captcha", "CAPTCHA", "robot", "Robot", "automated", "Automated")
    )


def requires_javascript(html: str) -> bool:
    """Heuristic: page content is likely produced by client-side scripts."""

    return (
        "document.write" in html
        or "window.location" in html
        or html.count("function(") > 10
        or ("</noscript>" in html and html.count("<a") < 3)
    )


def html_stats(html: str) -> str:
    """One-line size summary of a page for debug logs."""

    return (
        f"{len(html)} chars, {html.count('<div')} divs, "
        f"{html.count('<a ')} links, {html.count('<script')} scripts"
    )


__all__ = [
    "Fetcher",
    "has_anti_bot_protection",
    "html_stats",
    "requires_javascript",
]
