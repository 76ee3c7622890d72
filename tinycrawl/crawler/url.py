"""URL classification helpers: domains, resolution, skip rules, trap patterns.

Everything here is pure apart from `domain_to_filename`, which makes sure the
report directory exists.
"""

from __future__ import annotations

import re
from collections import Counter
from pathlib import Path
from typing import Iterable, Sequence
from urllib.parse import SplitResult, quote, urljoin, urlsplit, urlunsplit

from bs4 import BeautifulSoup
from requests.utils import requote_uri

from .constants import DEFAULT_OUTPUT_DIR
from .errors import InvalidUrlError, UrlParseError


SKIP_HREF_PREFIXES = ("#", "javascript:", "mailto:")
TRAP_PATTERN_WILDCARD = "*"

# Prefix, first run of digits, suffix.
_TRAP_PATTERN_RE = re.compile(r"(.*?)(\d+)(.*)")

_DEFAULT_PORTS = {"http": 80, "https": 443}


def parse_url(url: str) -> SplitResult:
    """Split an absolute URL, raising `UrlParseError` when that is not possible."""

    raw = (url or "").strip()
    try:
        parsed = urlsplit(raw)
        # Accessing `.port` validates it (raises ValueError on garbage).
        parsed.port
    except ValueError as exc:
        raise UrlParseError(f"Cannot parse URL {url!r}: {exc}") from exc

    if not parsed.scheme:
        raise UrlParseError(f"Relative URL without a base: {url!r}")
    return parsed


def _strip_www(host: str) -> str:
    if host.startswith("www."):
        return host[4:]
    return host


def _host(url: str) -> str:
    host = parse_url(url).hostname
    if not host:
        raise InvalidUrlError(f"No host in URL: {url}")
    return host


def _normalize_netloc(parsed: SplitResult) -> str:
    host = parsed.hostname or ""
    if ":" in host:
        host = f"[{host}]"

    userinfo = ""
    if parsed.username:
        userinfo = quote(parsed.username, safe="")
        if parsed.password:
            userinfo += ":" + quote(parsed.password, safe="")
        userinfo += "@"

    port = parsed.port
    scheme = parsed.scheme.lower()
    if port is not None and _DEFAULT_PORTS.get(scheme) != port:
        return f"{userinfo}{host}:{port}"
    return f"{userinfo}{host}"


def normalize_url(url: str) -> str:
    """Parse and re-serialize an absolute URL.

    Scheme and host are lowercased, default ports dropped, and an empty path
    becomes `/`. Path, query and fragment are percent-encoded the way requests
    sends them, so `/a b` and `/a%20b` normalize to the same URL.
    """

    parsed = parse_url(url)
    if not parsed.netloc or not parsed.hostname:
        raise UrlParseError(f"URL has no network location: {url!r}")

    path = parsed.path or "/"
    # The host is left out of requoting; only the part after it is encoded.
    tail = requote_uri(urlunsplit(("", "", path, parsed.query, parsed.fragment)))
    return f"{parsed.scheme.lower()}://{_normalize_netloc(parsed)}{tail}"


def extract_base_domain(url: str) -> str:
    """Return the URL host with one leading `www.` removed.

    Other subdomains are kept: `https://camps.example.com` -> `camps.example.com`.
    """

    return _strip_www(_host(url))


def is_same_domain(url: str, base_domain: str) -> bool:
    """True when the URL host is `base_domain` or one of its subdomains."""

    host = _strip_www(_host(url))
    return host == base_domain or host.endswith("." + base_domain)


def resolve_url(base_url: str, relative_url: str) -> str:
    """Resolve a (possibly relative) reference against an absolute base URL."""

    parse_url(base_url)
    try:
        absolute = urljoin(base_url.strip(), relative_url.strip())
    except ValueError as exc:
        raise UrlParseError(f"Cannot resolve {relative_url!r} against {base_url!r}: {exc}") from exc
    return normalize_url(absolute)


def should_skip_url(url: str, skip_patterns: Iterable[str]) -> bool:
    """True if any skip pattern occurs anywhere in the URL."""

    return any(pattern in url for pattern in skip_patterns)


def should_skip_subdomain(url: str, skip_subdomain_patterns: Iterable[str]) -> bool:
    """True if the `www.`-stripped host starts with any of the patterns."""

    host = _strip_www(_host(url))
    return any(host.startswith(pattern) for pattern in skip_subdomain_patterns)


def is_priority_url(url: str, priority_paths: Iterable[str]) -> bool:
    """True if any priority path occurs in the URL."""

    return any(path in url for path in priority_paths)


def detect_trap_pattern(urls: Sequence[str], threshold: int) -> str | None:
    """Find a numerically varying URL template repeated at least `threshold` times.

    Each URL containing digits is generalized to `prefix*suffix` around its first
    digit run. The most frequent template wins; among equal counts the winner is
    unspecified. Inputs shorter than `threshold` never produce a pattern.
    """

    if len(urls) < threshold:
        return None

    counts: Counter[str] = Counter()
    for url in urls:
        match = _TRAP_PATTERN_RE.match(url)
        if match is None:
            continue
        counts[f"{match.group(1)}{TRAP_PATTERN_WILDCARD}{match.group(3)}"] += 1

    candidates = [(pattern, count) for pattern, count in counts.items() if count >= threshold]
    if not candidates:
        return None
    return max(candidates, key=lambda item: item[1])[0]


def matches_trap_pattern(url: str, pattern: str) -> bool:
    """True if `url` fits a `prefix*suffix` template."""

    parts = pattern.split(TRAP_PATTERN_WILDCARD)
    if len(parts) != 2:
        return False
    prefix, suffix = parts
    return url.startswith(prefix) and url.endswith(suffix)


def domain_to_filename(domain: str, output_dir: str | Path = DEFAULT_OUTPUT_DIR) -> Path:
    """Map a domain to its report path, creating the report directory."""

    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    filename = domain.replace(".", "_").replace(":", "_") + ".json"
    return directory / filename


def debug_filename(url: str) -> str:
    """Flatten a URL into a debug HTML file name."""

    escaped = url.replace("://", "_").replace("/", "_").replace(".", "_")
    return f"debug_{escaped}.html"


def is_followable_href(href: str | None) -> bool:
    """False for empty, fragment-only, `javascript:` and `mailto:` hrefs."""

    if not href:
        return False
    return not href.startswith(SKIP_HREF_PREFIXES)


def extract_hrefs(html: str | bytes) -> list[str]:
    """Return raw `href` values of `a[href]` elements in document order."""

    soup = BeautifulSoup(html, "lxml")
    hrefs: list[str] = []
    for element in soup.select("a[href]"):
        href = element.get("href")
        if isinstance(href, str):
            hrefs.append(href)
    return hrefs


__all__ = [
    "SKIP_HREF_PREFIXES",
    "TRAP_PATTERN_WILDCARD",
    "debug_filename",
    "detect_trap_pattern",
    "domain_to_filename",
    "extract_base_domain",
    "extract_hrefs",
    "is_followable_href",
    "is_priority_url",
    "is_same_domain",
    "matches_trap_pattern",
    "normalize_url",
    "parse_url",
    "resolve_url",
    "should_skip_subdomain",
    "should_skip_url",
]
