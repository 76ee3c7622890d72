"""Default values shared by config, fetcher, spider, and loader."""

from __future__ import annotations

from pathlib import Path


DEFAULT_MAX_DEPTH = 10
DEFAULT_MAX_LOOPS = 50
DEFAULT_MAX_CONCURRENT = 30
DEFAULT_MAX_CONCURRENT_SITES = 5
DEFAULT_PATTERN_THRESHOLD = 500

DEFAULT_MIN_REQUEST_DELAY_MS = 100
DEFAULT_MAX_REQUEST_DELAY_MS = 2000

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_REDIRECTS = 10

DEFAULT_OUTPUT_DIR = Path("output") / "crawler"
DEFAULT_DEBUG_DIR = Path("debug")
DEFAULT_URL_FILE = Path("input") / "urls.txt"

SEED_PRIORITY = 100
PRIORITY_LINK_PRIORITY = 50
DEFAULT_LINK_PRIORITY = 10

# Pages with fewer links than this (and a body longer than
# DEBUG_MIN_BODY_CHARS) get a debug HTML dump.
DEBUG_MIN_LINKS = 3
DEBUG_MIN_BODY_CHARS = 1000

DEFAULT_SKIP_PATTERNS: tuple[str, ...] = (
    "/blogs/",
    "/blog/",
    "/docs/",
    "/library/",
    "/images/",
    "/feed/",
    "/wp-content/",
    "/wp-includes/",
    "/cdn-cgi/",
    "/assets/",
    "/static/",
    "/media/",
    "/api/",
    "/downloads/",
    "/files/",
    "/archive/",
    "/resources/",
)

DEFAULT_SKIP_SUBDOMAIN_PATTERNS: tuple[str, ...] = (
    "docs.",
    "api.",
    "cdn.",
    "static.",
    "media.",
    "assets.",
    "files.",
    "download.",
    "images.",
    "library.",
    "archive.",
    "resources.",
)

DEFAULT_PRIORITY_PATHS: tuple[str, ...] = (
    "/contact",
    "/about",
    "/faq",
    "/help",
    "/support",
)

DEFAULT_USER_AGENTS: tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/91.0.4472.124 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) "
    "Version/15.0 Safari/605.1.15",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:89.0) Gecko/20100101 Firefox/89.0",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/92.0.4515.107 Safari/537.36",
    "Mozilla/5.0 (iPhone; CPU iPhone OS 14_6 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) "
    "Version/14.0 Mobile/15E148 Safari/604.1",
    "Mozilla/5.0 (iPad; CPU OS 14_6 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) "
    "Version/14.0 Mobile/15E148 Safari/604.1",
)

DEFAULT_HTTP_HEADERS: dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "DNT": "1",
}

HTML_CONTENT_TYPES: tuple[str, ...] = ("text/html", "application/xhtml+xml")

JSON_INDENT = 2
SUPPORTED_CONFIG_SUFFIXES = (".json", ".yaml", ".yml")
