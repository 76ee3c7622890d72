"""Crawler package: config, shared types, and crawl components."""

from .config import CrawlConfig, load_config, save_config
from .errors import (
    ContentTypeError,
    CrawlerError,
    FetchError,
    HttpClientError,
    HttpStatusError,
    InvalidUrlError,
    NetworkError,
    StorageError,
    UrlError,
    UrlParseError,
)
from .fetcher import Fetcher, has_anti_bot_protection, html_stats, requires_javascript
from .frontier import EnqueueResult, EnqueueStatus, Frontier
from .loader import Loader
from .spider import Spider
from .stats import StatsCollector
from .storage import Storage
from .types import (
    CrawlReport,
    FetchResult,
    FrontierEntry,
    SiteOutcome,
    SkipReason,
)
from .url import (
    detect_trap_pattern,
    domain_to_filename,
    extract_base_domain,
    extract_hrefs,
    is_priority_url,
    is_same_domain,
    matches_trap_pattern,
    normalize_url,
    resolve_url,
    should_skip_subdomain,
    should_skip_url,
)

__all__ = [
    "ContentTypeError",
    "CrawlConfig",
    "CrawlReport",
    "CrawlerError",
    "EnqueueResult",
    "EnqueueStatus",
    "FetchError",
    "FetchResult",
    "Fetcher",
    "Frontier",
    "FrontierEntry",
    "HttpClientError",
    "HttpStatusError",
    "InvalidUrlError",
    "Loader",
    "NetworkError",
    "SiteOutcome",
    "SkipReason",
    "Spider",
    "StatsCollector",
    "Storage",
    "StorageError",
    "UrlError",
    "UrlParseError",
    "detect_trap_pattern",
    "domain_to_filename",
    "extract_base_domain",
    "extract_hrefs",
    "has_anti_bot_protection",
    "html_stats",
    "is_priority_url",
    "is_same_domain",
    "load_config",
    "matches_trap_pattern",
    "normalize_url",
    "requires_javascript",
    "resolve_url",
    "save_config",
    "should_skip_subdomain",
    "should_skip_url",
]
