"""CLI entrypoint for single-site and batch crawls."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
import time

if __package__ in {None, ""}:
    repo_root = Path(__file__).resolve().parents[1]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))

from tinycrawl.crawler import CrawlConfig, CrawlReport, Loader, SiteOutcome, Spider, load_config
from tinycrawl.crawler.constants import (
    DEFAULT_MAX_CONCURRENT_SITES,
    DEFAULT_MAX_REQUEST_DELAY_MS,
    DEFAULT_MIN_REQUEST_DELAY_MS,
    DEFAULT_URL_FILE,
)


USAGE = f"""Usage:
  Single URL:    tinycrawl crawl <url> [max_depth] [max_loops] [max_concurrent] [min_delay_ms] [max_delay_ms]
  Multiple URLs: tinycrawl batch [url_file] [max_depth] [max_loops] [max_concurrent] [max_concurrent_sites] [min_delay_ms] [max_delay_ms]
  - min_delay_ms: Minimum delay between requests in milliseconds (default: {DEFAULT_MIN_REQUEST_DELAY_MS})
  - max_delay_ms: Maximum delay between requests in milliseconds (default: {DEFAULT_MAX_REQUEST_DELAY_MS})
  - max_concurrent_sites: Maximum number of sites to crawl in parallel (default: {DEFAULT_MAX_CONCURRENT_SITES})"""


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="tinycrawl",
        description="Crawl one site, or a list of sites, and save the discovered URLs.",
        epilog=USAGE,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("command", nargs="?", default=None, help="crawl or batch")
    parser.add_argument(
        "params",
        nargs="*",
        default=[],
        help="Positional crawl parameters; non-integer values fall back to defaults.",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to JSON/YAML crawl config used as the base for positional overrides.",
    )
    parser.add_argument(
        "--log_dir",
        type=Path,
        default=Path("logs"),
        help="Directory for crawl.log.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging.",
    )

    return parser.parse_args(argv)


def setup_logging(log_dir: Path, verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO

    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / "crawl.log"

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(log_level)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(log_level)
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    # Connection pool chatter drowns out per-URL lines at DEBUG.
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def _int_param(params: list[str], index: int, default: int) -> int:
    try:
        return int(params[index])
    except (IndexError, ValueError):
        return default


def _str_param(params: list[str], index: int, default: str) -> str:
    try:
        return params[index]
    except IndexError:
        return default


def build_config(base: CrawlConfig, params: list[str], *, delay_offset: int) -> CrawlConfig:
    """Apply the shared positional overrides.

    `params[0]` is the URL or URL file; depth, loops and concurrency follow it,
    and the two delay bounds start at `delay_offset`.
    """

    return base.with_overrides(
        max_depth=_int_param(params, 1, base.max_depth),
        max_loops=_int_param(params, 2, base.max_loops),
        max_concurrent=_int_param(params, 3, base.max_concurrent),
        min_request_delay_ms=_int_param(params, delay_offset, base.min_request_delay_ms),
        max_request_delay_ms=_int_param(params, delay_offset + 1, base.max_request_delay_ms),
    )


def print_summary(report: CrawlReport, duration_seconds: float) -> None:
    print("\n=== Crawl Complete ===")
    print(f"base_url: {report.base_url}")
    print(f"base_domain: {report.base_domain}")
    print(f"duration_seconds: {duration_seconds:.2f}")

    print("\n--- Core Stats ---")
    for key, value in report.stats.items():
        print(f"{key}: {value}")


def print_outcomes(outcomes: list[SiteOutcome], duration_seconds: float) -> None:
    succeeded = sum(1 for outcome in outcomes if outcome.success)

    print("\n=== Batch Complete ===")
    print(f"sites: {len(outcomes)}")
    print(f"succeeded: {succeeded}")
    print(f"failed: {len(outcomes) - succeeded}")
    print(f"duration_seconds: {duration_seconds:.2f}")


def run_crawl(base: CrawlConfig, params: list[str]) -> int:
    if not params:
        print("URL is required for crawl command")
        print(USAGE)
        return 0

    url = params[0]
    try:
        config = build_config(base, params, delay_offset=4)
    except ValueError as exc:
        logging.error("Failed to build config: %s", exc)
        return 2

    logging.info("Starting crawl of %s", url)
    logging.info(
        "Using advanced settings - min delay: %dms, max delay: %dms",
        config.min_request_delay_ms,
        config.max_request_delay_ms,
    )
    start = time.monotonic()

    try:
        with Spider(config) as spider:
            report = spider.crawl(url)
    except KeyboardInterrupt:
        logging.error("Interrupted by user")
        return 130
    except Exception:
        logging.exception("Crawl of %s failed", url)
        return 1

    duration = time.monotonic() - start
    logging.info("Crawl completed in %.2fs", duration)
    logging.info("Found %d unique URLs", len(report.urls))
    print_summary(report, duration)
    return 0


def run_batch(base: CrawlConfig, params: list[str]) -> int:
    url_file = _str_param(params, 0, str(DEFAULT_URL_FILE))
    max_concurrent_sites = _int_param(params, 4, DEFAULT_MAX_CONCURRENT_SITES)

    try:
        config = build_config(base, params, delay_offset=5)
        loader = Loader(
            config,
            max_concurrent_sites=max_concurrent_sites,
            url_file_path=url_file,
        )
    except ValueError as exc:
        logging.error("Failed to build config: %s", exc)
        return 2

    logging.info("Starting batch crawl from file: %s", url_file)
    logging.info(
        "Using advanced settings - min delay: %dms, max delay: %dms",
        config.min_request_delay_ms,
        config.max_request_delay_ms,
    )
    start = time.monotonic()

    try:
        outcomes = loader.crawl_all()
    except KeyboardInterrupt:
        logging.error("Interrupted by user")
        return 130
    except Exception:
        logging.exception("Batch crawl from %s failed", url_file)
        return 1

    duration = time.monotonic() - start
    logging.info("Batch crawl completed in %.2fs", duration)
    for outcome in outcomes:
        if outcome.success:
            logging.info("%s", outcome.message)
        else:
            logging.info("Error: %s", outcome.message)

    print_outcomes(outcomes, duration)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    if args.command is None:
        print(USAGE)
        return 0

    setup_logging(args.log_dir, verbose=args.verbose)

    try:
        base = load_config(args.config) if args.config is not None else CrawlConfig()
    except Exception as exc:
        logging.error("Failed to build config: %s", exc)
        return 2

    if args.command == "crawl":
        return run_crawl(base, args.params)
    if args.command == "batch":
        return run_batch(base, args.params)

    print(f"Unknown command: {args.command}")
    print("Use 'crawl' or 'batch' commands")
    print(USAGE)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
