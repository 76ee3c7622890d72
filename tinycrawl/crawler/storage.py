"""Filesystem-backed storage for crawl reports and debug HTML dumps.

Storage owns the on-disk layout. Other modules should use this API instead of
building paths manually.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Mapping

from .constants import DEFAULT_DEBUG_DIR, DEFAULT_OUTPUT_DIR, JSON_INDENT
from .errors import StorageError, UrlError
from .types import CrawlReport
from .url import debug_filename, domain_to_filename, extract_base_domain


LOGGER = logging.getLogger(__name__)


class Storage:
    """Persist crawl outputs.

    Layout:
    - `<output_dir>/<domain_with_underscores>.json`: one report per site.
    - `<debug_dir>/<domain>/debug_<escaped_url>.html`: pages that yielded few links.
    """

    def __init__(
        self,
        output_dir: str | Path = DEFAULT_OUTPUT_DIR,
        debug_dir: str | Path = DEFAULT_DEBUG_DIR,
    ) -> None:
        self.output_dir = Path(output_dir)
        self.debug_dir = Path(debug_dir)

    def report_path_for(self, domain: str) -> Path:
        """Return the report path for a domain, creating the output directory."""

        return domain_to_filename(domain, self.output_dir)

    def save_report(self, report: CrawlReport) -> Path:
        """Write the report as pretty-printed JSON, replacing any previous one.

        Raises `StorageError` if the file cannot be written.
        """

        try:
            path = self.report_path_for(report.base_domain)
            self._atomic_write_json(path, report.to_json())
        except (OSError, TypeError, ValueError) as exc:
            raise StorageError(f"Failed to save report for {report.base_domain}: {exc}") from exc

        LOGGER.info("Saved results to %s", path)
        return path

    def load_report(self, domain: str) -> CrawlReport:
        """Read back a previously saved report."""

        path = self.report_path_for(domain)
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise StorageError(f"Failed to load report {path}: {exc}") from exc
        return CrawlReport.from_json(payload)

    def debug_path_for(self, url: str) -> Path:
        try:
            domain = extract_base_domain(url)
        except UrlError:
            domain = "unknown_domain"
        return self.debug_dir / domain / debug_filename(url)

    def save_debug_html(self, url: str, html: str) -> Path | None:
        """Dump a page body for later inspection.

        Best effort: failures are logged at debug level and `None` is returned.
        """

        path = self.debug_path_for(url)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(html, encoding="utf-8")
        except OSError as exc:
            LOGGER.debug("Could not save debug HTML for %s: %s", url, exc)
            return None

        LOGGER.debug("Saved debug HTML to %s", path)
        return path

    @staticmethod
    def _atomic_write_json(path: Path, payload: Mapping[str, Any]) -> None:
        content = json.dumps(payload, ensure_ascii=False, indent=JSON_INDENT) + "\n"
        tmp_fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=path.name + ".",
            suffix=".tmp",
        )
        try:
            with os.fdopen(tmp_fd, "w", encoding="utf-8") as handle:
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, path)
        except Exception:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass
            raise


__all__ = ["Storage"]
