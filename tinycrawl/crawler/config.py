"""Typed crawler configuration with JSON/YAML load/save helpers."""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml  # type: ignore

from .constants import (
    DEFAULT_DEBUG_DIR,
    DEFAULT_HTTP_HEADERS,
    DEFAULT_MAX_CONCURRENT,
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_LOOPS,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_MAX_REQUEST_DELAY_MS,
    DEFAULT_MIN_REQUEST_DELAY_MS,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_PATTERN_THRESHOLD,
    DEFAULT_PRIORITY_PATHS,
    DEFAULT_SKIP_PATTERNS,
    DEFAULT_SKIP_SUBDOMAIN_PATTERNS,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENTS,
    JSON_INDENT,
    SUPPORTED_CONFIG_SUFFIXES,
)
from .types import JSONDict


def _as_int(value: Any, key: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid int for '{key}': {value!r}") from exc


def _as_float(value: Any, key: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid float for '{key}': {value!r}") from exc


def _as_str_tuple(value: Any, key: str) -> tuple[str, ...]:
    if isinstance(value, str):
        raise ValueError(f"Expected a list of strings for '{key}', got a string: {value!r}")
    try:
        return tuple(str(item) for item in value)
    except TypeError as exc:
        raise ValueError(f"Expected a list of strings for '{key}': {value!r}") from exc


def _as_header_pairs(value: Any, key: str) -> tuple[tuple[str, str], ...]:
    """Accept a mapping or `(name, value)` pairs; return a hashable tuple of pairs."""

    items = value.items() if isinstance(value, Mapping) else value
    try:
        return tuple((str(name), str(header)) for name, header in items)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Expected a mapping of header names to values for '{key}': {value!r}") from exc


@dataclass(frozen=True, slots=True)
class CrawlConfig:
    """Immutable per-crawl settings, shared by every worker of a crawl."""

    max_depth: int = DEFAULT_MAX_DEPTH
    max_loops: int = DEFAULT_MAX_LOOPS
    max_concurrent: int = DEFAULT_MAX_CONCURRENT
    pattern_threshold: int = DEFAULT_PATTERN_THRESHOLD

    skip_patterns: tuple[str, ...] = DEFAULT_SKIP_PATTERNS
    skip_subdomain_patterns: tuple[str, ...] = DEFAULT_SKIP_SUBDOMAIN_PATTERNS
    priority_paths: tuple[str, ...] = DEFAULT_PRIORITY_PATHS

    min_request_delay_ms: int = DEFAULT_MIN_REQUEST_DELAY_MS
    max_request_delay_ms: int = DEFAULT_MAX_REQUEST_DELAY_MS
    user_agents: tuple[str, ...] = DEFAULT_USER_AGENTS

    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    default_headers: tuple[tuple[str, str], ...] = tuple(DEFAULT_HTTP_HEADERS.items())

    output_dir: Path = DEFAULT_OUTPUT_DIR
    debug_dir: Path = DEFAULT_DEBUG_DIR

    def __post_init__(self) -> None:
        # Callers may pass lists or dicts; store tuples so the config stays hashable.
        for name in ("skip_patterns", "skip_subdomain_patterns", "priority_paths", "user_agents"):
            object.__setattr__(self, name, _as_str_tuple(getattr(self, name), name))
        object.__setattr__(
            self, "default_headers", _as_header_pairs(self.default_headers, "default_headers")
        )
        object.__setattr__(self, "output_dir", Path(self.output_dir))
        object.__setattr__(self, "debug_dir", Path(self.debug_dir))

        if self.max_depth < 0:
            raise ValueError("max_depth must be >= 0")
        if self.max_loops < 0:
            raise ValueError("max_loops must be >= 0")
        if self.max_concurrent <= 0:
            raise ValueError("max_concurrent must be > 0")
        if self.pattern_threshold <= 0:
            raise ValueError("pattern_threshold must be > 0")
        if self.min_request_delay_ms < 0:
            raise ValueError("min_request_delay_ms must be >= 0")
        if self.max_request_delay_ms < self.min_request_delay_ms:
            raise ValueError("max_request_delay_ms must be >= min_request_delay_ms")
        if not self.user_agents:
            raise ValueError("user_agents must not be empty")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        if self.max_redirects < 0:
            raise ValueError("max_redirects must be >= 0")

    def with_overrides(self, **kwargs: Any) -> "CrawlConfig":
        """Return a copy with specific fields overridden."""

        return replace(self, **kwargs)

    def to_dict(self) -> JSONDict:
        """Serialize config for manifests and reproducibility."""

        return {
            "max_depth": self.max_depth,
            "max_loops": self.max_loops,
            "max_concurrent": self.max_concurrent,
            "pattern_threshold": self.pattern_threshold,
            "skip_patterns": list(self.skip_patterns),
            "skip_subdomain_patterns": list(self.skip_subdomain_patterns),
            "priority_paths": list(self.priority_paths),
            "min_request_delay_ms": self.min_request_delay_ms,
            "max_request_delay_ms": self.max_request_delay_ms,
            "user_agents": list(self.user_agents),
            "timeout_seconds": self.timeout_seconds,
            "max_redirects": self.max_redirects,
            "default_headers": dict(self.default_headers),
            "output_dir": str(self.output_dir),
            "debug_dir": str(self.debug_dir),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "CrawlConfig":
        """Build config from a parsed dictionary; missing keys take defaults."""

        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(payload) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {unknown}")

        def _seq(key: str, default: Iterable[str]) -> tuple[str, ...]:
            return _as_str_tuple(payload.get(key, default), key)

        return cls(
            max_depth=_as_int(payload.get("max_depth", DEFAULT_MAX_DEPTH), "max_depth"),
            max_loops=_as_int(payload.get("max_loops", DEFAULT_MAX_LOOPS), "max_loops"),
            max_concurrent=_as_int(
                payload.get("max_concurrent", DEFAULT_MAX_CONCURRENT), "max_concurrent"
            ),
            pattern_threshold=_as_int(
                payload.get("pattern_threshold", DEFAULT_PATTERN_THRESHOLD), "pattern_threshold"
            ),
            skip_patterns=_seq("skip_patterns", DEFAULT_SKIP_PATTERNS),
            skip_subdomain_patterns=_seq("skip_subdomain_patterns", DEFAULT_SKIP_SUBDOMAIN_PATTERNS),
            priority_paths=_seq("priority_paths", DEFAULT_PRIORITY_PATHS),
            min_request_delay_ms=_as_int(
                payload.get("min_request_delay_ms", DEFAULT_MIN_REQUEST_DELAY_MS),
                "min_request_delay_ms",
            ),
            max_request_delay_ms=_as_int(
                payload.get("max_request_delay_ms", DEFAULT_MAX_REQUEST_DELAY_MS),
                "max_request_delay_ms",
            ),
            user_agents=_seq("user_agents", DEFAULT_USER_AGENTS),
            timeout_seconds=_as_float(
                payload.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS), "timeout_seconds"
            ),
            max_redirects=_as_int(payload.get("max_redirects", DEFAULT_MAX_REDIRECTS), "max_redirects"),
            default_headers=_as_header_pairs(
                payload.get("default_headers", DEFAULT_HTTP_HEADERS), "default_headers"
            ),
            output_dir=Path(payload.get("output_dir", DEFAULT_OUTPUT_DIR)),
            debug_dir=Path(payload.get("debug_dir", DEFAULT_DEBUG_DIR)),
        )


def _load_yaml(path: Path) -> dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML config at {path} must be a mapping at top level")
    return data


def load_config(path: str | Path) -> CrawlConfig:
    """Load CrawlConfig from JSON/YAML path."""

    config_path = Path(path)
    suffix = config_path.suffix.lower()
    if suffix not in SUPPORTED_CONFIG_SUFFIXES:
        raise ValueError(
            f"Unsupported config suffix '{suffix}'. Supported: {SUPPORTED_CONFIG_SUFFIXES}"
        )

    if suffix == ".json":
        payload = json.loads(config_path.read_text(encoding="utf-8"))
    else:
        payload = _load_yaml(config_path)

    if not isinstance(payload, dict):
        raise ValueError(f"Config at {config_path} must be a mapping")

    return CrawlConfig.from_dict(payload)


def save_config(config: CrawlConfig, path: str | Path) -> None:
    """Save CrawlConfig as JSON or YAML based on file extension."""

    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    suffix = out_path.suffix.lower()
    payload = config.to_dict()

    if suffix == ".json":
        out_path.write_text(
            json.dumps(payload, indent=JSON_INDENT, sort_keys=True) + "\n",
            encoding="utf-8",
        )
        return

    if suffix in {".yaml", ".yml"}:
        out_path.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")
        return

    raise ValueError(
        f"Unsupported config suffix '{suffix}'. Supported: {SUPPORTED_CONFIG_SUFFIXES}"
    )


__all__ = [
    "CrawlConfig",
    "load_config",
    "save_config",
]
