"""Configuration objects and constants for the crawler."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

CRAWLER_VERSION = "0.1.0"

DEFAULT_OUTPUT_ROOT = Path("data/sites")
DEFAULT_MAX_DEPTH = 3
DEFAULT_MAX_PAGES = 50
DEFAULT_DELAY = 1.0
DEFAULT_NAVIGATION_TIMEOUT = 30.0
DEFAULT_COMMON_THRESHOLD = 0.8


class ConfigError(ValueError):
    """Raised when crawl parameters are invalid; the crawl never starts."""


@dataclass(frozen=True)
class CrawlConfig:
    """Run parameters for one crawl. Times are in seconds."""

    url: str
    output_root: Path = DEFAULT_OUTPUT_ROOT
    max_depth: int = DEFAULT_MAX_DEPTH
    max_pages: int = DEFAULT_MAX_PAGES
    delay: float = DEFAULT_DELAY
    navigation_timeout: float = DEFAULT_NAVIGATION_TIMEOUT
    common_threshold: float = DEFAULT_COMMON_THRESHOLD
    site_id: Optional[str] = None
    site_name: Optional[str] = None

    def __post_init__(self) -> None:
        validate_url(self.url)
        if self.max_depth < 0:
            raise ConfigError(f"max_depth must be >= 0 (got {self.max_depth})")
        if self.max_pages < 1:
            raise ConfigError(f"max_pages must be >= 1 (got {self.max_pages})")
        if not 0.0 <= self.common_threshold <= 1.0:
            raise ConfigError(
                f"common_threshold must be between 0 and 1 (got {self.common_threshold})"
            )
        if self.delay < 0:
            raise ConfigError(f"delay must be >= 0 (got {self.delay})")
        if self.navigation_timeout <= 0:
            raise ConfigError(
                f"navigation_timeout must be > 0 (got {self.navigation_timeout})"
            )

    @property
    def origin(self) -> str:
        parsed = urlparse(self.url)
        return f"{parsed.scheme}://{parsed.netloc}"

    @property
    def hostname(self) -> str:
        return urlparse(self.url).hostname or ""


def validate_url(url: str) -> None:
    """Reject anything that is not an absolute http(s) URL with a host."""
    try:
        parsed = urlparse(url or "")
        hostname = parsed.hostname
    except ValueError as exc:
        raise ConfigError(f"Invalid URL: {url!r}") from exc
    if parsed.scheme not in ("http", "https") or not hostname:
        raise ConfigError(f"Invalid URL: {url!r}")
