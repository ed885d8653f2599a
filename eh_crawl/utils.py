"""Utility helpers for identifiers, URLs and formatting."""

from __future__ import annotations

import datetime as dt
import re
from urllib.parse import urljoin

WWW_PREFIX = re.compile(r"^www\.", re.IGNORECASE)
TLD_SUFFIX = re.compile(r"\.[^.]+$")
NON_ALNUM = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def generate_site_id(hostname: str) -> str:
    """Slug a hostname: drop ``www.`` and the TLD, dash out the rest."""
    value = WWW_PREFIX.sub("", hostname)
    value = TLD_SUFFIX.sub("", value)
    return NON_ALNUM.sub("-", value).lower()


def absolute_url(value: str, base_url: str) -> str:
    """Resolve ``value`` against ``base_url``; keep it unchanged if that fails."""
    try:
        return urljoin(base_url, value)
    except ValueError:
        return value


def format_bytes(size: int) -> str:
    if size < 1024:
        return f"{size}B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f}KB"
    return f"{size / (1024 * 1024):.1f}MB"


def utc_timestamp() -> str:
    return (
        dt.datetime.now(dt.timezone.utc)
        .replace(microsecond=0)
        .isoformat()
        .replace("+00:00", "Z")
    )
