"""Normalization of raw anchor hrefs into canonical same-host paths."""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional
from urllib.parse import urljoin, urlparse

logger = logging.getLogger("eh_crawl")

REJECTED_SCHEMES = ("javascript:", "mailto:", "tel:")
TRAILING_SLASHES = re.compile(r"/+$")


def normalize_path(path: str) -> str:
    """Canonical form of a path: no trailing slashes, exactly one leading slash.

    The root path is ``/``. Applying this twice gives the same result.
    """
    normalized = TRAILING_SLASHES.sub("", path)
    return "/" + normalized.lstrip("/")


def normalize_link(href: Optional[str], base_url: str) -> Optional[str]:
    """Return the canonical path for ``href`` or ``None`` if it is not crawlable.

    Drops empty and fragment-only hrefs, ``javascript:``/``mailto:``/``tel:``
    links, links to other hosts and anything that fails to parse. Query and
    fragment are discarded.
    """
    if not href:
        return None
    candidate = href.strip()
    if not candidate or candidate.startswith("#"):
        return None
    if candidate.lower().startswith(REJECTED_SCHEMES):
        return None
    try:
        resolved = urlparse(urljoin(base_url, candidate))
        hostname = resolved.hostname
        base_hostname = urlparse(base_url).hostname
    except ValueError:
        logger.debug("Dropping malformed link %r", href)
        return None
    if resolved.scheme not in ("http", "https") or hostname != base_hostname:
        return None
    return normalize_path(resolved.path)


def normalize_links(hrefs: Iterable[str], base_url: str) -> List[str]:
    """Normalize hrefs into a deduplicated list, first occurrence first."""
    paths: List[str] = []
    seen = set()
    for href in hrefs:
        path = normalize_link(href, base_url)
        if path is None or path in seen:
            continue
        seen.add(path)
        paths.append(path)
    return paths
