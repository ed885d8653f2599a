"""High-level orchestration: depth-first traversal of one site."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Set, Tuple

from playwright.async_api import (
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
)

from .analyzer import build_output
from .config import CrawlConfig
from .content import extract_page
from .driver import PageDriver, PlaywrightDriver
from .links import normalize_links, normalize_path
from .models import DEFAULT_PALETTE, CrawlOutput, PageRecord, SitePalette
from .palette import extract_palette
from .utils import format_bytes, utc_timestamp

logger = logging.getLogger("eh_crawl")

ROOT_PATH = "/"


@dataclass
class CrawlContext:
    """Mutable state of one crawl, owned by the single traversal task."""

    config: CrawlConfig
    visited: Set[str] = field(default_factory=set)
    pages: List[PageRecord] = field(default_factory=list)
    started_at: float = field(default_factory=time.perf_counter)

    @property
    def elapsed_ms(self) -> int:
        return int(round((time.perf_counter() - self.started_at) * 1000))


def find_parent_path(path: str, pages: Sequence[PageRecord]) -> Optional[str]:
    """Drop the last segment and look for it among the pages recorded so far.

    Only earlier pages are searched, so the first subtree to reach a page
    decides its parent.
    """
    segments = [segment for segment in path.split("/") if segment]
    if not segments:
        return None
    segments.pop()
    candidate = "/" + "/".join(segments) if segments else ROOT_PATH
    for page in pages:
        if page.path == candidate:
            return page.path
    return None


async def visit_page(
    driver: PageDriver,
    context: CrawlContext,
    path: str,
    depth: int,
    already_loaded: bool = False,
) -> Optional[PageRecord]:
    """Load and extract one page; ``None`` if anything about it failed."""
    config = context.config
    url = config.origin + path
    logger.info(
        "[%d/%d] Crawling %s (depth: %d)",
        len(context.pages) + 1,
        config.max_pages,
        path,
        depth,
    )
    try:
        if not already_loaded:
            await driver.goto(url)
        if config.delay > 0:
            await asyncio.sleep(config.delay)
        extracted = await extract_page(driver, config.origin)
    except PlaywrightTimeoutError as exc:
        logger.warning("Timeout while loading %s: %s", url, exc)
        return None
    except PlaywrightError as exc:
        logger.warning("Failed to load %s: %s", url, exc)
        return None
    except Exception:  # pylint: disable=broad-except
        logger.exception("Unexpected error crawling %s", url)
        return None

    record = PageRecord(
        path=path,
        depth=depth,
        title=extracted.title,
        elements=extracted.elements,
        total_element_count=extracted.total_element_count,
        links=normalize_links(extracted.links, config.origin),
        content_length=extracted.content_length,
        text_content=extracted.text_content,
        image_urls=extracted.image_urls,
        og_image=extracted.og_image,
        parent_path=find_parent_path(path, context.pages) if depth > 0 else None,
    )
    context.pages.append(record)
    logger.debug(
        "Elements: %d | Links: %d | Content: %s",
        record.total_element_count,
        len(record.links),
        format_bytes(record.content_length),
    )
    return record


async def traverse(
    driver: PageDriver, context: CrawlContext, root_loaded: bool = False
) -> None:
    """Depth-first walk from the root using an explicit stack.

    Links of a page are pushed in reverse so the first link is visited next,
    and its whole subtree is finished before its siblings. A path is marked
    visited when it is popped, before it is loaded.
    """
    config = context.config
    stack: List[Tuple[str, int]] = [(ROOT_PATH, 0)]
    preloaded: Optional[str] = ROOT_PATH if root_loaded else None

    while stack:
        path, depth = stack.pop()
        path = normalize_path(path)
        if path in context.visited:
            continue
        if depth > config.max_depth:
            continue
        if len(context.pages) >= config.max_pages:
            continue
        context.visited.add(path)

        already_loaded = path == preloaded
        preloaded = None
        record = await visit_page(driver, context, path, depth, already_loaded)
        if record is None:
            continue
        for link in reversed(record.links):
            stack.append((link, depth + 1))


async def crawl(config: CrawlConfig, driver: Optional[PageDriver] = None) -> CrawlOutput:
    """Crawl ``config.url``'s site from its root and build the output document.

    A Playwright browser is started when no driver is given.
    """
    if driver is None:
        async with PlaywrightDriver(config.navigation_timeout) as playwright_driver:
            return await crawl(config, playwright_driver)

    context = CrawlContext(config)
    root_url = config.origin + ROOT_PATH
    logger.info(
        "Crawling %s (max depth: %d, max pages: %d)",
        root_url,
        config.max_depth,
        config.max_pages,
    )

    site_style: SitePalette = DEFAULT_PALETTE
    try:
        await driver.goto(root_url)
    except Exception as exc:  # pylint: disable=broad-except
        logger.error("Failed to load root page %s: %s", root_url, exc)
        context.visited.add(ROOT_PATH)
    else:
        site_style = await extract_palette(driver)
        await traverse(driver, context, root_loaded=True)

    output = build_output(
        context.pages,
        config,
        site_style,
        crawled_at=utc_timestamp(),
        duration_ms=context.elapsed_ms,
    )
    logger.info(
        "Crawl complete: %d pages, %d elements, %d common links in %.1fs",
        output.metadata.total_pages,
        output.metadata.total_elements,
        len(output.common_links),
        output.metadata.crawl_duration / 1000,
    )
    return output


def write_output(output: CrawlOutput, output_dir: Path) -> Path:
    """Write ``{siteId}.json`` into ``output_dir`` and return its path."""
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / f"{output.site_id}.json"
    output_path.write_text(
        json.dumps(output.to_dict(), indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    logger.info("Saved crawl output to %s", output_path)
    return output_path
