"""Cross-page statistics computed once the crawl is complete.

Everything here is a pure function of the recorded pages; ``build_output``
assembles the final document from a finished crawl.
"""

from __future__ import annotations

import math
from dataclasses import replace
from typing import Dict, Iterable, List, Sequence, Set

from .config import CRAWLER_VERSION, CrawlConfig
from .models import (
    CrawlMetadata,
    CrawlOutput,
    ElementStat,
    PageRecord,
    SitePalette,
)
from .utils import generate_site_id

DEFAULT_RARE_THRESHOLD = 5

BASE_WIDTH = 800
ELEMENT_FACTOR = 5
CONTENT_FACTOR = 0.1
MIN_WIDTH = 800
MAX_WIDTH = 4000

BASE_RARITY: Dict[str, int] = {
    # tier 1
    "p": 1, "span": 1, "div": 1, "a": 1, "li": 1, "img": 1,
    "ul": 1, "ol": 1, "br": 1, "hr": 1, "em": 1, "strong": 1,
    # tier 2
    "h6": 2, "h5": 2, "h4": 2, "table": 2, "form": 2, "button": 2,
    "input": 2, "select": 2, "textarea": 2, "label": 2, "tr": 2, "td": 2,
    # tier 3
    "h3": 3, "h2": 3, "h1": 3, "article": 3, "section": 3,
    "video": 3, "audio": 3, "canvas": 3, "iframe": 3, "nav": 3, "aside": 3,
    # tier 4
    "dialog": 4, "template": 4, "details": 4, "meter": 4,
    "progress": 4, "svg": 4, "picture": 4, "mark": 4, "summary": 4,
    # tier 5
    "ruby": 5, "bdo": 5, "wbr": 5, "data": 5, "slot": 5, "output": 5,
    "math": 5, "object": 5, "embed": 5,
}


def detect_common_links(pages: Sequence[PageRecord], threshold: float = 0.8) -> Set[str]:
    """Links present on at least ``threshold`` of the pages.

    Each page counts a link once no matter how often it repeats it.
    """
    total_pages = len(pages)
    if not total_pages:
        return set()

    occurrence: Dict[str, int] = {}
    for page in pages:
        for link in set(page.links):
            occurrence[link] = occurrence.get(link, 0) + 1

    return {link for link, count in occurrence.items() if count / total_pages >= threshold}


def filter_common_links(links: Iterable[str], common_links: Set[str]) -> List[str]:
    return [link for link in links if link not in common_links]


def find_deepest_pages(pages: Sequence[PageRecord]) -> List[str]:
    if not pages:
        return []
    max_depth = max(page.depth for page in pages)
    return [page.path for page in pages if page.depth == max_depth]


def find_rare_elements(
    pages: Sequence[PageRecord], threshold: int = DEFAULT_RARE_THRESHOLD
) -> List[str]:
    """Tags whose total count over the whole crawl is at most ``threshold``."""
    totals: Dict[str, int] = {}
    for page in pages:
        for element in page.elements:
            totals[element.tag] = totals.get(element.tag, 0) + element.count
    return sorted(tag for tag, count in totals.items() if count <= threshold)


def base_rarity(tag: str) -> int:
    return BASE_RARITY.get(tag, 1)


def calculate_rarity(tag: str, page_count: int, total_pages: int) -> int:
    """Base tier raised to a floor set by how few pages carry the tag."""
    base = base_rarity(tag)
    if total_pages <= 0:
        return base
    page_rate = page_count / total_pages
    if page_rate < 0.1:
        return max(base, 4)
    if page_rate < 0.3:
        return max(base, 3)
    if page_rate < 0.5:
        return max(base, 2)
    return base


def calculate_element_stats(pages: Sequence[PageRecord]) -> Dict[str, ElementStat]:
    stats: Dict[str, ElementStat] = {}
    for page in pages:
        seen_on_page = set()
        for element in page.elements:
            stat = stats.setdefault(element.tag, ElementStat())
            stat.total_count += element.count
            if element.tag not in seen_on_page:
                seen_on_page.add(element.tag)
                stat.page_count += 1

    total_pages = len(pages)
    for tag, stat in stats.items():
        stat.rarity = calculate_rarity(tag, stat.page_count, total_pages)
    return stats


def estimate_width(total_element_count: float, content_length: float) -> int:
    """Layout width hint, always within [800, 4000]."""
    width = BASE_WIDTH + total_element_count * ELEMENT_FACTOR + content_length * CONTENT_FACTOR
    if math.isnan(width):
        return MIN_WIDTH
    width = max(MIN_WIDTH, min(MAX_WIDTH, width))
    return int(math.floor(width + 0.5))


def build_output(
    pages: Sequence[PageRecord],
    config: CrawlConfig,
    site_style: SitePalette,
    crawled_at: str,
    duration_ms: int,
) -> CrawlOutput:
    """Assemble the output document from a finished crawl."""
    common_links = detect_common_links(pages, config.common_threshold)
    output_pages = tuple(
        replace(
            page,
            links=filter_common_links(page.links, common_links),
            estimated_width=estimate_width(page.total_element_count, page.content_length),
        )
        for page in pages
    )

    site_id = config.site_id or generate_site_id(config.hostname)
    site_name = config.site_name or (pages[0].title if pages else "") or config.hostname

    metadata = CrawlMetadata(
        crawled_at=crawled_at,
        crawler_version=CRAWLER_VERSION,
        total_pages=len(pages),
        total_elements=sum(page.total_element_count for page in pages),
        max_depth=max((page.depth for page in pages), default=0),
        crawl_duration=duration_ms,
    )

    return CrawlOutput(
        site_id=site_id,
        site_name=site_name,
        base_url=config.origin,
        metadata=metadata,
        site_style=site_style,
        pages=output_pages,
        common_links=tuple(sorted(common_links)),
        rare_elements=tuple(find_rare_elements(pages)),
        deepest_pages=tuple(find_deepest_pages(pages)),
        element_stats=calculate_element_stats(pages),
    )
