"""Data models used throughout the crawler pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass
class ElementSample:
    """Census entry for one tag on one page.

    ``img`` collects image URLs; every other tag collects short texts.
    """

    tag: str
    count: int
    sample_texts: List[str] = field(default_factory=list)
    sample_image_urls: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "tag": self.tag,
            "count": self.count,
            "sampleTexts": list(self.sample_texts),
        }
        if self.sample_image_urls is not None:
            data["sampleImageUrls"] = list(self.sample_image_urls)
        return data


@dataclass
class ExtractedPage:
    """Raw extraction result before the controller attaches path and depth."""

    title: str
    elements: List[ElementSample]
    total_element_count: int
    links: List[str]
    content_length: int
    text_content: str
    image_urls: List[str]
    og_image: Optional[str]


@dataclass
class PageRecord:
    """One visited page. ``links`` holds every normalized same-host link."""

    path: str
    depth: int
    title: str
    elements: List[ElementSample]
    total_element_count: int
    links: List[str]
    content_length: int
    text_content: str
    image_urls: List[str]
    og_image: Optional[str]
    parent_path: Optional[str] = None
    estimated_width: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "depth": self.depth,
            "title": self.title,
            "elements": [element.to_dict() for element in self.elements],
            "totalElementCount": self.total_element_count,
            "links": list(self.links),
            "parentPath": self.parent_path,
            "contentLength": self.content_length,
            "estimatedWidth": self.estimated_width,
            "textContent": self.text_content,
            "imageUrls": list(self.image_urls),
            "ogImage": self.og_image,
        }


@dataclass(frozen=True)
class SitePalette:
    """Representative colors of the site as ``#rrggbb`` strings."""

    background_color: str
    primary_color: str
    accent_color: str
    text_color: str
    theme_color: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backgroundColor": self.background_color,
            "primaryColor": self.primary_color,
            "accentColor": self.accent_color,
            "textColor": self.text_color,
            "themeColor": self.theme_color,
        }


DEFAULT_PALETTE = SitePalette(
    background_color="#ffffff",
    primary_color="#0088ff",
    accent_color="#0088ff",
    text_color="#333333",
    theme_color=None,
)


@dataclass
class ElementStat:
    """Crawl-wide aggregate for a single tag."""

    total_count: int = 0
    page_count: int = 0
    rarity: int = 1

    def to_dict(self) -> Dict[str, int]:
        return {
            "totalCount": self.total_count,
            "pageCount": self.page_count,
            "rarity": self.rarity,
        }


@dataclass(frozen=True)
class CrawlMetadata:
    """Run metadata; ``crawl_duration`` is in milliseconds."""

    crawled_at: str
    crawler_version: str
    total_pages: int
    total_elements: int
    max_depth: int
    crawl_duration: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "crawledAt": self.crawled_at,
            "crawlerVersion": self.crawler_version,
            "totalPages": self.total_pages,
            "totalElements": self.total_elements,
            "maxDepth": self.max_depth,
            "crawlDuration": self.crawl_duration,
        }


@dataclass(frozen=True)
class CrawlOutput:
    """The terminal artifact of a crawl; page links exclude common links."""

    site_id: str
    site_name: str
    base_url: str
    metadata: CrawlMetadata
    site_style: SitePalette
    pages: Tuple[PageRecord, ...]
    common_links: Tuple[str, ...]
    rare_elements: Tuple[str, ...]
    deepest_pages: Tuple[str, ...]
    element_stats: Dict[str, ElementStat]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "siteId": self.site_id,
            "siteName": self.site_name,
            "baseUrl": self.base_url,
            "metadata": self.metadata.to_dict(),
            "siteStyle": self.site_style.to_dict(),
            "pages": [page.to_dict() for page in self.pages],
            "deepestPages": list(self.deepest_pages),
            "rareElements": list(self.rare_elements),
            "commonLinks": list(self.common_links),
            "elementStats": {
                tag: stat.to_dict() for tag, stat in self.element_stats.items()
            },
        }
