"""HTML extraction: tag census, samples, links, readable content and images."""

from __future__ import annotations

import re
from collections import OrderedDict
from typing import Any, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Comment, NavigableString, Tag
from bs4.element import (
    CData,
    PreformattedString,
    RubyParenthesisString,
    RubyTextString,
    Script,
    Stylesheet,
)

from .driver import PageDriver
from .models import ElementSample, ExtractedPage
from .utils import absolute_url

NOISE_TAGS = frozenset(("script", "style", "meta", "link", "noscript"))
MAX_SAMPLES = 30
MAX_SAMPLE_CHARS = 50
MIN_SAMPLE_CHARS = 3
ELLIPSIS = "..."

DECORATIVE_KEYWORDS = (
    "icon",
    "logo",
    "favicon",
    "button",
    "arrow",
    "close",
    "chevron",
    "caret",
    "spinner",
    "loading",
    "spacer",
    "placeholder",
    "blank",
    "pixel",
    "transparent",
    "badge",
)
MIN_SAMPLE_IMAGE_SIDE = 100
MAX_ASPECT_RATIO = 5.0

SHORTLIST_KEYWORDS = ("icon", "logo", "favicon")
MIN_SHORTLIST_SIDE = 50
MAX_SHORTLIST_IMAGES = 5

CONTENT_SELECTORS = (
    "main",
    "article",
    ".content",
    "#main",
    "#content",
    ".main-content",
)
STRIPPED_CONTENT_TAGS = (
    "style",
    "script",
    "noscript",
    "svg",
    "iframe",
    "img",
    "video",
    "audio",
    "canvas",
    "form",
    "input",
    "button",
    "nav",
    "header",
    "footer",
    "aside",
)
ALLOWED_CONTENT_TAGS = frozenset(
    ("p", "div", "span", "h1", "h2", "h3", "h4", "h5", "h6",
     "ul", "ol", "li", "strong", "em", "b", "i", "br")
)
MAX_CONTENT_CHARS = 2000

# Strings counted by the DOM textContent of <body>; template content is excluded.
BODY_TEXT_TYPES = (
    NavigableString,
    CData,
    Script,
    Stylesheet,
    RubyTextString,
    RubyParenthesisString,
)

WHITESPACE = re.compile(r"\s+")
TAG_PATTERN = re.compile(r"</?([a-zA-Z][a-zA-Z0-9]*)[^>]*>")
EMPTY_TAG_PATTERN = re.compile(
    r"<(p|div|span|h[1-6]|ul|ol|li|strong|em|b|i)>\s*</\1>"
)
PARTIAL_TAG_TAIL = re.compile(r"<[^>]*$")
LEADING_NUMBER = re.compile(r"^\s*(\d+(?:\.\d+)?)")

IMAGE_SIZES_SCRIPT = """() => Array.from(document.querySelectorAll('img[src]')).map(img => ({
    src: img.getAttribute('src'),
    width: img.naturalWidth || 0,
    height: img.naturalHeight || 0,
}))"""

ImageSizes = Dict[str, Tuple[float, float]]


def collapse_whitespace(text: str) -> str:
    return WHITESPACE.sub(" ", text or "").strip()


def parse_dimension(value: Any) -> Optional[float]:
    """Read a declared size such as ``400`` or ``"120px"``; ``None`` if absent."""
    if value is None:
        return None
    match = LEADING_NUMBER.match(str(value))
    if not match:
        return None
    return float(match.group(1))


def image_sizes_from_script(result: Any) -> ImageSizes:
    """Turn the IMAGE_SIZES_SCRIPT result into ``{src: (width, height)}``."""
    sizes: ImageSizes = {}
    for item in result or []:
        if not isinstance(item, dict) or not item.get("src"):
            continue
        width = float(item.get("width") or 0)
        height = float(item.get("height") or 0)
        if width or height:
            sizes.setdefault(item["src"], (width, height))
    return sizes


def _image_dimensions(
    img: Tag, natural_sizes: Optional[ImageSizes]
) -> Tuple[Optional[float], Optional[float]]:
    width = parse_dimension(img.get("width"))
    height = parse_dimension(img.get("height"))
    natural = (natural_sizes or {}).get(img.get("src") or "")
    if natural:
        if width is None and natural[0]:
            width = natural[0]
        if height is None and natural[1]:
            height = natural[1]
    return width, height


def is_sample_image(img: Tag, natural_sizes: Optional[ImageSizes] = None) -> bool:
    """Strict filter for images sampled into the ``img`` census entry."""
    src = (img.get("src") or "").strip()
    if not src:
        return False
    lowered = src.lower()
    if any(keyword in lowered for keyword in DECORATIVE_KEYWORDS):
        return False
    if lowered.startswith("data:"):
        return False
    if lowered.split("#", 1)[0].split("?", 1)[0].endswith(".svg"):
        return False

    width, height = _image_dimensions(img, natural_sizes)
    if width is not None and width < MIN_SAMPLE_IMAGE_SIDE:
        return False
    if height is not None and height < MIN_SAMPLE_IMAGE_SIDE:
        return False
    if width and height:
        ratio = max(width, height) / min(width, height)
        if ratio > MAX_ASPECT_RATIO:
            return False
    return True


def own_text(element: Tag) -> str:
    """Text of the element's direct text children only, whitespace-collapsed."""
    parts = [
        str(child)
        for child in element.children
        if isinstance(child, NavigableString)
        and not isinstance(child, PreformattedString)
    ]
    return collapse_whitespace("".join(parts))


def sample_text(element: Tag) -> Optional[str]:
    text = own_text(element)
    if len(text) < MIN_SAMPLE_CHARS:
        return None
    if len(text) > MAX_SAMPLE_CHARS:
        return text[: MAX_SAMPLE_CHARS - len(ELLIPSIS)] + ELLIPSIS
    return text


def census(
    soup: BeautifulSoup, natural_sizes: Optional[ImageSizes] = None
) -> Tuple[List[ElementSample], int]:
    """Count every non-noise tag and collect up to 30 unique samples per tag."""
    counts: "OrderedDict[str, int]" = OrderedDict()
    samples: Dict[str, "OrderedDict[str, None]"] = {}

    for element in soup.find_all(True):
        tag = element.name.lower()
        if tag in NOISE_TAGS:
            continue
        counts[tag] = counts.get(tag, 0) + 1
        bucket = samples.setdefault(tag, OrderedDict())
        if len(bucket) >= MAX_SAMPLES:
            continue
        if tag == "img":
            if is_sample_image(element, natural_sizes):
                bucket[element["src"].strip()] = None
        else:
            text = sample_text(element)
            if text:
                bucket[text] = None

    elements: List[ElementSample] = []
    for tag, count in counts.items():
        collected = list(samples[tag])
        if tag == "img":
            elements.append(ElementSample(tag, count, [], collected))
        else:
            elements.append(ElementSample(tag, count, collected))
    elements.sort(key=lambda sample: sample.count, reverse=True)
    return elements, sum(counts.values())


def collect_links(soup: BeautifulSoup) -> List[str]:
    """Raw ``href`` of every anchor, in document order."""
    return [anchor["href"] for anchor in soup.find_all("a", href=True)]


def _content_root(soup: BeautifulSoup) -> Optional[Tag]:
    for selector in CONTENT_SELECTORS:
        candidate = soup.select_one(selector)
        if candidate:
            return candidate
    return soup.body


def _keep_allowed_tags(match: "re.Match[str]") -> str:
    tag = match.group(1).lower()
    if tag not in ALLOWED_CONTENT_TAGS:
        return ""
    if tag == "br":
        return "<br>"
    if match.group(0).startswith("</"):
        return f"</{tag}>"
    return f"<{tag}>"


def extract_readable_content(soup: BeautifulSoup) -> str:
    """Minimal, attribute-free HTML excerpt of the page's main content."""
    root = _content_root(soup)
    if root is None:
        return ""
    fragment = BeautifulSoup(str(root), "html.parser")
    for tag in fragment(list(STRIPPED_CONTENT_TAGS)):
        tag.decompose()
    for comment in fragment.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()
    for tag in fragment.find_all(True):
        tag.attrs = {}

    html = TAG_PATTERN.sub(_keep_allowed_tags, str(fragment))
    html = collapse_whitespace(html)
    previous = None
    while previous != html:
        previous = html
        html = EMPTY_TAG_PATTERN.sub("", html)
        html = collapse_whitespace(html)

    if len(html) > MAX_CONTENT_CHARS:
        html = PARTIAL_TAG_TAIL.sub("", html[:MAX_CONTENT_CHARS])
    return html


def collect_image_shortlist(soup: BeautifulSoup) -> List[str]:
    """Up to five representative images, using the looser shortlist filter."""
    shortlist: List[str] = []
    for img in soup.find_all("img", src=True):
        src = img["src"].strip()
        if not src or src in shortlist:
            continue
        lowered = src.lower()
        if any(keyword in lowered for keyword in SHORTLIST_KEYWORDS):
            continue
        width = parse_dimension(img.get("width"))
        height = parse_dimension(img.get("height"))
        if width is not None and width < MIN_SHORTLIST_SIDE:
            continue
        if height is not None and height < MIN_SHORTLIST_SIDE:
            continue
        shortlist.append(src)
        if len(shortlist) >= MAX_SHORTLIST_IMAGES:
            break
    return shortlist


def extract_og_image(soup: BeautifulSoup) -> Optional[str]:
    tag = soup.find("meta", attrs={"property": "og:image"})
    if tag and tag.get("content"):
        return tag["content"].strip() or None
    return None


def extract_title(soup: BeautifulSoup) -> str:
    if soup.title:
        return collapse_whitespace(soup.title.get_text())
    return ""


def parse_page(
    html: str,
    base_url: str,
    natural_sizes: Optional[ImageSizes] = None,
) -> ExtractedPage:
    """Build the structural record of one rendered page.

    ``links`` are returned raw; the controller normalizes them. Every image
    URL is resolved against ``base_url``.
    """
    soup = BeautifulSoup(html, "html.parser")

    elements, total = census(soup, natural_sizes)
    for element in elements:
        if element.sample_image_urls is not None:
            element.sample_image_urls = _unique_absolute(
                element.sample_image_urls, base_url
            )

    content_length = len(soup.body.get_text(types=BODY_TEXT_TYPES)) if soup.body else 0
    og_image = extract_og_image(soup)

    return ExtractedPage(
        title=extract_title(soup),
        elements=elements,
        total_element_count=total,
        links=collect_links(soup),
        content_length=content_length,
        text_content=extract_readable_content(soup),
        image_urls=[absolute_url(src, base_url) for src in collect_image_shortlist(soup)],
        og_image=absolute_url(og_image, base_url) if og_image else None,
    )


def _unique_absolute(urls: List[str], base_url: str) -> List[str]:
    resolved = [absolute_url(url, base_url) for url in urls]
    return list(dict.fromkeys(resolved))


async def extract_page(driver: PageDriver, base_url: str) -> ExtractedPage:
    """Extract the currently loaded page from a page driver."""
    html = await driver.content()
    natural_sizes = image_sizes_from_script(await driver.evaluate(IMAGE_SIZES_SCRIPT))
    return parse_page(html, base_url, natural_sizes)
