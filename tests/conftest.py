"""Shared fixtures for the crawler tests."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlparse

import pytest

from eh_crawl.config import CrawlConfig
from eh_crawl.content import IMAGE_SIZES_SCRIPT
from eh_crawl.palette import PALETTE_SCRIPT

BASE_URL = "https://example.com"

PALETTE_OBSERVATION = {
    "background": "rgb(250, 250, 250)",
    "text": "rgb(34, 34, 34)",
    "htmlBackground": "rgba(0, 0, 0, 0)",
    "htmlText": "rgb(0, 0, 0)",
    "themeColor": None,
    "candidates": [
        {"color": "rgb(255, 0, 0)", "weight": 10},
        {"color": "rgb(0, 128, 0)", "weight": 5},
        {"color": "rgb(0, 0, 255)", "weight": 1},
    ],
}


def make_page(title: str, links: Iterable[str] = (), body: str = "") -> str:
    anchors = "".join(f'<a href="{href}">{href}</a>' for href in links)
    return (
        "<!DOCTYPE html><html><head>"
        f"<title>{title}</title><meta charset=\"utf-8\"></head>"
        f"<body><nav>{anchors}</nav><main><h1>{title}</h1>{body}</main></body></html>"
    )


class FakeDriver:
    """In-memory page driver serving static HTML per path."""

    def __init__(
        self,
        pages: Dict[str, str],
        palette: Optional[Dict[str, Any]] = None,
        failing: Iterable[str] = (),
        image_sizes: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        self.pages = pages
        self.palette = PALETTE_OBSERVATION if palette is None else palette
        self.failing = set(failing)
        self.image_sizes = image_sizes or []
        self.visits: List[str] = []
        self.urls: List[str] = []
        self.current: Optional[str] = None

    async def goto(self, url: str) -> None:
        path = urlparse(url).path or "/"
        self.urls.append(url)
        self.visits.append(path)
        if path in self.failing or path not in self.pages:
            raise RuntimeError(f"navigation failed for {url}")
        self.current = path

    async def content(self) -> str:
        return self.pages[self.current]

    async def evaluate(self, script: str) -> Any:
        if script == PALETTE_SCRIPT:
            return self.palette
        if script == IMAGE_SIZES_SCRIPT:
            return self.image_sizes
        raise AssertionError("unexpected script")


@pytest.fixture()
def config() -> CrawlConfig:
    """Crawl settings with no politeness delay."""
    return CrawlConfig(url=BASE_URL, delay=0)


SAMPLE_HTML = """\
<!DOCTYPE html>
<html>
<head>
    <title>  Sample   Page </title>
    <meta property="og:image" content="/og.png">
    <link rel="stylesheet" href="/site.css">
    <script>var tracking = true;</script>
    <style>body { color: red; }</style>
</head>
<body>
    <header class="site-header"><a href="/">Home</a><a href="/about/">About</a></header>
    <nav><a href="/blog">Blog</a><a href="mailto:hi@example.com">Mail</a></nav>
    <main id="main" class="page">
        <h1 class="title">Welcome to the sample</h1>
        <p>First paragraph with <a href="/blog/post?ref=1#top">a link</a> inside.</p>
        <p>ok</p>
        <img src="/logo-small.svg" alt="logo">
        <img src="/photo.jpg" width="400" height="300" alt="photo">
        <form><input type="text"><button>Send it</button></form>
        <!-- editorial note -->
        <div></div>
    </main>
    <footer>Copyright 2024 Example</footer>
    <noscript>Please enable JavaScript</noscript>
</body>
</html>
"""
