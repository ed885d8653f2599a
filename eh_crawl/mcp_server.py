"""MCP server exposing the site crawl as a tool."""

from __future__ import annotations

import json
import logging

from mcp.server.fastmcp import FastMCP

from .config import DEFAULT_MAX_DEPTH, DEFAULT_MAX_PAGES, CrawlConfig
from .crawler import crawl

logger = logging.getLogger("eh_crawl.mcp")
logger.setLevel(logging.ERROR)

mcp = FastMCP(name="eh-crawl")


@mcp.tool()
async def crawl_site(
    url: str,
    max_depth: int = DEFAULT_MAX_DEPTH,
    max_pages: int = DEFAULT_MAX_PAGES,
) -> str:
    """Crawl a website from its root and return its structural fingerprint as JSON."""
    config = CrawlConfig(url=url, max_depth=max_depth, max_pages=max_pages)
    output = await crawl(config)
    return json.dumps(output.to_dict(), ensure_ascii=False)


def main() -> None:
    """Entry point for running the MCP server."""
    logging.basicConfig(level=logging.ERROR)
    mcp.run()


if __name__ == "__main__":
    main()
