"""Site color palette inferred from computed styles of the root page."""

from __future__ import annotations

import colorsys
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from .driver import PageDriver
from .models import DEFAULT_PALETTE, SitePalette

logger = logging.getLogger("eh_crawl")

CTA_WEIGHT = 10
HEADER_WEIGHT = 5
HEADING_WEIGHT = 2
LINK_WEIGHT = 1
SATURATION_FACTOR = 5
MIN_SATURATION = 0.3
NEUTRAL_SPREAD = 30
MAX_ELEMENTS_PER_SOURCE = 60

WHITE = "#ffffff"

PALETTE_SCRIPT = """() => {
    const limit = %(limit)d;
    const computed = el => window.getComputedStyle(el);
    const candidates = [];
    const collect = (selector, property, weight) => {
        Array.from(document.querySelectorAll(selector)).slice(0, limit).forEach(el => {
            candidates.push({ color: computed(el)[property], weight });
        });
    };
    collect('button, [role="button"], input[type="submit"], [class*="btn"], [class*="button"], [class*="cta"]',
            'backgroundColor', %(cta)d);
    collect('header, nav, [class*="header"], [class*="nav"], [id*="header"], [id*="nav"]',
            'backgroundColor', %(header)d);
    collect('h1, h2, h3, strong, em, mark, [class*="title"], [class*="highlight"]', 'color', %(heading)d);
    collect('a[href]', 'color', %(link)d);
    const body = document.body;
    const html = document.documentElement;
    const theme = document.querySelector('meta[name="theme-color"]');
    return {
        background: body ? computed(body).backgroundColor : null,
        text: body ? computed(body).color : null,
        htmlBackground: html ? computed(html).backgroundColor : null,
        htmlText: html ? computed(html).color : null,
        themeColor: theme ? theme.getAttribute('content') : null,
        candidates,
    };
}""" % {
    "limit": MAX_ELEMENTS_PER_SOURCE,
    "cta": CTA_WEIGHT,
    "header": HEADER_WEIGHT,
    "heading": HEADING_WEIGHT,
    "link": LINK_WEIGHT,
}

RGB_PATTERN = re.compile(r"rgba?\(([^)]+)\)")
HEX_PATTERN = re.compile(r"^#([0-9a-f]{3}|[0-9a-f]{6})$")

Rgba = Tuple[int, int, int, float]


class PaletteError(Exception):
    """Raised when the palette observation holds nothing usable."""


def parse_color(value: Optional[str]) -> Optional[Rgba]:
    """Parse a computed ``rgb()``/``rgba()`` or hex color."""
    if not value:
        return None
    value = value.strip().lower()
    if value in {"transparent", "none"}:
        return None
    match = RGB_PATTERN.match(value)
    if match:
        parts = [p.strip() for p in re.split(r"[,\s/]+", match.group(1)) if p.strip()]
        if len(parts) < 3:
            return None
        try:
            r, g, b = (int(float(p)) for p in parts[:3])
            alpha = float(parts[3]) if len(parts) > 3 else 1.0
        except ValueError:
            return None
        return r, g, b, alpha
    hex_value = normalize_hex(value)
    if hex_value:
        return int(hex_value[1:3], 16), int(hex_value[3:5], 16), int(hex_value[5:7], 16), 1.0
    return None


def normalize_hex(value: Optional[str]) -> Optional[str]:
    """``#abc`` / ``#AABBCC`` to ``#aabbcc``; ``None`` for anything else."""
    if not value:
        return None
    value = value.strip().lower()
    match = HEX_PATTERN.match(value)
    if not match:
        return None
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return "#" + digits


def to_hex(rgba: Rgba) -> str:
    r, g, b = (max(0, min(255, channel)) for channel in rgba[:3])
    return f"#{r:02x}{g:02x}{b:02x}"


def is_transparent(rgba: Optional[Rgba]) -> bool:
    return rgba is None or rgba[3] <= 0


def is_neutral(rgba: Rgba) -> bool:
    return max(rgba[:3]) - min(rgba[:3]) < NEUTRAL_SPREAD


def saturation(rgba: Rgba) -> float:
    _, _, sat = colorsys.rgb_to_hls(rgba[0] / 255.0, rgba[1] / 255.0, rgba[2] / 255.0)
    return sat


def _first_opaque(*values: Optional[str]) -> Optional[str]:
    for value in values:
        rgba = parse_color(value)
        if not is_transparent(rgba):
            return to_hex(rgba)
    return None


def rank_candidates(candidates: List[Dict[str, Any]]) -> List[Tuple[float, str]]:
    """Score saturated, non-neutral colors; best first, one entry per color."""
    best: Dict[str, float] = {}
    for candidate in candidates:
        rgba = parse_color(candidate.get("color"))
        if is_transparent(rgba) or is_neutral(rgba):
            continue
        sat = saturation(rgba)
        if sat <= MIN_SATURATION:
            continue
        score = float(candidate.get("weight") or 0) + sat * SATURATION_FACTOR
        color = to_hex(rgba)
        if score > best.get(color, float("-inf")):
            best[color] = score
    ranked = [(score, color) for color, score in best.items()]
    ranked.sort(key=lambda item: item[0], reverse=True)
    return ranked


def build_palette(observation: Optional[Dict[str, Any]]) -> SitePalette:
    """Turn the PALETTE_SCRIPT observation into a palette."""
    if not observation:
        raise PaletteError("palette script returned no data")
    ranked = rank_candidates(observation.get("candidates") or [])
    if not ranked:
        raise PaletteError("no saturated color candidates")

    primary = ranked[0][1]
    accent = ranked[1][1] if len(ranked) > 1 else primary
    theme_color = normalize_hex(observation.get("themeColor"))
    if theme_color:
        primary = theme_color

    return SitePalette(
        background_color=_first_opaque(
            observation.get("background"), observation.get("htmlBackground")
        ) or WHITE,
        primary_color=primary,
        accent_color=accent,
        text_color=_first_opaque(observation.get("text"), observation.get("htmlText"))
        or DEFAULT_PALETTE.text_color,
        theme_color=theme_color,
    )


async def extract_palette(driver: PageDriver) -> SitePalette:
    """Palette of the currently loaded page, or the default one on any failure."""
    try:
        observation = await driver.evaluate(PALETTE_SCRIPT)
        palette = build_palette(observation)
    except Exception as exc:  # pylint: disable=broad-except
        logger.warning("Failed to parse site style, using defaults: %s", exc)
        return DEFAULT_PALETTE
    logger.debug(
        "Site style: bg=%s, primary=%s, accent=%s",
        palette.background_color,
        palette.primary_color,
        palette.accent_color,
    )
    return palette
