"""
Markup-embedded JSON extractor.

Finds JSON objects with vessel lists inside the raw page HTML (inline
scripts, hydration blobs) and parses them.
"""

import json
import re

from loguru import logger

from src.crawler.extractors.shape import is_markup_payload
from src.crawler.types import BrowserPage, ExtractionResult, Found, NotFound

markup_log = logger.bind(module="MarkupExtractor")

KEY_PATTERNS = tuple(
    re.compile(rf'"{key}"\s*:\s*\[\s*\{{\s*"([^"]+)"\s*:')
    for key in ("data", "vessels", "ships", "tankers")
)

# How many opening braces to try before giving up on a hit
MAX_BRACE_CANDIDATES = 2000

_decoder = json.JSONDecoder()


def recover_enclosing_object(text: str, start: int, end: int) -> dict | None:
    """
    Recover the smallest JSON object enclosing text[start:end].

    Opening braces are tried from ``start`` backward. The decoder is
    string-aware, so braces inside string values never break the match.

    Args:
        text: Raw markup
        start: Start of the key hit
        end: End of the key hit

    Returns:
        Parsed object or None
    """
    position = start
    for _ in range(MAX_BRACE_CANDIDATES):
        position = text.rfind("{", 0, position)
        if position < 0:
            return None
        try:
            obj, obj_end = _decoder.raw_decode(text, position)
        except ValueError:
            continue
        if isinstance(obj, dict) and obj_end >= end:
            return obj
    markup_log.debug(
        f"Gave up after {MAX_BRACE_CANDIDATES} opening braces before offset {start}"
    )
    return None


def find_embedded_json(html: str) -> dict | None:
    """
    Search markup for an embedded object with a vessel list.

    Args:
        html: Raw page markup

    Returns:
        The first parsed object with a non-empty data/vessels/ships/tankers
        list, or None
    """
    for pattern in KEY_PATTERNS:
        match = pattern.search(html)
        if not match:
            continue
        obj = recover_enclosing_object(html, match.start(), match.end())
        if obj is None:
            markup_log.debug(f"Could not parse JSON around {match.group(0)[:40]!r}")
            continue
        if is_markup_payload(obj):
            return obj
    return None


async def extract_from_markup(page: BrowserPage) -> ExtractionResult:
    """
    Extract vessel data embedded as JSON in the page markup.

    Args:
        page: Settled browser page

    Returns:
        Found(obj, "html-json") or NotFound
    """
    html = await page.content()
    obj = find_embedded_json(html)
    if obj is None:
        return NotFound("no embedded JSON with vessel list")

    markup_log.info("Found JSON data in HTML")
    return Found(obj, "html-json")
