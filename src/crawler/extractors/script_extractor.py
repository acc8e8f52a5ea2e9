"""
Script-scope extractor.

Looks for vessel records held in global JavaScript variables of the
rendered page.
"""

from typing import Any

from loguru import logger

from src.crawler.extractors.shape import SCRIPT_LIST_KEYS, find_script_vessels
from src.crawler.types import BrowserPage, ExtractionResult, Found, NotFound

script_log = logger.bind(module="ScriptExtractor")

KNOWN_GLOBALS = ("vesselData", "gridData", "tableData", "reportData")

# Lists every global that holds an array of objects, or an object with such
# an array under one of the listed properties. Only the keys of the first
# element are sent back; the shape decision is made in Python.
LIST_CANDIDATES_SCRIPT = """
([known, props]) => {
    const headKeys = (arr) => {
        const head = arr[0];
        return head && typeof head === 'object' && !Array.isArray(head) ? Object.keys(head) : null;
    };
    const describe = (name) => {
        try {
            const value = window[name];
            if (!value || typeof value !== 'object') return null;
            if (Array.isArray(value)) {
                const head = value.length ? headKeys(value) : null;
                return head ? { name, head, props: {} } : null;
            }
            const found = {};
            for (const prop of props) {
                const inner = value[prop];
                const keys = Array.isArray(inner) && inner.length ? headKeys(inner) : null;
                if (keys) found[prop] = keys;
            }
            return Object.keys(found).length ? { name, head: null, props: found } : null;
        } catch (e) {
            return null;
        }
    };
    const names = [...known];
    for (const key in window) {
        if (!names.includes(key)) names.push(key);
    }
    return names.map(describe).filter(Boolean);
}
"""

READ_GLOBAL_SCRIPT = """
(name) => JSON.parse(JSON.stringify(window[name]))
"""


def _candidate_value(candidate: dict) -> Any:
    """Rebuild a lightweight stand-in for a global from its description."""
    if candidate.get("head") is not None:
        return [dict.fromkeys(candidate["head"])]
    return {
        prop: [dict.fromkeys(keys)]
        for prop, keys in (candidate.get("props") or {}).items()
    }


def select_candidate(
    candidates: list[dict],
    known: tuple[str, ...] = KNOWN_GLOBALS,
) -> tuple[str, str] | None:
    """
    Pick the first global that holds vessel records.

    Well-known globals only need a list of records; any other global
    also needs an imo/mmsi key on its first element.

    Args:
        candidates: Descriptions returned by LIST_CANDIDATES_SCRIPT
        known: Trusted global names

    Returns:
        Tuple of (global name, property suffix) or None
    """
    for candidate in candidates:
        strict = candidate["name"] not in known
        match = find_script_vessels(_candidate_value(candidate), strict=strict)
        if match is not None:
            return candidate["name"], match[0]
    return None


async def extract_from_globals(
    page: BrowserPage,
    known: tuple[str, ...] = KNOWN_GLOBALS,
) -> ExtractionResult:
    """
    Extract vessel records from the page's global variables.

    Args:
        page: Settled browser page
        known: Global names checked before the full scan

    Returns:
        Found(payload, "window.<name>[.<prop>]") or NotFound
    """
    candidates = await page.evaluate(
        LIST_CANDIDATES_SCRIPT, [list(known), ["data", *SCRIPT_LIST_KEYS]]
    )
    selected = select_candidate(candidates or [], known)
    if selected is None:
        return NotFound("no global variable with vessel records")

    name = selected[0]
    value = await page.evaluate(READ_GLOBAL_SCRIPT, name)

    match = find_script_vessels(value, strict=name not in known)
    if match is None:
        return NotFound(f"window.{name} changed before it could be read")

    suffix = match[0]
    source = f"window.{name}{suffix}"
    script_log.info(f"Found data in JavaScript variable: {source}")

    # Objects with a data list are kept whole; other lists are wrapped
    if suffix == ".data":
        return Found(value, source)
    return Found({"data": match[1]}, source)
