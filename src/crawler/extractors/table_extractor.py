"""
DOM table extractor.

Reads rendered table-like containers and turns their rows into records,
using the first row as the header.
"""

from loguru import logger

from src.crawler.types import BrowserPage, ExtractionResult, Found, NotFound

table_log = logger.bind(module="TableExtractor")

# Container selectors in priority order
TABLE_SELECTORS = (
    "table.MuiTable-root",
    "table",
    ".data-table",
    ".grid-table",
    '[role="grid"]',
    ".ag-root-wrapper",
)

# Returns null when the container is missing, otherwise one entry per row:
# {header: [texts of header-capable cells], cells: [texts of data cells]}
READ_ROWS_SCRIPT = """
(selector) => {
    const table = document.querySelector(selector);
    if (!table) return null;
    const text = (cell) => (cell.textContent || '').trim();
    return Array.from(table.querySelectorAll('tr, [role="row"]')).map(row => ({
        header: Array.from(row.querySelectorAll('th, [role="columnheader"], td')).map(text),
        cells: Array.from(row.querySelectorAll('td, [role="gridcell"]')).map(text),
    }));
}
"""


def rows_to_records(rows: list[dict]) -> list[dict[str, str]]:
    """
    Convert raw table rows into records.

    Args:
        rows: Row dicts with "header" and "cells" text lists

    Returns:
        One record per data row that has at least one cell. Cells beyond
        the header count are ignored; missing cells are absent keys.
    """
    if not rows:
        return []

    first = rows[0]
    headers = [h.strip() for h in first.get("header") or []]
    if not headers:
        headers = [f"Column{i}" for i in range(len(first.get("cells") or []))]

    records = []
    for row in rows[1:]:
        cells = row.get("cells") or []
        if not cells:
            continue
        record = {
            header: cells[index].strip()
            for index, header in enumerate(headers)
            if index < len(cells)
        }
        records.append(record)
    return records


async def extract_from_tables(
    page: BrowserPage,
    selectors: tuple[str, ...] = TABLE_SELECTORS,
) -> ExtractionResult:
    """
    Extract records from the first table container that yields any.

    Args:
        page: Settled browser page
        selectors: Container selectors in priority order

    Returns:
        Found({"data": records}, "dom-table:<selector>") or NotFound
    """
    for selector in selectors:
        rows = await page.evaluate(READ_ROWS_SCRIPT, selector)
        if not rows:
            continue

        table_log.info(f"Found table element with selector: {selector}")
        records = rows_to_records(rows)
        if records:
            table_log.info(f"Extracted {len(records)} rows from table")
            return Found({"data": records}, f"dom-table:{selector}")

    return NotFound("no table with data rows")
