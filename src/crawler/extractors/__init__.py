"""
Vessel data extractors.

Each extractor reads one kind of source on a settled page: intercepted
API responses, DOM tables, global script variables, or JSON embedded in
the raw markup.
"""

from src.crawler.extractors.interceptor import ResponseInterceptor
from src.crawler.extractors.markup_extractor import (
    extract_from_markup,
    find_embedded_json,
)
from src.crawler.extractors.script_extractor import (
    extract_from_globals,
    select_candidate,
)
from src.crawler.extractors.shape import (
    extract_vessel_list,
    has_vessel_keys,
    is_markup_payload,
    is_vessel_payload,
)
from src.crawler.extractors.table_extractor import (
    extract_from_tables,
    rows_to_records,
)

__all__ = [
    # Shape rules
    "has_vessel_keys",
    "is_vessel_payload",
    "is_markup_payload",
    "extract_vessel_list",
    # Network
    "ResponseInterceptor",
    # DOM
    "extract_from_tables",
    "rows_to_records",
    # Script scope
    "extract_from_globals",
    "select_candidate",
    # Markup
    "extract_from_markup",
    "find_embedded_json",
]
