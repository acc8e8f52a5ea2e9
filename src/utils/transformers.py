"""
Record normalizer.

Turns raw vessel records from any extractor into the canonical form the
database layer expects: upper-case field names, epoch timestamps as
ISO-8601, launch dates as YYYY-MM-DD, decimal-comma numbers as floats.
"""

import math
import re
from datetime import datetime, timezone
from typing import Any

from dateutil import parser as date_parser

from src.crawler.types import VesselRecord

IDENTITY_FIELD = "SHIP_ID"

# Used to derive SHIP_ID when the source does not provide one
IDENTITY_FALLBACKS = ("IMO", "MMSI")

EPOCH_FIELDS = ("ETA_UPDATED", "FIRST_POS_TIMESTAMP")
DATE_FIELDS = ("LAUNCH_DATE",)

# Missing month or day parts resolve to January 1st, never to today
DATE_DEFAULT = datetime(1900, 1, 1)

NUMERIC_FIELDS = (
    "LAT",
    "LON",
    "SPEED",
    "COURSE",
    "DRAUGHT_MAX",
    "DRAUGHT_MIN",
    "LENGTH",
    "WIDTH",
    "LENGTH_B_W_PERPENDICULARS",
    "LENGTH_REGISTERED",
    "DEPTH",
    "BREADTH_MOULDED",
    "BREADTH_EXTREME",
)

_INTEGER_RE = re.compile(r"^-?\d+$")
_NON_IDENTIFIER_RE = re.compile(r"[^0-9A-Za-z_]+")


# ============================================
# Individual Transform Functions
# ============================================


def canonical_field_name(name: Any) -> str:
    """
    Canonicalize a field name.

    Examples:
        >>> canonical_field_name("shipname")
        'SHIPNAME'
        >>> canonical_field_name(" Vessel Name ")
        'VESSEL_NAME'
    """
    text = _NON_IDENTIFIER_RE.sub("_", str(name).strip())
    return text.strip("_").upper()


def transform_epoch(value: Any) -> Any:
    """
    Convert Unix epoch seconds to an ISO-8601 UTC timestamp.

    Values that are not plain integers are returned unchanged.

    Examples:
        >>> transform_epoch("1700000000")
        '2023-11-14T22:13:20.000Z'
        >>> transform_epoch("2023-11-14 10:00")
        '2023-11-14 10:00'
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        seconds = value
    elif isinstance(value, str) and _INTEGER_RE.match(value.strip()):
        seconds = int(value.strip())
    else:
        return value

    try:
        moment = datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return value
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def transform_date(value: Any) -> str | None:
    """
    Parse a calendar date into YYYY-MM-DD.

    Unparsable values become None.

    Examples:
        >>> transform_date("March 3, 1999")
        '1999-03-03'
        >>> transform_date("not a date") is None
        True
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        return date_parser.parse(str(value), default=DATE_DEFAULT).date().isoformat()
    except (ValueError, OverflowError):
        return None


def transform_number(value: Any) -> Any:
    """
    Parse decimal-comma text into a float.

    Non-text values and text that does not parse are returned unchanged.

    Examples:
        >>> transform_number("12,5")
        12.5
        >>> transform_number("n/a")
        'n/a'
    """
    if not isinstance(value, str):
        return value
    try:
        number = float(value.strip().replace(",", "."))
    except ValueError:
        return value
    if not math.isfinite(number):
        return value
    return number


def resolve_identity(record: VesselRecord) -> Any:
    """Return SHIP_ID, or the first available fallback identity value."""
    for field in (IDENTITY_FIELD, *IDENTITY_FALLBACKS):
        value = record.get(field)
        if value not in (None, ""):
            return value
    return None


# ============================================
# Main Transform Function
# ============================================


def normalize_record(raw: dict[str, Any]) -> VesselRecord:
    """
    Normalize one raw vessel record.

    Args:
        raw: Record from an extractor (any key case, raw values)

    Returns:
        New record with canonical keys and values. SHIP_ID is filled from
        IMO/MMSI when missing.
    """
    record: VesselRecord = {}
    for key, value in raw.items():
        name = canonical_field_name(key)
        if not name:
            continue
        record[name] = value

    identity = resolve_identity(record)
    if identity is not None:
        record[IDENTITY_FIELD] = identity

    for field in EPOCH_FIELDS:
        if record.get(field) is not None:
            record[field] = transform_epoch(record[field])

    for field in DATE_FIELDS:
        if field in record:
            record[field] = transform_date(record[field])

    for field in NUMERIC_FIELDS:
        if record.get(field) is not None:
            record[field] = transform_number(record[field])

    return record


def normalize_records(raw_records: list[dict[str, Any]]) -> list[VesselRecord]:
    """Normalize a list of raw records."""
    return [normalize_record(raw) for raw in raw_records]
