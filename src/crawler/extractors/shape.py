"""
Vessel-shape rules.

Every extractor decides "does this look like vessel data" through the
functions in this module.
"""

from typing import Any

IDENTITY_KEYS = ("imo", "mmsi")

# Keys whose list value is treated as the vessel list, in lookup order
INTERCEPT_LIST_KEYS = ("data", "vessels")
MARKUP_LIST_KEYS = ("data", "vessels", "ships", "tankers")
SCRIPT_LIST_KEYS = ("vessels", "ships", "tankers", "results")
RECORD_LIST_KEYS = ("data", "vessels", "ships", "tankers", "results")


def has_vessel_keys(item: Any) -> bool:
    """
    Check whether an element looks like a vessel record.

    Args:
        item: Candidate element (usually the first element of a list)

    Returns:
        True if it is a mapping with an imo or mmsi key (any case)
    """
    if not isinstance(item, dict):
        return False
    return any(str(key).lower() in IDENTITY_KEYS for key in item)


def is_vessel_list(value: Any) -> bool:
    """Non-empty list whose first element has an imo/mmsi key."""
    return isinstance(value, list) and len(value) > 0 and has_vessel_keys(value[0])


def _has_list(payload: Any, keys: tuple[str, ...]) -> bool:
    if not isinstance(payload, dict):
        return False
    return any(
        isinstance(payload.get(key), list) and len(payload[key]) > 0 for key in keys
    )


def is_vessel_payload(payload: Any) -> bool:
    """
    Vessel-shape predicate for intercepted responses and DOM tables.

    A payload is vessel-shaped if it is an object with a non-empty
    ``data`` or ``vessels`` list, or a non-empty list whose first
    element has an ``imo``/``mmsi`` key.
    """
    if isinstance(payload, list):
        return is_vessel_list(payload)
    return _has_list(payload, INTERCEPT_LIST_KEYS)


def is_markup_payload(payload: Any) -> bool:
    """Object with a non-empty data/vessels/ships/tankers list."""
    return _has_list(payload, MARKUP_LIST_KEYS)


def is_record_list(value: Any) -> bool:
    """Non-empty list whose first element is a mapping."""
    return isinstance(value, list) and len(value) > 0 and isinstance(value[0], dict)


def find_script_vessels(value: Any, strict: bool = True) -> tuple[str, list] | None:
    """
    Locate vessel records inside a global script value.

    Args:
        value: Value of a window property
        strict: Require an imo/mmsi key on the first element. Well-known
            vessel globals are trusted with any list of records.

    Returns:
        Tuple of (property suffix, vessel list) or None. The suffix is ""
        for a bare array, otherwise ".data", ".vessels", etc.
    """
    accepts = is_vessel_list if strict else is_record_list
    if accepts(value):
        return "", value
    if not isinstance(value, dict):
        return None
    for key in ("data", *SCRIPT_LIST_KEYS):
        if accepts(value.get(key)):
            return f".{key}", value[key]
    return None


def extract_vessel_list(payload: Any) -> list[dict]:
    """
    Unwrap a payload into its list of record mappings.

    Args:
        payload: Found payload (object or list)

    Returns:
        List of record dicts (non-mapping elements are dropped)
    """
    items: Any = []
    if isinstance(payload, list):
        items = payload
    elif isinstance(payload, dict):
        for key in RECORD_LIST_KEYS:
            if isinstance(payload.get(key), list):
                items = payload[key]
                break
    return [item for item in items if isinstance(item, dict)]
