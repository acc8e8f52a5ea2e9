"""
Utility modules for the vessel scraper.
"""

from src.utils.transformers import (
    IDENTITY_FIELD,
    NUMERIC_FIELDS,
    canonical_field_name,
    normalize_record,
    normalize_records,
    resolve_identity,
    transform_date,
    transform_epoch,
    transform_number,
)

__all__ = [
    "IDENTITY_FIELD",
    "NUMERIC_FIELDS",
    "canonical_field_name",
    "normalize_record",
    "normalize_records",
    "resolve_identity",
    "transform_date",
    "transform_epoch",
    "transform_number",
]
