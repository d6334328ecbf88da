"""Normalization of raw rows into canonical stocking events."""

from .canonical import (
    StockingEvent,
    compute_event_id,
    compute_fingerprint,
    normalize_row,
    normalize_rows,
    utc_now,
)
from .parsing import (
    format_number,
    normalize_whitespace,
    parse_length,
    parse_quantity,
    parse_stocking_date,
)

__all__ = [
    # Canonical model
    "StockingEvent",
    "compute_fingerprint",
    "compute_event_id",
    "normalize_row",
    "normalize_rows",
    "utc_now",
    # Parsing
    "parse_stocking_date",
    "parse_quantity",
    "parse_length",
    "format_number",
    "normalize_whitespace",
]
