"""
Parsing utilities for normalizing extracted data.

Handles stocking date, fish count, and average length parsing.
"""

from __future__ import annotations

import re

# =============================================================================
# Date Parsing
# =============================================================================

_US_DATE = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")


def parse_stocking_date(text: str | None) -> str:
    """Parse the first M/D/YYYY date in text to YYYY-MM-DD.

    Month and day are zero-padded but not range-checked, so
    "13/40/2026" gives "2026-13-40". Returns "" when nothing matches.
    """
    if not text:
        return ""

    match = _US_DATE.search(text)
    if not match:
        return ""

    month, day, year = match.groups()
    return f"{year}-{month.zfill(2)}-{day.zfill(2)}"


# =============================================================================
# Numeric Parsing
# =============================================================================

_LEADING_DECIMAL = re.compile(r"\d+\.?\d*|\.\d+")


def parse_quantity(text: str | None) -> int | None:
    """Parse a fish count, ignoring every non-digit character."""
    digits = re.sub(r"\D", "", text or "")
    if not digits:
        return None
    return int(digits)


def parse_length(text: str | None) -> float | None:
    """Parse an average length in inches.

    Everything except digits and periods is dropped, then the leading
    decimal number is read ("10.5.1" gives 10.5).
    """
    cleaned = re.sub(r"[^\d.]", "", text or "")

    match = _LEADING_DECIMAL.match(cleaned)
    if not match:
        return None
    return float(match.group(0))


def format_number(value: int | float | None) -> str:
    """Render a number for fingerprints; integral floats drop the '.0'."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


# =============================================================================
# Utility Functions
# =============================================================================


def normalize_whitespace(text: str | None) -> str:
    """Normalize whitespace in text."""
    if text is None:
        return ""
    return " ".join(text.split())
