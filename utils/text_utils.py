"""
Text utilities for station codes, scanned codes and item descriptions.

Station codes come in several spellings on the floor ("BH17", "bh 17",
"17", "M-17"); machine buckets are keyed on the digits so all of them
land together.
"""

import re
from typing import Optional

_NON_DIGITS = re.compile(r"\D")


def station_digits(code: Optional[str]) -> str:
    """
    Extract the numeric part of a station code.

    - "BH17" → "17"
    - "M-31" → "31"
    - "Mazak" → ""
    """
    return _NON_DIGITS.sub("", code or "")


def station_suffix(code: Optional[str]) -> Optional[int]:
    """Numeric suffix of a station code, or None when it has no digits."""
    digits = station_digits(code)
    return int(digits) if digits else None


def normalize_station_code(code: Optional[str]) -> str:
    """
    Normalize a station code to its machine bucket key.

    Digits when present, otherwise the trimmed uppercase code.
    Empty input maps to "000", like unassigned lots on the floor.
    """
    digits = station_digits(code)
    if digits:
        return digits
    cleaned = (code or "").strip().upper()
    return cleaned or "000"


def normalize_scan_code(raw: Optional[str]) -> str:
    """Trim and uppercase a scanned or typed code."""
    return (raw or "").strip().upper()


def contains_token(text: Optional[str], *tokens: str) -> bool:
    """Case-insensitive substring test for any of the tokens."""
    upper = (text or "").upper()
    return any(token.upper() in upper for token in tokens)
