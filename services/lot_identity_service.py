"""
Lot number generation.

Format (15 characters):
    "40" + YY + WW + "4" + NN + "40" + SSSS

    YY     calendar year of the start moment
    WW     ISO week of the start moment
    NN     numeric part of the station code, zero padded (last 2 digits)
    SSSS   count of existing lots sharing the prefix + 1

e.g. station BH11 in ISO week 5 of 2025, third lot already present:
    402505 411 40 0004
"""

from datetime import datetime, timezone
from typing import Iterable, Optional, Union
import structlog

from config import settings
from exceptions import InvalidLotNumberError
from models.lot import Lot
from utils.text_utils import normalize_scan_code, station_digits

logger = structlog.get_logger(__name__)

LOT_PREFIX = "40"
LOT_NUMBER_LENGTH = 15
SEQUENCE_WIDTH = 4


def station_segment(station_code: Optional[str]) -> str:
    """
    Station part of the lot number: "4" + two digit station number.

    Stations without digits get "400". Only the last two digits are kept,
    so BH117 and BH17 both give "417" and share one sequence space.
    """
    digits = station_digits(station_code)
    if not digits:
        return "400"
    return f"4{digits[-2:].zfill(2)}"


def lot_prefix(station_code: Optional[str], now: Optional[datetime] = None) -> str:
    """Everything before the sequence: 11 characters."""
    now = now or datetime.now(timezone.utc)
    iso_week = now.isocalendar()[1]
    return f"{LOT_PREFIX}{now.year % 100:02d}{iso_week:02d}{station_segment(station_code)}{LOT_PREFIX}"


def _lot_number_of(lot: Union[Lot, dict, str]) -> str:
    if isinstance(lot, Lot):
        return lot.lot_number
    if isinstance(lot, dict):
        return lot.get("lot_number") or ""
    return lot or ""


def generate_lot_number(
    station_code: Optional[str],
    existing_lots: Iterable[Union[Lot, dict, str]],
    now: Optional[datetime] = None,
) -> str:
    """
    Build the next lot number for a station.

    Args:
        station_code: Station starting the lot (e.g. "BH11")
        existing_lots: Lots (models, documents or bare numbers) to count
        now: Start moment; defaults to the current UTC time

    Returns:
        15 character lot number
    """
    prefix = lot_prefix(station_code, now)
    taken = sum(1 for lot in existing_lots if _lot_number_of(lot).startswith(prefix))
    sequence = taken + 1
    return f"{prefix}{sequence:0{SEQUENCE_WIDTH}d}"


def validate_manual_lot_number(raw: str, min_length: Optional[int] = None) -> str:
    """
    Clean a manually entered lot number.

    Only the length is checked; anything else the operator types is accepted.

    Raises:
        InvalidLotNumberError: If shorter than the configured minimum
    """
    min_length = min_length or settings.manual_lot_min_length
    cleaned = normalize_scan_code(raw)
    if len(cleaned) < min_length:
        raise InvalidLotNumberError(cleaned, min_length)
    return cleaned


def looks_like_lot_number(code: str) -> bool:
    """Advisory format check used by terminals; never blocks a lookup."""
    return len(code) == LOT_NUMBER_LENGTH and code.startswith(LOT_PREFIX)
