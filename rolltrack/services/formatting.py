from typing import Any, Optional
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

PLACEHOLDER = "-"

_ZERO = Decimal("0")
_CENTS = Decimal("0.01")


def parse_weight(value: Any) -> Decimal:
    """
    Parse a stored weight leniently.

    Missing, blank, unparsable or out-of-range values become Decimal("0") so
    that one corrupt record never blocks a whole batch.
    """
    text = "" if value is None else str(value).strip()
    if not text:
        return _ZERO
    try:
        parsed = Decimal(text)
    except (InvalidOperation, ValueError):
        logger.warning(f"Unparsable weight value {value!r}, treating as 0")
        return _ZERO
    if not parsed.is_finite():
        logger.warning(f"Non-finite weight value {value!r}, treating as 0")
        return _ZERO
    try:
        parsed.quantize(_CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        logger.warning(f"Out-of-range weight value {value!r}, treating as 0")
        return _ZERO
    return parsed


def format_weight(value: Any) -> str:
    """Weight with exactly two fraction digits, e.g. '8.333' -> '8.33'"""
    rounded = parse_weight(value).quantize(_CENTS, rounding=ROUND_HALF_UP)
    if rounded.is_zero():
        # No "-0.00"
        rounded = rounded.copy_abs()
    return str(rounded)


def format_optional_weight(value: Optional[str]) -> str:
    if value is None or str(value).strip() == "":
        return PLACEHOLDER
    return format_weight(value)


def or_placeholder(value: Optional[str]) -> str:
    return value if value else PLACEHOLDER


def as_utc(value: datetime) -> datetime:
    # Naive timestamps are taken as UTC so they compare with aware ones
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def format_timestamp(value: datetime) -> str:
    """dd/MM/yyyy HH:mm as printed on labels and report headers"""
    return value.strftime("%d/%m/%Y %H:%M")


def format_date(value: datetime) -> str:
    return value.strftime("%d/%m/%Y")


def format_export_timestamp(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M")
