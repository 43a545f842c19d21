"""
Record Normalizer

Coerces raw dates and amounts into the canonical in-memory representation.

CRITICAL: Dates are stored upstream as midnight UTC timestamps
(e.g. "2025-12-01T00:00:00Z"). Reading the local-time fields of such a
timestamp in a UTC-3 locale yields 2025-11-30. We always read the UTC
calendar fields, so the result never depends on the evaluating timezone.

Malformed input is never defaulted. It raises.
"""

import calendar
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

CENT = Decimal("0.01")

RawDate = Union[str, date, datetime]
RawAmount = Union[str, int, float, Decimal]


class MalformedDateError(ValueError):
    """Raised when a date cannot be parsed."""

    def __init__(self, raw: object, reason: str = "unparseable date"):
        self.raw = raw
        super().__init__(f"Malformed date {raw!r}: {reason}")


class MalformedAmountError(ValueError):
    """Raised when a monetary amount cannot be parsed."""

    def __init__(self, raw: object, reason: str = "unparseable amount"):
        self.raw = raw
        super().__init__(f"Malformed amount {raw!r}: {reason}")


def _utc_calendar_date(value: datetime) -> date:
    # Naive timestamps are UTC by convention of the data store
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return date(value.year, value.month, value.day)


def normalize_date(raw: RawDate) -> date:
    """
    Normalize a raw date into a calendar date.

    Accepts:
    - "2025-01-15"
    - "2025-01-15T00:00:00Z", "2025-01-15T21:30:00-03:00", "2025-01-15T10:00:00"
    - datetime (aware or naive-as-UTC) and date objects

    Raises:
        MalformedDateError: If the input cannot be parsed
    """
    if isinstance(raw, datetime):
        return _utc_calendar_date(raw)
    if isinstance(raw, date):
        return raw
    if not isinstance(raw, str):
        raise MalformedDateError(raw, f"unsupported type {type(raw).__name__}")

    text = raw.strip()
    if not text:
        raise MalformedDateError(raw, "empty string")

    if len(text) == 10:
        try:
            return date.fromisoformat(text)
        except ValueError as e:
            raise MalformedDateError(raw, str(e)) from e

    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise MalformedDateError(raw, str(e)) from e

    return _utc_calendar_date(parsed)


def normalize_amount(raw: RawAmount) -> Decimal:
    """
    Normalize a raw amount into a Decimal with cent precision.

    Floats go through str() so that 0.1 becomes Decimal("0.10"),
    not the binary expansion.

    Raises:
        MalformedAmountError: If the input is not a finite number
    """
    if isinstance(raw, bool):
        raise MalformedAmountError(raw, "booleans are not amounts")

    try:
        if isinstance(raw, Decimal):
            value = raw
        elif isinstance(raw, (int, float)):
            value = Decimal(str(raw))
        elif isinstance(raw, str):
            value = Decimal(raw.strip())
        else:
            raise MalformedAmountError(raw, f"unsupported type {type(raw).__name__}")
    except InvalidOperation as e:
        raise MalformedAmountError(raw) from e

    if not value.is_finite():
        raise MalformedAmountError(raw, "amount must be finite")

    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def add_months(value: date, months: int) -> date:
    """
    Shift a date by a number of calendar months.

    The day is clamped to the last day of the target month:
    2024-01-31 + 1 month -> 2024-02-29.
    """
    month_index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(value.day, last_day))


def month_bounds(value: date) -> tuple[date, date]:
    """Return (first day, last day) of the month containing value."""
    last_day = calendar.monthrange(value.year, value.month)[1]
    return date(value.year, value.month, 1), date(value.year, value.month, last_day)
