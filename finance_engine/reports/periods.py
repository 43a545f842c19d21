"""
Period Bucketing

Partitions records into calendar-month buckets over a sliding window.
Buckets are oldest first and end at the month containing the reference
date. A record belongs to the bucket whose [period_start, period_end]
contains its date, inclusive. Records outside the window are dropped.
"""

from datetime import date
from typing import Any, Callable, Iterable, Optional

from finance_engine.config import get_settings
from finance_engine.models.views import MonthBucket
from finance_engine.normalization import add_months, month_bounds, normalize_date


MONTH_ABBREVIATIONS = (
    "jan", "fev", "mar", "abr", "mai", "jun",
    "jul", "ago", "set", "out", "nov", "dez",
)


def month_label(value: date) -> str:
    """Short month label, e.g. 'jan/25'."""
    return f"{MONTH_ABBREVIATIONS[value.month - 1]}/{value.year % 100:02d}"


def record_date(record: Any) -> date:
    """Default date accessor: the record's normalized `date` attribute."""
    return normalize_date(record.date)


def month_windows(reference_date: date, window_size: int) -> list[tuple[date, date]]:
    """(start, end) of each month in the window, oldest first."""
    if window_size < 1:
        raise ValueError(f"window_size must be at least 1, got {window_size}")

    reference = normalize_date(reference_date)
    return [
        month_bounds(add_months(reference, -offset))
        for offset in range(window_size - 1, -1, -1)
    ]


def bucket_by_month(
    records: Iterable[Any],
    reference_date: date,
    window_size: Optional[int] = None,
    date_of: Callable[[Any], date] = record_date,
) -> list[MonthBucket]:
    """
    Partition records into calendar-month buckets.

    Args:
        records: Records with a date (transactions by default)
        reference_date: Any day of the newest month in the window
        window_size: Number of months (defaults to settings.window_months)
        date_of: How to read a record's date

    Returns:
        window_size buckets, oldest first. Empty months are kept.
    """
    if window_size is None:
        window_size = get_settings().window_months

    buckets = [
        MonthBucket(month_label=month_label(start), period_start=start, period_end=end)
        for start, end in month_windows(reference_date, window_size)
    ]
    by_month = {(b.period_start.year, b.period_start.month): b for b in buckets}

    for record in records:
        day = date_of(record)
        bucket = by_month.get((day.year, day.month))
        if bucket is not None:
            bucket.records.append(record)

    return buckets
