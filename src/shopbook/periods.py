# ShopBook - Retail sales bookkeeping & projection application for small shops
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Period helpers for ShopBook.

This module groups dated records into reporting periods and defines the
date windows used by the dashboard reports.

Period keys
-----------
Every key is zero-padded so that lexical order is chronological order:

    daily   -> "2025-06-01"
    weekly  -> "2025-W22"   (ISO-8601 week-numbering year and week)
    monthly -> "2025-06"
    yearly  -> "2025"

Weekly keys use the ISO week-numbering year, so 2024-12-30 belongs to
"2025-W01".

Records whose date cannot be parsed make the whole operation fail with
DataFormatError; they are never silently dropped.
"""

from __future__ import annotations

import logging
from calendar import monthrange
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Optional, TypeVar

from .records import DataFormatError, DateLike, coerce_date

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Granularity(str, Enum):
    """Size of a reporting period."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @classmethod
    def parse(cls, value: "Granularity | str") -> "Granularity":
        """Return the Granularity matching `value` (raises ValueError)."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            choices = ", ".join(g.value for g in cls)
            raise ValueError(
                f"Unknown granularity: {value!r} (expected one of: {choices})"
            ) from exc


@dataclass(frozen=True)
class DateRange:
    """Inclusive [start, end] date window with a human-readable label."""

    start: date
    end: date
    label: str


def period_key(value: DateLike, granularity: "Granularity | str") -> str:
    """
    Return the canonical period key of a date for the given granularity.

    Raises:
        DataFormatError: if `value` is not a valid date.
        ValueError: if `granularity` is unknown.
    """
    gran = Granularity.parse(granularity)
    day = coerce_date(value)

    if gran is Granularity.DAILY:
        return day.isoformat()
    if gran is Granularity.WEEKLY:
        iso_year, iso_week, _ = day.isocalendar()
        return f"{iso_year:04d}-W{iso_week:02d}"
    if gran is Granularity.MONTHLY:
        return f"{day.year:04d}-{day.month:02d}"
    return f"{day.year:04d}"


def bucket(
    records: Iterable[T],
    granularity: "Granularity | str",
) -> list[tuple[str, list[T]]]:
    """
    Group dated records into period buckets.

    Each record must expose a `date` attribute. Records keep their input
    order inside a bucket; buckets are sorted by period key ascending.

    Args:
        records: Records with a `date` attribute (SaleRecord, ExpenseRecord,
            CashFlowEntry, ...).
        granularity: daily, weekly, monthly or yearly.

    Returns:
        A list of (period_key, records) pairs.

    Raises:
        DataFormatError: if a record has a missing or unparsable date.
    """
    gran = Granularity.parse(granularity)
    groups: dict[str, list[T]] = {}

    for rec in records:
        try:
            key = period_key(getattr(rec, "date"), gran)
        except DataFormatError as exc:
            rec_id = getattr(rec, "id", None)
            raise DataFormatError(
                f"Cannot bucket record {rec_id!r}: {exc}"
            ) from exc
        groups.setdefault(key, []).append(rec)

    logger.debug("Bucketed records into %d %s periods", len(groups), gran.value)
    return [(key, groups[key]) for key in sorted(groups)]


def filter_by_date_range(
    records: Iterable[T],
    start: Optional[date],
    end: Optional[date],
) -> list[T]:
    """
    Keep records whose date lies within [start, end] (inclusive).

    A missing bound is open. When both bounds are given and end < start the
    range is empty and an empty list is returned.

    Raises:
        DataFormatError: if a record date cannot be parsed.
    """
    if start is not None and end is not None and end < start:
        return []

    kept: list[T] = []
    for rec in records:
        day = coerce_date(getattr(rec, "date"))
        if start is not None and day < start:
            continue
        if end is not None and day > end:
            continue
        kept.append(rec)
    return kept


# ---------------------------------------------------------------------------
# Report windows
# ---------------------------------------------------------------------------


def range_today(as_of: date) -> DateRange:
    """The single day `as_of`."""
    return DateRange(start=as_of, end=as_of, label="Today")


def range_last_7_days(as_of: date) -> DateRange:
    """From seven days before `as_of` up to `as_of` (inclusive)."""
    return DateRange(start=as_of - timedelta(days=7), end=as_of, label="Last 7 days")


def range_last_month(as_of: date) -> DateRange:
    """
    From the same day one month earlier up to `as_of`.

    The start day is clamped to the length of the previous month
    (31 March -> 28/29 February).
    """
    if as_of.month == 1:
        year, month = as_of.year - 1, 12
    else:
        year, month = as_of.year, as_of.month - 1

    day = min(as_of.day, monthrange(year, month)[1])
    return DateRange(start=date(year, month, day), end=as_of, label="Last month")


REPORT_WINDOWS = {
    "daily": range_today,
    "weekly": range_last_7_days,
    "monthly": range_last_month,
}


def custom_range(
    from_raw: Optional[str],
    to_raw: Optional[str],
) -> Optional[DateRange]:
    """
    Build a DateRange from optional ISO strings (e.g. CLI arguments).

    Returns None when neither bound is given. A single bound produces an
    open-ended range using date.min / date.max.
    """
    if not from_raw and not to_raw:
        return None

    start = coerce_date(from_raw) if from_raw else date.min
    end = coerce_date(to_raw) if to_raw else date.max

    if end < start:
        raise ValueError("Custom period end date cannot be before start date.")

    return DateRange(start=start, end=end, label=f"Custom period ({start} → {end})")

