# ShopBook - Retail sales bookkeeping & projection application for small shops
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Core aggregation engine for ShopBook.

This module folds sale records into totals and provides the filters used
by every higher-level computation (period series, financial summary,
supplier and employee reports).

1. Sale totals
   ------------
   `aggregate(records)` sums the derived per-record values exposed by
   SaleRecord:

       units_sold    = max(0, stock_in - stock_remaining)
       revenue       = units_sold * sell_price
       supplier_cost = units_sold * buy_price
       gross_profit  = revenue - supplier_cost

   The fold is pure and commutative: permuting the input records yields
   the same totals.

2. Filtering
   ----------
   `SalesFilter` combines optional predicates (inclusive date range,
   employee id, supplier name) with a logical AND. `filter_sales()`
   applies it and returns a new list.

3. Expense and salary totals
   --------------------------
   Small helpers summing the other input collections.

4. Period series
   ----------------
   `build_period_series(records, granularity)` buckets records with
   periods.bucket() and aggregates each bucket into a PeriodBucket. The
   resulting ordered series feeds the projection engine.

The engine does not build financial summaries (summary.py) nor forecast
(projection.py).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import Optional

from .periods import Granularity, bucket, filter_by_date_range
from .records import ExpenseRecord, SalaryRecord, SaleRecord


@dataclass(frozen=True)
class SaleTotals:
    """
    Totals of a group of sale records.

    Attributes
    ----------
    revenue :
        Sum of units sold * sell price.
    gross_profit :
        Sum of revenue - supplier cost.
    units_sold :
        Sum of units sold.
    supplier_cost :
        Sum of units sold * buy price (amount owed to suppliers).
    record_count :
        Number of records folded into the totals.
    """

    revenue: float = 0.0
    gross_profit: float = 0.0
    units_sold: int = 0
    supplier_cost: float = 0.0
    record_count: int = 0


@dataclass(frozen=True)
class SalesFilter:
    """
    Filters used to select sale records.

    Every attribute is optional; the filters are combined with AND.
    Date bounds are inclusive.
    """

    start: Optional[date] = None
    end: Optional[date] = None
    employee_id: Optional[str] = None
    supplier_name: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return (
            self.start is None
            and self.end is None
            and not self.employee_id
            and not self.supplier_name
        )


def aggregate(records: Iterable[SaleRecord]) -> SaleTotals:
    """Sum revenue, gross profit, units sold and supplier cost over records."""
    revenue = 0.0
    gross_profit = 0.0
    units_sold = 0
    supplier_cost = 0.0
    count = 0

    for rec in records:
        revenue += rec.revenue
        gross_profit += rec.gross_profit
        units_sold += rec.units_sold
        supplier_cost += rec.supplier_cost
        count += 1

    return SaleTotals(
        revenue=revenue,
        gross_profit=gross_profit,
        units_sold=units_sold,
        supplier_cost=supplier_cost,
        record_count=count,
    )


def filter_sales(
    records: Iterable[SaleRecord],
    flt: Optional[SalesFilter] = None,
) -> list[SaleRecord]:
    """
    Return the sale records matching every predicate of `flt`.

    Args:
        records: Sale records to filter.
        flt: Filter to apply. None (or an empty filter) keeps everything.

    Returns:
        A new list, in input order.

    Raises:
        DataFormatError: if a date bound is set and a record date cannot
            be parsed.
    """
    selected = list(records)
    if flt is None or flt.is_empty:
        return selected

    if flt.start is not None or flt.end is not None:
        selected = filter_by_date_range(selected, flt.start, flt.end)

    if flt.employee_id:
        selected = [r for r in selected if r.owner_id == flt.employee_id]

    if flt.supplier_name:
        selected = [r for r in selected if r.supplier_name == flt.supplier_name]

    return selected


def total_supplier_cost(
    records: Iterable[SaleRecord],
    supplier_name: Optional[str] = None,
) -> float:
    """Amount owed to suppliers, optionally restricted to one supplier."""
    if supplier_name:
        records = (r for r in records if r.supplier_name == supplier_name)
    return sum((r.supplier_cost for r in records), 0.0)


def total_salaries(salaries: Iterable[SalaryRecord]) -> float:
    return sum((float(s.amount or 0.0) for s in salaries), 0.0)


def total_expenses(expenses: Iterable[ExpenseRecord]) -> float:
    return sum((float(e.amount or 0.0) for e in expenses), 0.0)


def expenses_by_category(expenses: Iterable[ExpenseRecord]) -> dict[str, float]:
    """Sum expenses per category; categories are returned sorted by name."""
    totals: dict[str, float] = {}
    for e in expenses:
        key = e.category or "Uncategorized"
        totals[key] = totals.get(key, 0.0) + float(e.amount or 0.0)
    return dict(sorted(totals.items()))


# ---------------------------------------------------------------------------
# Period series
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PeriodBucket:
    """Sale totals for one reporting period, identified by its period key."""

    key: str
    revenue: float
    gross_profit: float
    units_sold: int
    supplier_cost: float
    record_count: int


def build_period_series(
    records: Iterable[SaleRecord],
    granularity: Granularity | str,
) -> list[PeriodBucket]:
    """
    Bucket sale records by period and aggregate each bucket.

    Returns one PeriodBucket per distinct period key, ordered by key
    ascending. Periods without any record are not materialized.

    Raises:
        DataFormatError: if a record date cannot be parsed.
    """
    series: list[PeriodBucket] = []
    for key, group in bucket(records, granularity):
        totals = aggregate(group)
        series.append(
            PeriodBucket(
                key=key,
                revenue=totals.revenue,
                gross_profit=totals.gross_profit,
                units_sold=totals.units_sold,
                supplier_cost=totals.supplier_cost,
                record_count=totals.record_count,
            )
        )
    return series
