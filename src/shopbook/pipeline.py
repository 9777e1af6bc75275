# ShopBook - Retail sales bookkeeping & projection application for small shops
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Dashboard pipeline for ShopBook.

This module provides the high-level entry point used to compute every
dashboard output from the four input collections in a *single pass*.

Overview
--------
The core function, ``recompute()``, takes an immutable Snapshot of the
sales, expenses, salaries and cash-flow collections and returns a Results
object holding:

1. the financial summary (net profit, cash balance, margin, break-even),
2. the cash-flow snapshot and the expenses per category,
3. for each configured granularity: the ordered period series, the
   forecast of the configured method and the blended forecast,
4. the supplier payment priorities and the employee performance report,
5. the daily / weekly / monthly reports (today, last 7 days, last month).

The whole pipeline is rerun from scratch on every call; there is no
incremental update.

Refresh signals
---------------
Upstream data stores notify changes with a RefreshSignal carrying the
full, updated content of one collection. ``apply_refresh()`` returns a
new Snapshot with that collection replaced; the previous snapshot is left
untouched.

Sessions
--------
``DashboardSession`` keeps the current snapshot and filter of one user
session. ``handle_refresh()`` applies a signal, reruns ``recompute()``
and pushes the Results to the registered listeners (charts, reports,
exporters). A failing listener is logged and skipped: it never aborts the
pipeline nor prevents the other listeners from being notified.

Separation of concerns
----------------------
- ``engine.py`` and ``periods.py`` aggregate and bucket records,
- ``projection.py`` forecasts one series,
- ``summary.py`` builds the financial rollups,
- ``pipeline.py`` assembles everything and owns no computation of its own.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import asdict, dataclass, field, replace
from datetime import date
from typing import Any, Optional

from .config import AppConfig
from .engine import (
    PeriodBucket,
    SalesFilter,
    SaleTotals,
    aggregate,
    build_period_series,
    expenses_by_category,
    filter_sales,
)
from .periods import REPORT_WINDOWS, DateRange, Granularity, filter_by_date_range
from .projection import ForecastResult, ProjectionMethod, project
from .records import CashFlowEntry, ExpenseRecord, SalaryRecord, SaleRecord
from .summary import (
    CashFlowSnapshot,
    EmployeePerformance,
    FinancialSummary,
    SupplierPriority,
    compute_cash_flow,
    compute_financial_summary,
    employee_performance,
    supplier_payment_priority,
)

logger = logging.getLogger(__name__)

RECORD_TYPES: dict[str, type] = {
    "sales": SaleRecord,
    "expenses": ExpenseRecord,
    "salaries": SalaryRecord,
    "cash_flow": CashFlowEntry,
}

Listener = Callable[["Results"], None]
CashLedger = Callable[[], float]


@dataclass(frozen=True)
class Snapshot:
    """Immutable view of the four input collections."""

    sales: tuple[SaleRecord, ...] = ()
    expenses: tuple[ExpenseRecord, ...] = ()
    salaries: tuple[SalaryRecord, ...] = ()
    cash_flow: tuple[CashFlowEntry, ...] = ()


@dataclass(frozen=True)
class RefreshSignal:
    """
    Change notification for one collection.

    `records` is the full, ordered content of the collection after the
    change. Items may be record instances or plain mappings, which are
    converted with the record type's ``from_mapping()``.
    """

    collection: str
    records: tuple[Any, ...] = ()


def _collection_name(raw: str) -> str:
    name = str(raw).strip().lower().replace("-", "_")
    if name not in RECORD_TYPES:
        choices = ", ".join(RECORD_TYPES)
        raise ValueError(f"Unknown collection: {raw!r} (expected one of: {choices})")
    return name


def _to_records(name: str, items: Iterable[Any]) -> tuple[Any, ...]:
    record_type = RECORD_TYPES[name]
    records = []
    for item in items:
        if isinstance(item, record_type):
            records.append(item)
        elif isinstance(item, Mapping):
            records.append(record_type.from_mapping(item))
        else:
            raise TypeError(
                f"Cannot use {type(item).__name__} as a {name} record."
            )
    return tuple(records)


def apply_refresh(snapshot: Snapshot, signal: RefreshSignal) -> Snapshot:
    """
    Return a new Snapshot with the signalled collection replaced.

    Raises:
        ValueError: if the collection name is unknown.
        TypeError: if a record is neither a record instance nor a mapping.
    """
    name = _collection_name(signal.collection)
    records = _to_records(name, signal.records)
    logger.debug("Refreshing %s with %d records", name, len(records))
    return replace(snapshot, **{name: records})


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GranularityProjection:
    """Period series and forecasts for one granularity."""

    granularity: Granularity
    series: tuple[PeriodBucket, ...]
    forecast: ForecastResult
    blended: ForecastResult

    def as_dict(self) -> dict[str, Any]:
        return {
            "granularity": self.granularity.value,
            "series": [asdict(b) for b in self.series],
            "forecast": self.forecast.as_dict(),
            "blended": self.blended.as_dict(),
        }


@dataclass(frozen=True)
class PeriodReport:
    """Sale totals over one of the relative report windows."""

    name: str
    window: DateRange
    totals: SaleTotals


@dataclass(frozen=True)
class Results:
    """
    Every dashboard output computed from one snapshot.

    Attributes
    ----------
    as_of :
        Reference date of the reports and supplier priorities.
    sales :
        Sale records after filtering.
    summary :
        Financial summary of the filtered sales, expenses and salaries.
    cash_flow :
        Rollup of the cash-flow entries.
    expenses_by_category :
        Expense totals per category.
    projections :
        One GranularityProjection per configured granularity.
    suppliers :
        Supplier payment priorities, highest score first.
    employees :
        Employee performance, by employee id.
    reports :
        Daily, weekly and monthly reports.
    """

    as_of: date
    sales: tuple[SaleRecord, ...]
    summary: FinancialSummary
    cash_flow: CashFlowSnapshot
    expenses_by_category: dict[str, float] = field(default_factory=dict)
    projections: tuple[GranularityProjection, ...] = ()
    suppliers: tuple[SupplierPriority, ...] = ()
    employees: tuple[EmployeePerformance, ...] = ()
    reports: tuple[PeriodReport, ...] = ()

    def projection_for(
        self, granularity: Granularity | str
    ) -> Optional[GranularityProjection]:
        gran = Granularity.parse(granularity)
        for proj in self.projections:
            if proj.granularity is gran:
                return proj
        return None

    def report(self, name: str) -> Optional[PeriodReport]:
        for rep in self.reports:
            if rep.name == name:
                return rep
        return None

    def to_payload(self) -> dict[str, Any]:
        """
        Plain-dict payloads for the presentation collaborators.

        Returns a mapping with two keys:
        - "financial_summary": the FinancialSummary fields,
        - "projections": per granularity, the series, the forecast of the
          configured method and the blended forecast.
        """
        return {
            "financial_summary": asdict(self.summary),
            "projections": {
                p.granularity.value: p.as_dict() for p in self.projections
            },
        }


def _project_granularity(
    sales: Iterable[SaleRecord],
    granularity: Granularity,
    config: AppConfig,
) -> GranularityProjection:
    settings = config.projection
    series = build_period_series(sales, granularity)
    values = [b.revenue for b in series]

    forecast = project(
        values,
        method=settings.method,
        window_size=settings.window_size,
        blend_window_size=settings.blend_window_size,
    )
    if settings.method is ProjectionMethod.BLENDED:
        blend = forecast
    else:
        blend = project(
            values,
            method=ProjectionMethod.BLENDED,
            blend_window_size=settings.blend_window_size,
        )

    return GranularityProjection(
        granularity=granularity,
        series=tuple(series),
        forecast=forecast,
        blended=blend,
    )


def recompute(
    snapshot: Snapshot,
    settings: AppConfig,
    cash_balance: Optional[float] = None,
    as_of: Optional[date] = None,
    sales_filter: Optional[SalesFilter] = None,
) -> Results:
    """
    Run the whole dashboard pipeline on a snapshot.

    Args:
        snapshot: Input collections.
        settings: Application configuration (projection options, opening
            balance).
        cash_balance: Cash balance reported by the ledger. Defaults to
            the configured opening balance.
        as_of: Reference date for reports and supplier priorities.
            Defaults to today.
        sales_filter: Optional filter applied to the sales before any
            computation.

    Returns:
        A Results instance.

    Raises:
        DataFormatError: if a record date cannot be parsed.
    """
    reference = as_of or date.today()
    prior_cash = settings.opening_balance if cash_balance is None else cash_balance

    sales = filter_sales(snapshot.sales, sales_filter)

    summary = compute_financial_summary(
        sales,
        snapshot.expenses,
        snapshot.salaries,
        prior_cash=prior_cash,
    )
    cash_flow = compute_cash_flow(snapshot.cash_flow, opening_balance=prior_cash)

    projections = tuple(
        _project_granularity(sales, gran, settings)
        for gran in settings.projection.granularities
    )

    reports = []
    for name, window_for in REPORT_WINDOWS.items():
        window = window_for(reference)
        selected = filter_by_date_range(sales, window.start, window.end)
        reports.append(
            PeriodReport(name=name, window=window, totals=aggregate(selected))
        )

    results = Results(
        as_of=reference,
        sales=tuple(sales),
        summary=summary,
        cash_flow=cash_flow,
        expenses_by_category=expenses_by_category(snapshot.expenses),
        projections=projections,
        suppliers=tuple(supplier_payment_priority(sales, reference)),
        employees=tuple(employee_performance(sales)),
        reports=tuple(reports),
    )

    logger.info(
        "Recomputed dashboard as of %s: %d sales (%d after filtering), "
        "net profit %.2f",
        reference.isoformat(),
        len(snapshot.sales),
        len(sales),
        summary.net_profit,
    )
    return results


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class DashboardSession:
    """
    Per-session cache of the input snapshot and the last results.

    Parameters
    ----------
    settings :
        Application configuration.
    cash_ledger :
        Optional callable returning the current cash balance. When absent,
        or when it fails, the configured opening balance is used.
    snapshot :
        Initial snapshot (empty by default).
    """

    def __init__(
        self,
        settings: AppConfig,
        cash_ledger: Optional[CashLedger] = None,
        snapshot: Optional[Snapshot] = None,
    ) -> None:
        self.settings = settings
        self.snapshot = snapshot or Snapshot()
        self.sales_filter: Optional[SalesFilter] = None
        self.results: Optional[Results] = None
        self._cash_ledger = cash_ledger
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def current_cash_balance(self) -> float:
        if self._cash_ledger is None:
            return self.settings.opening_balance
        try:
            return float(self._cash_ledger())
        except Exception:  # noqa: BLE001
            logger.warning(
                "Cash ledger unavailable, using the opening balance",
                exc_info=True,
            )
            return self.settings.opening_balance

    def recompute(self, as_of: Optional[date] = None) -> Results:
        """Rerun the pipeline on the cached snapshot and notify listeners."""
        self.results = recompute(
            self.snapshot,
            self.settings,
            cash_balance=self.current_cash_balance(),
            as_of=as_of,
            sales_filter=self.sales_filter,
        )
        self._notify(self.results)
        return self.results

    def handle_refresh(
        self,
        signal: RefreshSignal,
        as_of: Optional[date] = None,
    ) -> Results:
        """Apply a refresh signal, then recompute and notify."""
        self.snapshot = apply_refresh(self.snapshot, signal)
        return self.recompute(as_of=as_of)

    def set_filter(
        self,
        sales_filter: Optional[SalesFilter],
        as_of: Optional[date] = None,
    ) -> Results:
        """Change the sales filter (None clears it), then recompute."""
        self.sales_filter = sales_filter
        return self.recompute(as_of=as_of)

    def _notify(self, results: Results) -> None:
        for listener in list(self._listeners):
            try:
                listener(results)
            except Exception:  # noqa: BLE001
                logger.exception("Dashboard listener %r failed", listener)
