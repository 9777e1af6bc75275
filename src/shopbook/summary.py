# ShopBook - Retail sales bookkeeping & projection application for small shops
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
Financial summaries and reports for ShopBook.

This module complements the aggregation engine (engine.py) by combining
sale totals with the other input collections:

1. Financial summary
   ------------------
   `compute_financial_summary()` returns a FinancialSummary holding:

       net_profit    = gross_profit - salaries - expenses
       cash_balance  = prior_cash + net_profit - loss

   together with the margin (%), the operating-cost ratio and the
   break-even point in units:

       break_even_units = fixed_costs / average_gross_profit_per_unit

   where fixed costs are salaries + expenses.

2. Cash flow
   ----------
   `compute_cash_flow()` rolls the daily cash-in / cash-out entries into a
   CashFlowSnapshot (opening balance + net flow).

3. Supplier payment priority
   --------------------------
   `supplier_payment_priority()` ranks suppliers by a score combining the
   amount owed (70%) and the recency of the last delivery (30%, linear
   decay over 30 days). Larger and more recent debts rank first.

4. Employee performance
   ---------------------
   `employee_performance()` reports per employee the revenue, gross
   profit, items sold, profit margin and sales efficiency (gross profit
   per item).

Every ratio whose denominator is zero resolves to 0 instead of NaN or
infinity.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from typing import Optional

from .engine import aggregate, total_expenses, total_salaries
from .records import CashFlowEntry, ExpenseRecord, SalaryRecord, SaleRecord

PRIORITY_AMOUNT_WEIGHT = 0.7
PRIORITY_RECENCY_WEIGHT = 0.3
PRIORITY_DECAY_DAYS = 30


@dataclass(frozen=True)
class FinancialSummary:
    """
    Financial rollup of a snapshot.

    Attributes:
        total_revenue: Sum of sale revenue.
        total_gross_profit: Sum of sale gross profit.
        total_salaries: Sum of salaries.
        total_expenses: Sum of operating expenses.
        net_profit: gross profit - salaries - expenses.
        loss: Loss deducted from the cash balance.
        prior_cash: Cash balance before this rollup.
        cash_balance: prior_cash + net_profit - loss.
        units_sold: Sum of units sold.
        profit_margin_pct: net_profit / revenue * 100 (0 without revenue).
        operating_cost_ratio: (salaries + expenses) / revenue (0 without
            revenue).
        break_even_units: Units to sell to cover salaries + expenses at the
            current average gross profit per unit (0 when that average is 0).
    """

    total_revenue: float
    total_gross_profit: float
    total_salaries: float
    total_expenses: float
    net_profit: float
    loss: float
    prior_cash: float
    cash_balance: float
    units_sold: int
    profit_margin_pct: float
    operating_cost_ratio: float
    break_even_units: float


@dataclass(frozen=True)
class CashFlowSnapshot:
    """Opening balance plus the net flow of the cash-flow entries."""

    opening_balance: float
    total_inflow: float
    total_outflow: float
    net_flow: float
    closing_balance: float
    loss: float


@dataclass(frozen=True)
class SupplierPriority:
    """Payment priority of a supplier (higher score = pay first)."""

    supplier_name: str
    amount_owed: float
    last_sale_date: date
    days_since_last_sale: int
    score: float


@dataclass(frozen=True)
class EmployeePerformance:
    """Sales performance of one employee."""

    employee_id: str
    revenue: float
    gross_profit: float
    item_count: int
    profit_margin_pct: float
    sales_efficiency: float


def _safe_div(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return 0.0
    return numerator / denominator


def calculate_net_profit(
    gross_profit: float,
    salaries: float,
    expenses: float,
) -> float:
    return gross_profit - salaries - expenses


def calculate_cash_balance(
    prior_cash: float,
    net_profit: float,
    loss: float = 0.0,
) -> float:
    return prior_cash + net_profit - loss


def calculate_loss(total_outflow: float, total_inflow: float) -> float:
    """Shortfall of inflows against outflows (never negative)."""
    return max(0.0, total_outflow - total_inflow)


def break_even_units(fixed_costs: float, average_profit_per_unit: float) -> float:
    """
    Units needed to cover `fixed_costs`.

    Returns 0 when the average profit per unit is 0, and never a negative
    number of units.
    """
    if average_profit_per_unit == 0:
        return 0.0
    return max(0.0, fixed_costs / average_profit_per_unit)


def compute_financial_summary(
    sales: Iterable[SaleRecord],
    expenses: Iterable[ExpenseRecord],
    salaries: Iterable[SalaryRecord],
    prior_cash: float = 0.0,
    loss: float = 0.0,
) -> FinancialSummary:
    """
    Build the financial summary of the given collections.

    Args:
        sales: Sale records (already filtered if needed).
        expenses: Operating expenses.
        salaries: Salaries.
        prior_cash: Cash balance reported by the ledger before this rollup.
        loss: Extra loss to deduct from the cash balance.

    Returns:
        A FinancialSummary instance.
    """
    totals = aggregate(sales)
    salaries_total = total_salaries(salaries)
    expenses_total = total_expenses(expenses)

    net_profit = calculate_net_profit(
        totals.gross_profit, salaries_total, expenses_total
    )
    fixed_costs = salaries_total + expenses_total
    profit_per_unit = _safe_div(totals.gross_profit, totals.units_sold)

    return FinancialSummary(
        total_revenue=totals.revenue,
        total_gross_profit=totals.gross_profit,
        total_salaries=salaries_total,
        total_expenses=expenses_total,
        net_profit=net_profit,
        loss=loss,
        prior_cash=prior_cash,
        cash_balance=calculate_cash_balance(prior_cash, net_profit, loss),
        units_sold=totals.units_sold,
        profit_margin_pct=_safe_div(net_profit, totals.revenue) * 100.0,
        operating_cost_ratio=_safe_div(fixed_costs, totals.revenue),
        break_even_units=break_even_units(fixed_costs, profit_per_unit),
    )


def compute_cash_flow(
    entries: Iterable[CashFlowEntry],
    opening_balance: float = 0.0,
) -> CashFlowSnapshot:
    """Roll cash-flow entries into a CashFlowSnapshot."""
    inflow = 0.0
    outflow = 0.0
    for e in entries:
        inflow += float(e.income or 0.0)
        outflow += float(e.outflow or 0.0)

    net_flow = inflow - outflow
    return CashFlowSnapshot(
        opening_balance=opening_balance,
        total_inflow=inflow,
        total_outflow=outflow,
        net_flow=net_flow,
        closing_balance=opening_balance + net_flow,
        loss=calculate_loss(outflow, inflow),
    )


def recency_decay(days_since: int, decay_days: int = PRIORITY_DECAY_DAYS) -> float:
    """1.0 for a delivery today, decreasing linearly to 0 after `decay_days`."""
    if decay_days <= 0:
        return 0.0
    return max(0.0, 1.0 - max(0, days_since) / decay_days)


def supplier_payment_priority(
    sales: Iterable[SaleRecord],
    as_of: date,
) -> list[SupplierPriority]:
    """
    Rank suppliers by payment priority.

    For each supplier:

        score = 0.7 * amount_owed / max_amount_owed
              + 0.3 * max(0, 1 - days_since_last_sale / 30)

    The amount owed is the supplier cost of the units sold. When no
    supplier is owed anything the amount term is 0.

    Args:
        sales: Sale records.
        as_of: Reference date for the recency term.

    Returns:
        SupplierPriority list sorted by score (desc), then supplier name.

    Raises:
        DataFormatError: if a record date cannot be parsed.
    """
    owed: dict[str, float] = {}
    last_seen: dict[str, date] = {}

    for rec in sales:
        name = rec.supplier_name or "Unknown supplier"
        day = rec.sale_date
        owed[name] = owed.get(name, 0.0) + rec.supplier_cost
        if name not in last_seen or day > last_seen[name]:
            last_seen[name] = day

    max_owed = max(owed.values(), default=0.0)

    ranking: list[SupplierPriority] = []
    for name, amount in owed.items():
        days_since = (as_of - last_seen[name]).days
        score = PRIORITY_AMOUNT_WEIGHT * _safe_div(
            amount, max_owed
        ) + PRIORITY_RECENCY_WEIGHT * recency_decay(days_since)
        ranking.append(
            SupplierPriority(
                supplier_name=name,
                amount_owed=amount,
                last_sale_date=last_seen[name],
                days_since_last_sale=max(0, days_since),
                score=score,
            )
        )

    ranking.sort(key=lambda p: (-p.score, p.supplier_name))
    return ranking


def employee_performance(
    sales: Iterable[SaleRecord],
    employee_ids: Optional[Sequence[str]] = None,
) -> list[EmployeePerformance]:
    """
    Compute sales performance per employee (sale owner id).

    Args:
        sales: Sale records.
        employee_ids: Optional list restricting (and ordering) the report.
            Employees without sales are reported with zero values.

    Returns:
        EmployeePerformance list, ordered by employee id unless
        `employee_ids` is given.
    """
    by_owner: dict[str, list[SaleRecord]] = {}
    for rec in sales:
        by_owner.setdefault(rec.owner_id, []).append(rec)

    ids = list(employee_ids) if employee_ids is not None else sorted(by_owner)

    report: list[EmployeePerformance] = []
    for emp in ids:
        totals = aggregate(by_owner.get(emp, []))
        report.append(
            EmployeePerformance(
                employee_id=emp,
                revenue=totals.revenue,
                gross_profit=totals.gross_profit,
                item_count=totals.units_sold,
                profit_margin_pct=_safe_div(totals.gross_profit, totals.revenue)
                * 100.0,
                sales_efficiency=_safe_div(totals.gross_profit, totals.units_sold),
            )
        )
    return report
