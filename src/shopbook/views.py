# ShopBook - Retail sales bookkeeping & projection application for small shops
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
View utilities for ShopBook.

This module turns the result objects produced by the pipeline into pandas
DataFrames ready to be printed (``to_string(index=False)``) or exported to
CSV. It performs no computation besides rounding.

The main views are:

- summary:     one row per financial figure (key, label, value, unit),
- series:      one row per period bucket,
- projections: one row per granularity and method,
- suppliers:   supplier payment priorities, highest score first,
- employees:   employee performance,
- reports:     daily / weekly / monthly report windows.
"""

from collections.abc import Sequence
from typing import Optional

import pandas as pd

from .engine import PeriodBucket
from .pipeline import GranularityProjection, PeriodReport
from .summary import (
    CashFlowSnapshot,
    EmployeePerformance,
    FinancialSummary,
    SupplierPriority,
)

SUMMARY_COLUMNS = ["key", "label", "value", "unit"]

# (attribute, label, unit) in display order.
SUMMARY_ROWS = [
    ("total_revenue", "Total revenue", "amount"),
    ("total_gross_profit", "Gross profit", "amount"),
    ("total_salaries", "Salaries", "amount"),
    ("total_expenses", "Operating expenses", "amount"),
    ("net_profit", "Net profit", "amount"),
    ("loss", "Loss", "amount"),
    ("prior_cash", "Cash before period", "amount"),
    ("cash_balance", "Cash balance", "amount"),
    ("units_sold", "Units sold", "units"),
    ("profit_margin_pct", "Net profit margin", "percent"),
    ("operating_cost_ratio", "Operating cost ratio", "ratio"),
    ("break_even_units", "Break-even point", "units"),
]

CASH_FLOW_ROWS = [
    ("total_inflow", "Cash in", "amount"),
    ("total_outflow", "Cash out", "amount"),
    ("net_flow", "Net cash flow", "amount"),
    ("closing_balance", "Closing cash balance", "amount"),
]


def format_currency(value: float, currency: str = "IDR", decimals: int = 0) -> str:
    """
    Format an amount for display.

    IDR amounts use the Indonesian convention: "Rp" prefix, "." as the
    thousands separator and "," as the decimal separator
    (1250000 -> "Rp 1.250.000"). Other currencies are rendered as
    "<CODE> 1,250,000.00".
    """
    sign = "-" if value < 0 else ""
    text = f"{abs(value):,.{decimals}f}"

    if currency.upper() == "IDR":
        text = text.replace(",", "_").replace(".", ",").replace("_", ".")
        return f"{sign}Rp {text}"
    return f"{sign}{currency.upper()} {text}"


def summary_to_dataframe(
    summary: FinancialSummary,
    decimals: int = 2,
    cash_flow: Optional[CashFlowSnapshot] = None,
) -> pd.DataFrame:
    """
    Convert a FinancialSummary (and optionally a CashFlowSnapshot) into a
    key / label / value / unit DataFrame.
    """
    rows: list[dict[str, object]] = []
    for key, label, unit in SUMMARY_ROWS:
        rows.append(
            {
                "key": key,
                "label": label,
                "value": round(float(getattr(summary, key)), decimals),
                "unit": unit,
            }
        )

    if cash_flow is not None:
        for key, label, unit in CASH_FLOW_ROWS:
            rows.append(
                {
                    "key": f"cash_flow_{key}",
                    "label": label,
                    "value": round(float(getattr(cash_flow, key)), decimals),
                    "unit": unit,
                }
            )

    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


def series_to_dataframe(
    series: Sequence[PeriodBucket],
    decimals: int = 2,
) -> pd.DataFrame:
    """One row per period bucket, in series order."""
    columns = [
        "period",
        "revenue",
        "gross_profit",
        "units_sold",
        "supplier_cost",
        "records",
    ]
    rows = [
        {
            "period": b.key,
            "revenue": round(b.revenue, decimals),
            "gross_profit": round(b.gross_profit, decimals),
            "units_sold": b.units_sold,
            "supplier_cost": round(b.supplier_cost, decimals),
            "records": b.record_count,
        }
        for b in series
    ]
    return pd.DataFrame(rows, columns=columns)


def projections_to_dataframe(
    projections: Sequence[GranularityProjection],
    decimals: int = 2,
) -> pd.DataFrame:
    """
    One row per granularity and method (configured method, then blended).

    When the configured method is the blend itself, the granularity only
    gets one row.
    """
    columns = [
        "granularity",
        "method",
        "predicted_value",
        "confidence",
        "trend",
        "sample_size",
    ]
    rows: list[dict[str, object]] = []
    for proj in projections:
        forecasts = [proj.forecast]
        if proj.blended is not proj.forecast:
            forecasts.append(proj.blended)
        for f in forecasts:
            rows.append(
                {
                    "granularity": proj.granularity.value,
                    "method": f.method.value,
                    "predicted_value": round(f.predicted_value, decimals),
                    "confidence": round(f.confidence, 4),
                    "trend": f.trend.value,
                    "sample_size": f.sample_size,
                }
            )
    return pd.DataFrame(rows, columns=columns)


def suppliers_to_dataframe(
    priorities: Sequence[SupplierPriority],
    decimals: int = 2,
) -> pd.DataFrame:
    columns = ["supplier", "amount_owed", "last_sale_date", "days_since", "score"]
    rows = [
        {
            "supplier": p.supplier_name,
            "amount_owed": round(p.amount_owed, decimals),
            "last_sale_date": p.last_sale_date.isoformat(),
            "days_since": p.days_since_last_sale,
            "score": round(p.score, 4),
        }
        for p in priorities
    ]
    return pd.DataFrame(rows, columns=columns)


def employees_to_dataframe(
    performance: Sequence[EmployeePerformance],
    decimals: int = 2,
) -> pd.DataFrame:
    columns = [
        "employee_id",
        "revenue",
        "gross_profit",
        "items",
        "margin_pct",
        "efficiency",
    ]
    rows = [
        {
            "employee_id": e.employee_id,
            "revenue": round(e.revenue, decimals),
            "gross_profit": round(e.gross_profit, decimals),
            "items": e.item_count,
            "margin_pct": round(e.profit_margin_pct, decimals),
            "efficiency": round(e.sales_efficiency, decimals),
        }
        for e in performance
    ]
    return pd.DataFrame(rows, columns=columns)


def reports_to_dataframe(
    reports: Sequence[PeriodReport],
    decimals: int = 2,
) -> pd.DataFrame:
    columns = ["report", "label", "start", "end", "revenue", "gross_profit", "units"]
    rows = [
        {
            "report": r.name,
            "label": r.window.label,
            "start": r.window.start.isoformat(),
            "end": r.window.end.isoformat(),
            "revenue": round(r.totals.revenue, decimals),
            "gross_profit": round(r.totals.gross_profit, decimals),
            "units": r.totals.units_sold,
        }
        for r in reports
    ]
    return pd.DataFrame(rows, columns=columns)
