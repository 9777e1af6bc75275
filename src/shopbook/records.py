# ShopBook - Retail sales bookkeeping & projection application for small shops
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Record types for ShopBook.

This module defines the four input collections handled by the dashboard
core and the small coercion helpers shared by every other module:

- SaleRecord     : one stock-in line for a product from a supplier,
                   with derived units sold, revenue, supplier cost and
                   gross profit,
- ExpenseRecord  : an operating expense (rent, transport, ...),
- SalaryRecord   : a salary paid to an employee,
- CashFlowEntry  : a daily cash-in / cash-out line.

Records are frozen dataclasses. Derived values are exposed as properties
and never stored, so a record cannot hold inconsistent totals.

Currency values follow the IDR convention used by the shops feeding the
dashboard: numbers are taken as-is, strings are stripped of every non-digit
character ("Rp 8.000" -> 8000). Missing numeric fields default to 0.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Union

import pandas as pd

DateLike = Union[date, datetime, str]

_NON_DIGITS = re.compile(r"[^\d]")


class DataFormatError(ValueError):
    """Raised when an input record or file cannot be interpreted."""


def parse_currency(value: Any) -> float:
    """
    Convert a currency value into a float.

    - int/float values are returned as float,
    - None / NaN are treated as 0,
    - strings keep only their digits ("Rp 12.500" -> 12500.0); a string
      without any digit is 0.
    """
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        if pd.isna(value):
            return 0.0
        return float(value)

    digits = _NON_DIGITS.sub("", str(value))
    if not digits:
        return 0.0
    return float(int(digits))


def parse_count(value: Any) -> int:
    """Convert a stock quantity into an int (0 if missing)."""
    if value is None:
        return 0
    if isinstance(value, float) and pd.isna(value):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        pass
    # "50.0" is 50 units, as written by pandas for float columns
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return int(parse_currency(value))


def coerce_date(value: DateLike) -> date:
    """
    Return `value` as a `date`.

    Strings must be ISO formatted (YYYY-MM-DD, optionally followed by a
    valid ISO time part). The whole string is parsed; anything else
    raises DataFormatError.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    raw = str(value).strip() if value is not None else ""
    if not raw:
        raise DataFormatError("Missing date value.")

    try:
        if len(raw) == 10:
            return date.fromisoformat(raw)
        return datetime.fromisoformat(raw).date()
    except ValueError as exc:
        raise DataFormatError(f"Invalid date value: {value!r}") from exc


@dataclass(frozen=True)
class SaleRecord:
    """
    One sales line: stock handed in by a supplier and what is left of it.

    Attributes
    ----------
    id :
        Identifier of the record in the upstream store.
    date :
        Date of the stock-in (date object or ISO string).
    supplier_name, product_name :
        Free-text supplier and product labels.
    stock_in :
        Units received.
    stock_remaining :
        Units left unsold.
    buy_price, sell_price :
        Unit prices in the shop currency.
    owner_id :
        Employee responsible for the sale.
    """

    id: str
    date: DateLike
    supplier_name: str = ""
    product_name: str = ""
    stock_in: int = 0
    stock_remaining: int = 0
    buy_price: float = 0.0
    sell_price: float = 0.0
    owner_id: str = ""

    @property
    def units_sold(self) -> int:
        return max(0, int(self.stock_in) - int(self.stock_remaining))

    @property
    def revenue(self) -> float:
        return self.units_sold * float(self.sell_price)

    @property
    def supplier_cost(self) -> float:
        return self.units_sold * float(self.buy_price)

    @property
    def gross_profit(self) -> float:
        return self.revenue - self.supplier_cost

    @property
    def sale_date(self) -> date:
        """Record date as a `date` (raises DataFormatError if unparsable)."""
        return coerce_date(self.date)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> SaleRecord:
        """
        Build a SaleRecord from a plain mapping (e.g. a document pushed by
        the persistence layer).

        The date is kept as given; it is validated when a date-dependent
        operation (bucketing, filtering) needs it.
        """
        return cls(
            id=str(data.get("id", "")),
            date=data.get("date", ""),
            supplier_name=str(data.get("supplier_name") or ""),
            product_name=str(data.get("product_name") or ""),
            stock_in=parse_count(data.get("stock_in")),
            stock_remaining=parse_count(data.get("stock_remaining")),
            buy_price=parse_currency(data.get("buy_price")),
            sell_price=parse_currency(data.get("sell_price")),
            owner_id=str(data.get("owner_id") or ""),
        )


@dataclass(frozen=True)
class ExpenseRecord:
    """An operating expense."""

    id: str
    date: DateLike
    category: str = ""
    amount: float = 0.0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ExpenseRecord:
        return cls(
            id=str(data.get("id", "")),
            date=data.get("date", ""),
            category=str(data.get("category") or ""),
            amount=parse_currency(data.get("amount")),
        )


@dataclass(frozen=True)
class SalaryRecord:
    """A salary paid to an employee."""

    id: str
    employee_name: str = ""
    amount: float = 0.0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> SalaryRecord:
        return cls(
            id=str(data.get("id", "")),
            employee_name=str(data.get("employee_name") or ""),
            amount=parse_currency(data.get("amount")),
        )


@dataclass(frozen=True)
class CashFlowEntry:
    """Cash received and cash paid out on a given day."""

    date: DateLike
    income: float = 0.0
    outflow: float = 0.0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> CashFlowEntry:
        return cls(
            date=data.get("date", ""),
            income=parse_currency(data.get("income")),
            outflow=parse_currency(data.get("outflow")),
        )
