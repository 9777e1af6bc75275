# ShopBook - Retail sales bookkeeping & projection application for small shops
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
I/O module for ShopBook.

This module reads the four input collections from CSV files and writes
result tables back to CSV.

Expected input formats
----------------------

Column names are case-insensitive and surrounding spaces are ignored.

1) Sales
   ------
       id, date, supplier_name, product_name, stock_in, stock_remaining,
       buy_price, sell_price, owner_id

   Required: ``date``, ``stock_in``, ``stock_remaining``, ``buy_price``,
   ``sell_price``. The others default to an empty string.

2) Expenses
   ---------
       id, date, category, amount          (required: date, amount)

3) Salaries
   ---------
       id, employee_name, amount           (required: amount)

4) Cash flow
   ----------
       date, income, outflow               (required: date)

Aliases
-------
The original dashboard exports use Indonesian and camelCase headers
(``tanggal``, ``stokAwal``, ``hargaJual``, ...). They are accepted and
renamed to the canonical names above (see COLUMN_ALIASES).

Values
------
- Dates are parsed strictly: any invalid date fails with DataFormatError.
- Currency amounts accept numbers or IDR strings ("Rp 8.000" -> 8000).
- Missing numeric values default to 0.
- Missing ``id`` values are replaced by the 1-based row number.

Export
------
``export_frame()`` writes a DataFrame to CSV and reports the outcome as an
ExportResult instead of raising, so that an export failure never aborts
the computation pipeline.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar, Union

import pandas as pd

from .records import (
    CashFlowEntry,
    DataFormatError,
    ExpenseRecord,
    SalaryRecord,
    SaleRecord,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]
R = TypeVar("R")

COLUMN_ALIASES = {
    "tanggal": "date",
    "suppliername": "supplier_name",
    "supplier": "supplier_name",
    "namasupplier": "supplier_name",
    "productname": "product_name",
    "product": "product_name",
    "namaproduk": "product_name",
    "stokawal": "stock_in",
    "stockin": "stock_in",
    "stokakhir": "stock_remaining",
    "sisastok": "stock_remaining",
    "stockremaining": "stock_remaining",
    "hargabeli": "buy_price",
    "buyprice": "buy_price",
    "hargajual": "sell_price",
    "sellprice": "sell_price",
    "ownerid": "owner_id",
    "kategori": "category",
    "jumlah": "amount",
    "nama": "employee_name",
    "employeename": "employee_name",
    "pemasukan": "income",
    "pengeluaran": "outflow",
}

SALES_REQUIRED = {"date", "stock_in", "stock_remaining", "buy_price", "sell_price"}
EXPENSES_REQUIRED = {"date", "amount"}
SALARIES_REQUIRED = {"amount"}
CASH_FLOW_REQUIRED = {"date"}


@dataclass(frozen=True)
class ExportResult:
    """Outcome of an export: success flag, human-readable message, path."""

    success: bool
    message: str
    path: Optional[Path] = None


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Lowercase, strip and de-alias the column names."""
    renamed = {}
    for col in df.columns:
        key = str(col).strip().lower()
        renamed[col] = COLUMN_ALIASES.get(key.replace("_", ""), key)
    return df.rename(columns=renamed)


def _read_frame(path: PathLike, required: set[str], kind: str) -> pd.DataFrame:
    """
    Read a CSV file and check its structure.

    Raises:
        FileNotFoundError: if the file does not exist.
        DataFormatError: if required columns are missing or dates are invalid.
    """
    csv_path = Path(path)
    if not csv_path.is_file():
        raise FileNotFoundError(f"{kind.capitalize()} file not found: {csv_path}")

    # Keep the raw text of every cell; coercion happens per field.
    df = pd.read_csv(csv_path, dtype=str, keep_default_na=False)
    df = _normalize_columns(df)

    missing = required - set(df.columns)
    if missing:
        raise DataFormatError(
            f"Invalid {kind} structure in {csv_path}: missing column(s) "
            + ", ".join(sorted(missing))
        )

    if "date" in df.columns:
        if (df["date"].str.strip() == "").any():
            raise DataFormatError(f"Missing values in 'date' column of {csv_path}.")

        # Parse ISO dates strictly: day-first or invalid dates fail loudly
        try:
            parsed = pd.to_datetime(df["date"], format="ISO8601", errors="raise")
        except (ValueError, TypeError) as exc:
            raise DataFormatError(
                f"Invalid values in 'date' column of {csv_path}."
            ) from exc
        df["date"] = parsed.dt.date

    if "id" not in df.columns:
        df["id"] = ""
    blank_ids = df["id"].astype(str).str.strip() == ""
    df.loc[blank_ids, "id"] = [str(i + 1) for i in df.index[blank_ids]]

    logger.debug("Read %d %s rows from %s", len(df), kind, csv_path)
    return df


def _to_records(df: pd.DataFrame, factory: Callable[[dict[str, Any]], R]) -> list[R]:
    return [factory(row) for row in df.to_dict(orient="records")]


def read_sales(path: PathLike) -> list[SaleRecord]:
    """
    Read sale records from a CSV file.

    Returns
    -------
    list[SaleRecord]
        One record per CSV row, in file order.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    DataFormatError
        If the CSV does not contain the required columns or a date is
        invalid.
    """
    df = _read_frame(path, SALES_REQUIRED, "sales")
    return _to_records(df, SaleRecord.from_mapping)


def read_expenses(path: PathLike) -> list[ExpenseRecord]:
    """Read expense records from a CSV file (see read_sales for errors)."""
    df = _read_frame(path, EXPENSES_REQUIRED, "expenses")
    return _to_records(df, ExpenseRecord.from_mapping)


def read_salaries(path: PathLike) -> list[SalaryRecord]:
    """Read salary records from a CSV file (see read_sales for errors)."""
    df = _read_frame(path, SALARIES_REQUIRED, "salaries")
    return _to_records(df, SalaryRecord.from_mapping)


def read_cash_flow(path: PathLike) -> list[CashFlowEntry]:
    """Read cash-flow entries from a CSV file (see read_sales for errors)."""
    df = _read_frame(path, CASH_FLOW_REQUIRED, "cash flow")
    return _to_records(df, CashFlowEntry.from_mapping)


def export_frame(df: pd.DataFrame, path: PathLike) -> ExportResult:
    """
    Write a DataFrame to CSV, creating the parent directory if needed.

    Failures are reported in the returned ExportResult (success=False)
    and logged; they are never raised.
    """
    out_path = Path(path)
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(out_path, index=False)
    except OSError as exc:
        logger.warning("CSV export to %s failed: %s", out_path, exc)
        return ExportResult(
            success=False,
            message=f"Failed to write {out_path}: {exc}",
            path=out_path,
        )

    return ExportResult(
        success=True,
        message=f"Wrote {out_path} ({len(df)} rows)",
        path=out_path,
    )
