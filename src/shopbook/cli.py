# ShopBook - Retail sales bookkeeping & projection application for small shops
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-line interface for ShopBook.

This module provides the CLI entry point used to:
- load the application configuration (TOML),
- read the sales, expenses, salaries and cash-flow CSV files,
- run the dashboard pipeline (financial summary, period series,
  projections, supplier priorities, employee performance, reports),
- render the selected scope as console tables and/or CSV files.

Usage examples
--------------
Full dashboard with the paths from shopbook_config.toml:

    python -m shopbook.cli --scope all

Monthly projections with the blended method:

    python -m shopbook.cli --scope projections --granularity monthly \
        --method blended

Summary of one employee over a custom period, written to CSV:

    python -m shopbook.cli --scope summary --employee emp-01 \
        --from-date 2025-06-01 --to-date 2025-06-30 \
        --display-mode csv --output reports/june

Configuration
-------------
When ``--config`` is omitted, ``shopbook_config.toml`` in the current
directory is used if it exists; otherwise built-in defaults apply and the
CSV files must be given on the command line. Command-line options always
override the configuration.

Display modes and output
------------------------
- ``table``: print DataFrames to stdout,
- ``csv``:   write CSV files only,
- ``both``:  do both.

CSV files are written to ``--output DIR`` or, by default, to
``data/output`` (created if needed). File names carry a timestamp, for
example ``summary_2025-06-30-18-05-12.csv``.
"""

import argparse
import logging
from collections.abc import Sequence
from dataclasses import replace
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from . import __version__
from .config import DEFAULT_CONFIG_FILE, AppConfig, load_app_config
from .engine import SalesFilter
from .io import (
    export_frame,
    read_cash_flow,
    read_expenses,
    read_salaries,
    read_sales,
)
from .periods import Granularity, custom_range
from .pipeline import Results, Snapshot, recompute
from .projection import ProjectionMethod
from .records import DataFormatError, coerce_date
from .views import (
    employees_to_dataframe,
    format_currency,
    projections_to_dataframe,
    reports_to_dataframe,
    series_to_dataframe,
    summary_to_dataframe,
    suppliers_to_dataframe,
)

logger = logging.getLogger(__name__)

SCOPES = ["summary", "projections", "series", "suppliers", "employees", "reports"]


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="python -m shopbook.cli",
        description=(
            "ShopBook - Retail sales bookkeeping & projection application for "
            "small shops. Reads sales, expenses, salaries and cash-flow CSV "
            "files, computes the financial summary and projects future sales."
        ),
    )

    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of shopbook and exit.",
    )
    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            "Path to the TOML configuration file. If omitted, "
            "'shopbook_config.toml' in the current directory is used when present."
        ),
    )

    # Input overrides
    ap.add_argument("--sales", dest="sales_path", help="Sales CSV file.")
    ap.add_argument("--expenses", dest="expenses_path", help="Expenses CSV file.")
    ap.add_argument("--salaries", dest="salaries_path", help="Salaries CSV file.")
    ap.add_argument("--cash-flow", dest="cash_flow_path", help="Cash-flow CSV file.")

    # What to render
    ap.add_argument(
        "--scope",
        choices=SCOPES + ["all"],
        default="summary",
        help="Select what to render ('all' renders every table).",
    )

    # Projection options
    ap.add_argument(
        "--granularity",
        choices=[g.value for g in Granularity],
        help=(
            "Period size of the series and projections. If omitted, the "
            "granularities from the configuration are used."
        ),
    )
    ap.add_argument(
        "--method",
        choices=[m.value for m in ProjectionMethod],
        help="Projection method. If omitted, the configured method is used.",
    )
    ap.add_argument(
        "--window",
        dest="window_size",
        type=int,
        help="Window size of the moving-average method.",
    )

    # Filters
    ap.add_argument(
        "--from-date",
        dest="from_date",
        help="Keep sales on or after this date (YYYY-MM-DD).",
    )
    ap.add_argument(
        "--to-date",
        dest="to_date",
        help="Keep sales on or before this date (YYYY-MM-DD).",
    )
    ap.add_argument(
        "--employee", dest="employee_id", help="Keep sales of one employee."
    )
    ap.add_argument(
        "--supplier", dest="supplier_name", help="Keep sales of one supplier."
    )

    ap.add_argument(
        "--as-of",
        dest="as_of",
        help="Reference date of the reports (YYYY-MM-DD). Defaults to today.",
    )
    ap.add_argument(
        "--cash-balance",
        dest="cash_balance",
        type=float,
        help="Current cash balance. Defaults to [cash].opening_balance.",
    )

    # Display options
    ap.add_argument(
        "--display-mode",
        dest="display_mode",
        choices=["table", "csv", "both"],
        help=(
            "Override the display.mode setting from the configuration file. "
            "'table' prints results to stdout, "
            "'csv' writes CSV files only, "
            "'both' does both."
        ),
    )
    ap.add_argument(
        "--output",
        dest="output_dir",
        help=(
            "Output directory where CSV files will be written when display "
            "mode includes 'csv'. If omitted, 'data/output' is used."
        ),
    )
    ap.add_argument(
        "--log-level",
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override the logging level from the configuration file.",
    )

    return ap


def _load_config(config_path: Optional[str]) -> AppConfig:
    if config_path:
        return load_app_config(config_path)
    if Path(DEFAULT_CONFIG_FILE).is_file():
        return load_app_config()
    return AppConfig()


def _apply_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Return a copy of the configuration with the CLI overrides applied."""
    projection = config.projection
    if args.method:
        projection = replace(projection, method=ProjectionMethod.resolve(args.method))
    if args.window_size is not None:
        projection = replace(projection, window_size=args.window_size)
    if args.granularity:
        projection = replace(
            projection, granularities=(Granularity.parse(args.granularity),)
        )

    display = config.display
    if args.display_mode:
        display = replace(display, mode=args.display_mode)

    return replace(config, projection=projection, display=display)


def _load_snapshot(
    config: AppConfig,
    args: argparse.Namespace,
    parser: argparse.ArgumentParser,
) -> Snapshot:
    """Read the input CSV files (CLI paths take precedence over config)."""

    def _pick(cli_value: Optional[str], configured: Optional[Path]) -> Optional[Path]:
        if cli_value:
            return Path(cli_value)
        return configured

    sales_path = _pick(args.sales_path, config.data.sales)
    if sales_path is None:
        parser.error(
            "No sales file configured. Either set [data].sales in the "
            "configuration or provide --sales."
        )

    expenses_path = _pick(args.expenses_path, config.data.expenses)
    salaries_path = _pick(args.salaries_path, config.data.salaries)
    cash_flow_path = _pick(args.cash_flow_path, config.data.cash_flow)

    try:
        sales = read_sales(sales_path)
        expenses = read_expenses(expenses_path) if expenses_path else []
        salaries = read_salaries(salaries_path) if salaries_path else []
        cash_flow = read_cash_flow(cash_flow_path) if cash_flow_path else []
    except (FileNotFoundError, DataFormatError) as exc:
        parser.error(str(exc))

    print(
        f"Loaded {len(sales)} sales, {len(expenses)} expenses, "
        f"{len(salaries)} salaries, {len(cash_flow)} cash-flow entries."
    )
    return Snapshot(
        sales=tuple(sales),
        expenses=tuple(expenses),
        salaries=tuple(salaries),
        cash_flow=tuple(cash_flow),
    )


def _build_filter(
    args: argparse.Namespace,
    parser: argparse.ArgumentParser,
) -> Optional[SalesFilter]:
    try:
        period = custom_range(args.from_date, args.to_date)
    except ValueError as exc:
        parser.error(str(exc))

    flt = SalesFilter(
        start=period.start if period else None,
        end=period.end if period else None,
        employee_id=args.employee_id or None,
        supplier_name=args.supplier_name or None,
    )
    if flt.is_empty:
        return None

    if period is not None:
        print(f"Applied period: {period.label}")
    if flt.employee_id:
        print(f"Employee: {flt.employee_id}")
    if flt.supplier_name:
        print(f"Supplier: {flt.supplier_name}")
    return flt


def _build_tables(
    results: Results,
    scope: str,
    decimals: int,
) -> list[tuple[str, str, pd.DataFrame]]:
    """Return (title, file stem, DataFrame) for every table of the scope."""
    wanted = set(SCOPES) if scope == "all" else {scope}
    tables: list[tuple[str, str, pd.DataFrame]] = []

    if "summary" in wanted:
        tables.append(
            (
                "Financial summary",
                "summary",
                summary_to_dataframe(
                    results.summary, decimals=decimals, cash_flow=results.cash_flow
                ),
            )
        )
    if "series" in wanted:
        for proj in results.projections:
            gran = proj.granularity.value
            tables.append(
                (
                    f"Sales series ({gran})",
                    f"series_{gran}",
                    series_to_dataframe(proj.series, decimals=decimals),
                )
            )
    if "projections" in wanted:
        tables.append(
            (
                "Projections",
                "projections",
                projections_to_dataframe(results.projections, decimals=decimals),
            )
        )
    if "suppliers" in wanted:
        tables.append(
            (
                "Supplier payment priority",
                "suppliers",
                suppliers_to_dataframe(results.suppliers, decimals=decimals),
            )
        )
    if "employees" in wanted:
        tables.append(
            (
                "Employee performance",
                "employees",
                employees_to_dataframe(results.employees, decimals=decimals),
            )
        )
    if "reports" in wanted:
        tables.append(
            (
                "Reports",
                "reports",
                reports_to_dataframe(results.reports, decimals=decimals),
            )
        )
    return tables


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Entry point for the ShopBook CLI.

    This function parses command-line arguments, loads the configuration,
    reads the input CSV files, runs the dashboard pipeline with the
    requested filters and finally renders the selected scope as console
    tables and/or CSV files.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.window_size is not None and args.window_size < 1:
        parser.error("--window must be at least 1.")

    # --version: short-circuit and exit early.
    if args.version:
        print(f"shopbook version {__version__}")
        return

    # 1) Load configuration and apply CLI overrides
    try:
        config = _load_config(args.config_path)
    except (FileNotFoundError, ValueError) as exc:
        parser.error(str(exc))
    config = _apply_overrides(config, args)

    logging.basicConfig(
        level=args.log_level or config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.debug("Effective configuration: %s", config)

    # 2) Read input collections
    snapshot = _load_snapshot(config, args, parser)

    # 3) Filters and reference date
    sales_filter = _build_filter(args, parser)
    try:
        as_of = coerce_date(args.as_of) if args.as_of else date.today()
    except DataFormatError as exc:
        parser.error(str(exc))

    # 4) Run the pipeline
    try:
        results = recompute(
            snapshot,
            config,
            cash_balance=args.cash_balance,
            as_of=as_of,
            sales_filter=sales_filter,
        )
    except DataFormatError as exc:
        parser.error(str(exc))

    tables = _build_tables(results, args.scope, config.display.decimals)
    display_mode = config.display.mode

    # 5) Render to console (table mode)
    if display_mode in {"table", "both"}:
        if args.scope in {"summary", "all"}:
            print()
            print(
                f"{config.shop_name}: cash balance "
                f"{format_currency(results.summary.cash_balance, config.currency)}"
            )
        for title, _, df in tables:
            print()
            print(f"=== {title} ===")
            if df.empty:
                print("(no data)")
            else:
                print(df.to_string(index=False))

    # 6) Render to CSV files (csv mode)
    if display_mode in {"csv", "both"}:
        output_dir = Path(args.output_dir) if args.output_dir else Path("data/output")
        timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")

        for _, stem, df in tables:
            outcome = export_frame(df, output_dir / f"{stem}_{timestamp}.csv")
            print(outcome.message)


if __name__ == "__main__":
    main()
