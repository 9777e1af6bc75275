# ShopBook - Retail sales bookkeeping & projection application for small shops
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
ShopBook
--------

A Python-based bookkeeping and sales projection application for small
retail shops. The project provides a pure computation core and a
command-line interface.

Main capabilities:
- sale records with derived units sold, revenue, supplier cost and
  gross profit,
- daily / weekly (ISO) / monthly / yearly period series,
- sales projections: moving average, linear regression, weekly seasonal
  ratio and a fixed-weight blend of the three,
- financial summary: net profit, cash balance, margin, operating-cost
  ratio and break-even point,
- supplier payment priority and employee performance reports,
- an explicit recompute pipeline with refresh signals and session
  listeners,
- CSV input and output through pandas.

ShopBook separates computation (engine, projection, summary),
configuration (TOML) and presentation (CLI), making it suitable for
scripting and for embedding behind a dashboard.


Version: 0.2.0

Usage:
    python -m shopbook.cli --help
"""

__all__ = ["engine", "periods", "pipeline", "projection", "summary", "views", "io"]

__version__ = "0.2.0"
