# ShopBook - Retail sales bookkeeping & projection application for small shops
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for ShopBook.

This module is responsible for:
- loading the application configuration from a TOML file,
- validating projection and display options,
- exposing typed dataclasses used by the rest of the application.
"""

import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .periods import Granularity
from .projection import (
    BLEND_WINDOW_SIZE,
    DEFAULT_WINDOW_SIZE,
    ProjectionMethod,
)

DEFAULT_CONFIG_FILE = "shopbook_config.toml"
DEFAULT_OPENING_BALANCE = 12_500_000.0

DISPLAY_MODES = ("table", "csv", "both")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class DataPaths:
    """Input CSV files for the four collections (None when not configured)."""

    sales: Optional[Path] = None
    expenses: Optional[Path] = None
    salaries: Optional[Path] = None
    cash_flow: Optional[Path] = None


@dataclass(frozen=True)
class ProjectionSettings:
    """
    Projection options.

    `method` is the method reported as the main forecast; the blended
    forecast is always computed alongside it.
    """

    method: ProjectionMethod = ProjectionMethod.LINEAR_REGRESSION
    window_size: int = DEFAULT_WINDOW_SIZE
    blend_window_size: int = BLEND_WINDOW_SIZE
    granularities: tuple[Granularity, ...] = (
        Granularity.WEEKLY,
        Granularity.MONTHLY,
    )


@dataclass(frozen=True)
class DisplaySettings:
    """CLI display options."""

    mode: str = "table"
    decimals: int = 2


@dataclass(frozen=True)
class AppConfig:
    """
    Application-wide configuration for ShopBook.

    This aggregates:
    - the shop name and currency,
    - the opening cash balance used when no ledger value is available,
    - the input CSV paths,
    - projection and display options,
    - the logging level.
    """

    shop_name: str = "Toko"
    currency: str = "IDR"
    opening_balance: float = DEFAULT_OPENING_BALANCE
    data: DataPaths = field(default_factory=DataPaths)
    projection: ProjectionSettings = field(default_factory=ProjectionSettings)
    display: DisplaySettings = field(default_factory=DisplaySettings)
    log_level: str = "INFO"


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML content cannot be parsed.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Failed to parse TOML config file: {path}") from exc


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, Mapping):
        raise ValueError(f"Config entry [{name}] must be a table.")
    return value


def _positive_int(value: Any, key: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(
            f"Invalid value for '{key}' in the configuration. Expected an integer."
        ) from exc
    if number < 1:
        raise ValueError(f"'{key}' must be at least 1 (got {number}).")
    return number


def _parse_projection(section: Mapping[str, Any]) -> ProjectionSettings:
    """
    Parse the [projection] table.

    An unknown method is not an error here: ProjectionMethod.resolve()
    falls back to linear regression and logs a warning.
    """
    method = ProjectionMethod.resolve(section.get("method"))

    window_size = _positive_int(
        section.get("window_size", DEFAULT_WINDOW_SIZE), "projection.window_size"
    )
    blend_window_size = _positive_int(
        section.get("blend_window_size", BLEND_WINDOW_SIZE),
        "projection.blend_window_size",
    )

    raw_granularities = section.get("granularities", ["weekly", "monthly"])
    if isinstance(raw_granularities, str):
        raw_granularities = [raw_granularities]
    if not isinstance(raw_granularities, list) or not raw_granularities:
        raise ValueError(
            "'projection.granularities' must be a non-empty list of "
            "daily / weekly / monthly / yearly."
        )

    granularities: list[Granularity] = []
    for raw in raw_granularities:
        gran = Granularity.parse(raw)
        if gran not in granularities:
            granularities.append(gran)

    return ProjectionSettings(
        method=method,
        window_size=window_size,
        blend_window_size=blend_window_size,
        granularities=tuple(granularities),
    )


def _parse_display(section: Mapping[str, Any]) -> DisplaySettings:
    mode = str(section.get("mode", "table")).strip().lower()
    if mode not in DISPLAY_MODES:
        raise ValueError(
            f"Invalid display.mode {mode!r}, expected one of: "
            + ", ".join(DISPLAY_MODES)
        )

    try:
        decimals = int(section.get("decimals", 2))
    except (TypeError, ValueError):
        decimals = 2

    return DisplaySettings(mode=mode, decimals=max(0, decimals))


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load the ShopBook application configuration from a TOML file.

    Expected top-level sections in the TOML file
    --------------------------------------------
    [shop]
        Shop name and currency (default "IDR").

    [cash]
        opening_balance: cash balance used when no ledger value is given.

    [data]
        Paths of the sales, expenses, salaries and cash_flow CSV files.

    [projection]
        method, window_size, blend_window_size and granularities.

    [display]
        mode (table | csv | both) and decimals.

    [logging]
        level (DEBUG, INFO, WARNING, ERROR, CRITICAL).

    Every section is optional. All file paths in the TOML are resolved
    relative to the directory of the TOML file itself.

    Parameters
    ----------
    config_path : str, optional
        Path to the TOML configuration file. Defaults to
        'shopbook_config.toml' in the current directory.

    Returns
    -------
    AppConfig
        Parsed and validated application configuration.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist.
    ValueError
        If the TOML cannot be parsed or holds invalid values.
    """
    if config_path is None:
        config_file = Path(DEFAULT_CONFIG_FILE).resolve()
    else:
        config_file = Path(config_path).resolve()

    raw = _load_toml(config_file)
    base_dir = config_file.parent

    # 1) Shop
    shop_section = _section(raw, "shop")
    shop_name = str(shop_section.get("name") or "Toko")
    currency = str(shop_section.get("currency") or "IDR")

    # 2) Cash
    cash_section = _section(raw, "cash")
    try:
        opening_balance = float(
            cash_section.get("opening_balance", DEFAULT_OPENING_BALANCE)
        )
    except (TypeError, ValueError) as exc:
        raise ValueError(
            "Invalid value for 'cash.opening_balance'. Expected a number."
        ) from exc

    # 3) Data paths
    data_section = _section(raw, "data")

    def _resolve_optional(key: str) -> Optional[Path]:
        rel = data_section.get(key)
        if not rel:
            return None
        return (base_dir / str(rel)).resolve()

    data = DataPaths(
        sales=_resolve_optional("sales"),
        expenses=_resolve_optional("expenses"),
        salaries=_resolve_optional("salaries"),
        cash_flow=_resolve_optional("cash_flow"),
    )

    # 4) Projection and display
    projection = _parse_projection(_section(raw, "projection"))
    display = _parse_display(_section(raw, "display"))

    # 5) Logging
    log_level = str(_section(raw, "logging").get("level", "INFO")).upper()
    if log_level not in LOG_LEVELS:
        raise ValueError(
            f"Invalid logging.level {log_level!r}, expected one of: "
            + ", ".join(LOG_LEVELS)
        )

    return AppConfig(
        shop_name=shop_name,
        currency=currency,
        opening_balance=opening_balance,
        data=data,
        projection=projection,
        display=display,
        log_level=log_level,
    )
