import logging
from pathlib import Path

import pytest

from shopbook.config import AppConfig, load_app_config
from shopbook.periods import Granularity
from shopbook.projection import ProjectionMethod

FULL_CONFIG = """
[shop]
name = "Toko Makmur"
currency = "IDR"

[cash]
opening_balance = 5000000

[data]
sales = "data/sales.csv"
cash_flow = "data/cash_flow.csv"

[projection]
method = "moving_average"
window_size = 4
blend_window_size = 5
granularities = ["daily", "Monthly", "daily"]

[display]
mode = "both"
decimals = 0

[logging]
level = "debug"
"""


def _write_config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "shopbook_config.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_load_full_config(tmp_path: Path) -> None:
    """Every section is parsed and relative paths resolve from the TOML file."""
    path = _write_config(tmp_path, FULL_CONFIG)

    cfg = load_app_config(str(path))

    assert cfg.shop_name == "Toko Makmur"
    assert cfg.opening_balance == 5_000_000
    assert cfg.data.sales == (tmp_path / "data" / "sales.csv").resolve()
    assert cfg.data.expenses is None
    assert cfg.projection.method is ProjectionMethod.MOVING_AVERAGE
    assert cfg.projection.window_size == 4
    assert cfg.projection.blend_window_size == 5
    assert cfg.projection.granularities == (Granularity.DAILY, Granularity.MONTHLY)
    assert cfg.display.mode == "both"
    assert cfg.display.decimals == 0
    assert cfg.log_level == "DEBUG"


def test_empty_config_uses_defaults(tmp_path: Path) -> None:
    cfg = load_app_config(str(_write_config(tmp_path, "")))

    assert cfg == AppConfig()
    assert cfg.opening_balance == 12_500_000
    assert cfg.projection.method is ProjectionMethod.LINEAR_REGRESSION
    assert cfg.projection.granularities == (Granularity.WEEKLY, Granularity.MONTHLY)


def test_default_path_is_current_directory(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _write_config(tmp_path, '[shop]\nname = "Here"\n')
    monkeypatch.chdir(tmp_path)

    assert load_app_config().shop_name == "Here"


def test_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_app_config(str(tmp_path / "missing.toml"))


def test_invalid_toml(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "[shop\nname = ")

    with pytest.raises(ValueError, match="Failed to parse"):
        load_app_config(str(path))


@pytest.mark.parametrize(
    "text",
    [
        "[projection]\nwindow_size = 0\n",
        "[projection]\nwindow_size = 'three'\n",
        "[projection]\ngranularities = []\n",
        "[projection]\ngranularities = ['hourly']\n",
        "[display]\nmode = 'html'\n",
        "[logging]\nlevel = 'LOUD'\n",
        "[cash]\nopening_balance = 'a lot'\n",
        "shop = 3\n",
    ],
)
def test_invalid_values(tmp_path: Path, text: str) -> None:
    with pytest.raises(ValueError):
        load_app_config(str(_write_config(tmp_path, text)))


def test_unknown_method_falls_back_with_warning(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    path = _write_config(tmp_path, "[projection]\nmethod = 'arima'\n")

    with caplog.at_level(logging.WARNING):
        cfg = load_app_config(str(path))

    assert cfg.projection.method is ProjectionMethod.LINEAR_REGRESSION
    assert "arima" in caplog.text
