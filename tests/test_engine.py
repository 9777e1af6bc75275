import random
from datetime import date

import pytest

from shopbook.engine import (
    SalesFilter,
    aggregate,
    build_period_series,
    expenses_by_category,
    filter_sales,
    total_expenses,
    total_salaries,
    total_supplier_cost,
)
from shopbook.records import DataFormatError, ExpenseRecord, SalaryRecord, SaleRecord


def _sales() -> list[SaleRecord]:
    return [
        SaleRecord(
            id="1",
            date="2025-06-01",
            supplier_name="Pak Budi",
            product_name="Keripik",
            stock_in=10,
            stock_remaining=2,
            buy_price=8000,
            sell_price=10000,
            owner_id="emp-1",
        ),
        SaleRecord(
            id="2",
            date="2025-06-03",
            supplier_name="Bu Sari",
            product_name="Kue",
            stock_in=20,
            stock_remaining=5,
            buy_price=4000,
            sell_price=5000,
            owner_id="emp-2",
        ),
        SaleRecord(
            id="3",
            date="2025-07-10",
            supplier_name="Pak Budi",
            product_name="Keripik",
            stock_in=6,
            stock_remaining=6,
            buy_price=8000,
            sell_price=10000,
            owner_id="emp-1",
        ),
        SaleRecord(
            id="4",
            date="2025-07-12",
            supplier_name="Bu Sari",
            product_name="Kue",
            stock_in=4,
            stock_remaining=9,
            buy_price=4000,
            sell_price=5000,
            owner_id="emp-1",
        ),
    ]


def test_aggregate_totals() -> None:
    """Totals sum the derived values of every record."""
    totals = aggregate(_sales())

    # 8 units * 10000 + 15 units * 5000; records 3 and 4 sell nothing
    assert totals.revenue == pytest.approx(155000)
    assert totals.supplier_cost == pytest.approx(124000)
    assert totals.gross_profit == pytest.approx(31000)
    assert totals.units_sold == 23
    assert totals.record_count == 4


def test_aggregate_is_order_independent() -> None:
    """Permuting the input records yields identical totals."""
    records = _sales()
    expected = aggregate(records)

    rng = random.Random(7)
    for _ in range(5):
        shuffled = records[:]
        rng.shuffle(shuffled)
        assert aggregate(shuffled) == expected


def test_aggregate_empty() -> None:
    totals = aggregate([])
    assert totals.revenue == 0
    assert totals.units_sold == 0
    assert totals.record_count == 0


def test_filter_sales_combines_predicates_with_and() -> None:
    records = _sales()

    flt = SalesFilter(
        start=date(2025, 6, 1),
        end=date(2025, 7, 10),
        employee_id="emp-1",
    )
    assert [r.id for r in filter_sales(records, flt)] == ["1", "3"]

    flt = SalesFilter(supplier_name="Bu Sari")
    assert [r.id for r in filter_sales(records, flt)] == ["2", "4"]


def test_filter_sales_without_filter_returns_copy() -> None:
    records = _sales()

    selected = filter_sales(records, None)
    assert selected == records
    assert selected is not records

    assert filter_sales(records, SalesFilter()) == records


def test_filter_sales_with_date_bound_rejects_bad_dates() -> None:
    records = _sales() + [SaleRecord(id="x", date="32/13/2025")]

    # Without date bounds the date is never parsed
    assert len(filter_sales(records, SalesFilter(employee_id="emp-2"))) == 1

    with pytest.raises(DataFormatError):
        filter_sales(records, SalesFilter(start=date(2025, 1, 1)))


def test_supplier_salary_and_expense_totals() -> None:
    records = _sales()
    assert total_supplier_cost(records) == pytest.approx(124000)
    assert total_supplier_cost(records, "Pak Budi") == pytest.approx(64000)

    salaries = [
        SalaryRecord(id="p1", employee_name="Ani", amount=1500000),
        SalaryRecord(id="p2", employee_name="Budi", amount=1000000),
    ]
    assert total_salaries(salaries) == pytest.approx(2500000)

    expenses = [
        ExpenseRecord(id="e1", date="2025-06-01", category="Rent", amount=500000),
        ExpenseRecord(id="e2", date="2025-06-02", category="Transport", amount=50000),
        ExpenseRecord(id="e3", date="2025-06-09", category="Transport", amount=25000),
        ExpenseRecord(id="e4", date="2025-06-10", amount=10000),
    ]
    assert total_expenses(expenses) == pytest.approx(585000)
    assert expenses_by_category(expenses) == {
        "Rent": pytest.approx(500000),
        "Transport": pytest.approx(75000),
        "Uncategorized": pytest.approx(10000),
    }


def test_build_period_series_monthly() -> None:
    """Bucket count equals the number of distinct month keys present."""
    series = build_period_series(_sales(), "monthly")

    assert [b.key for b in series] == ["2025-06", "2025-07"]

    june, july = series
    assert june.revenue == pytest.approx(155000)
    assert june.units_sold == 23
    assert june.record_count == 2
    assert july.revenue == 0
    assert july.record_count == 2


def test_build_period_series_daily_keys_are_sorted() -> None:
    records = list(reversed(_sales()))
    series = build_period_series(records, "daily")
    keys = [b.key for b in series]
    assert keys == sorted(keys)
    assert len(keys) == 4
