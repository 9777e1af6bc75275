from datetime import date

import pytest

from shopbook.records import CashFlowEntry, ExpenseRecord, SalaryRecord, SaleRecord
from shopbook.summary import (
    break_even_units,
    calculate_cash_balance,
    calculate_loss,
    calculate_net_profit,
    compute_cash_flow,
    compute_financial_summary,
    employee_performance,
    supplier_payment_priority,
)


def _sale(
    rec_id: str,
    day: str,
    supplier: str,
    units: int,
    buy: float,
    sell: float,
    owner: str = "emp-1",
) -> SaleRecord:
    return SaleRecord(
        id=rec_id,
        date=day,
        supplier_name=supplier,
        stock_in=units,
        stock_remaining=0,
        buy_price=buy,
        sell_price=sell,
        owner_id=owner,
    )


def test_standalone_helpers() -> None:
    assert calculate_net_profit(1000, 300, 200) == pytest.approx(500)
    assert calculate_cash_balance(10000, 500) == pytest.approx(10500)
    assert calculate_cash_balance(10000, 500, loss=700) == pytest.approx(9800)
    assert calculate_loss(total_outflow=900, total_inflow=1000) == 0.0
    assert calculate_loss(total_outflow=1200, total_inflow=1000) == pytest.approx(200)


def test_break_even_with_zero_profit_per_unit_is_zero() -> None:
    """No Infinity nor NaN when the average profit per unit is 0."""
    assert break_even_units(1_000_000, 0) == 0.0
    assert break_even_units(1_000_000, 2_000) == pytest.approx(500)


def test_compute_financial_summary() -> None:
    sales = [
        _sale("1", "2025-06-01", "A", units=100, buy=8000, sell=10000),
        _sale("2", "2025-06-02", "B", units=50, buy=4000, sell=6000),
    ]
    expenses = [ExpenseRecord(id="e1", date="2025-06-01", amount=100000)]
    salaries = [SalaryRecord(id="p1", employee_name="Ani", amount=150000)]

    summary = compute_financial_summary(
        sales, expenses, salaries, prior_cash=12_500_000
    )

    # revenue 1_000_000 + 300_000, gross profit 200_000 + 100_000
    assert summary.total_revenue == pytest.approx(1_300_000)
    assert summary.total_gross_profit == pytest.approx(300_000)
    assert summary.net_profit == pytest.approx(50_000)
    assert summary.cash_balance == pytest.approx(12_550_000)
    assert summary.loss == 0.0
    assert summary.units_sold == 150
    assert summary.profit_margin_pct == pytest.approx(50_000 / 1_300_000 * 100)
    assert summary.operating_cost_ratio == pytest.approx(250_000 / 1_300_000)
    # 250_000 fixed costs / (300_000 / 150) profit per unit
    assert summary.break_even_units == pytest.approx(125)


def test_compute_financial_summary_deducts_loss() -> None:
    summary = compute_financial_summary([], [], [], prior_cash=1000, loss=250)

    assert summary.cash_balance == pytest.approx(750)
    assert summary.loss == pytest.approx(250)


def test_compute_financial_summary_without_sales_has_no_nan() -> None:
    salaries = [SalaryRecord(id="p1", amount=500)]
    summary = compute_financial_summary([], [], salaries)

    assert summary.net_profit == pytest.approx(-500)
    assert summary.profit_margin_pct == 0.0
    assert summary.operating_cost_ratio == 0.0
    assert summary.break_even_units == 0.0


def test_compute_cash_flow() -> None:
    entries = [
        CashFlowEntry(date="2025-06-01", income=500_000, outflow=200_000),
        CashFlowEntry(date="2025-06-02", income=0, outflow=450_000),
    ]

    snap = compute_cash_flow(entries, opening_balance=1_000_000)

    assert snap.total_inflow == pytest.approx(500_000)
    assert snap.total_outflow == pytest.approx(650_000)
    assert snap.net_flow == pytest.approx(-150_000)
    assert snap.closing_balance == pytest.approx(850_000)
    assert snap.loss == pytest.approx(150_000)


def test_supplier_priority_scores() -> None:
    as_of = date(2025, 6, 30)
    sales = [
        _sale("1", "2025-06-30", "Big recent", units=10, buy=1000, sell=1500),
        _sale("2", "2025-06-15", "Small mid", units=5, buy=1000, sell=1500),
        _sale("3", "2025-04-01", "Small old", units=5, buy=1000, sell=1500),
    ]

    ranking = supplier_payment_priority(sales, as_of)

    assert [p.supplier_name for p in ranking] == [
        "Big recent",
        "Small mid",
        "Small old",
    ]
    top, mid, old = ranking
    assert top.amount_owed == pytest.approx(10_000)
    assert top.days_since_last_sale == 0
    assert top.score == pytest.approx(0.7 + 0.3)
    assert mid.score == pytest.approx(0.7 * 0.5 + 0.3 * 0.5)
    assert old.score == pytest.approx(0.7 * 0.5)


def test_supplier_priority_is_monotonic() -> None:
    """Larger debt ranks higher at equal recency; recent debt at equal amount."""
    as_of = date(2025, 6, 30)

    by_amount = supplier_payment_priority(
        [
            _sale("1", "2025-06-20", "Low", units=1, buy=1000, sell=1200),
            _sale("2", "2025-06-20", "High", units=3, buy=1000, sell=1200),
        ],
        as_of,
    )
    assert by_amount[0].supplier_name == "High"
    assert by_amount[0].score > by_amount[1].score

    by_recency = supplier_payment_priority(
        [
            _sale("1", "2025-06-01", "Older", units=2, buy=1000, sell=1200),
            _sale("2", "2025-06-25", "Newer", units=2, buy=1000, sell=1200),
        ],
        as_of,
    )
    assert by_recency[0].supplier_name == "Newer"
    assert by_recency[0].score > by_recency[1].score


def test_supplier_priority_uses_latest_sale_and_guards_zero_debt() -> None:
    as_of = date(2025, 6, 30)
    sales = [
        _sale("1", "2025-06-01", "Only", units=0, buy=1000, sell=1200),
        _sale("2", "2025-06-24", "Only", units=0, buy=1000, sell=1200),
    ]

    (only,) = supplier_payment_priority(sales, as_of)

    assert only.amount_owed == 0.0
    assert only.last_sale_date == date(2025, 6, 24)
    assert only.days_since_last_sale == 6
    assert only.score == pytest.approx(0.3 * (1 - 6 / 30))


def test_supplier_priority_future_sale_counts_as_today() -> None:
    (only,) = supplier_payment_priority(
        [_sale("1", "2025-07-05", "Early", units=2, buy=1000, sell=1200)],
        date(2025, 6, 30),
    )

    assert only.days_since_last_sale == 0
    assert only.score == pytest.approx(0.7 + 0.3)


def test_supplier_priority_empty() -> None:
    assert supplier_payment_priority([], date(2025, 6, 30)) == []


def test_employee_performance() -> None:
    sales = [
        _sale("1", "2025-06-01", "A", units=10, buy=800, sell=1000, owner="emp-2"),
        _sale("2", "2025-06-02", "A", units=5, buy=800, sell=1000, owner="emp-1"),
        _sale("3", "2025-06-03", "B", units=5, buy=600, sell=1000, owner="emp-1"),
    ]

    report = employee_performance(sales)

    assert [e.employee_id for e in report] == ["emp-1", "emp-2"]
    emp1, emp2 = report
    assert emp1.revenue == pytest.approx(10_000)
    assert emp1.gross_profit == pytest.approx(3_000)
    assert emp1.item_count == 10
    assert emp1.profit_margin_pct == pytest.approx(30.0)
    assert emp1.sales_efficiency == pytest.approx(300)
    assert emp2.profit_margin_pct == pytest.approx(20.0)


def test_employee_performance_without_sales_is_zero() -> None:
    (perf,) = employee_performance([], employee_ids=["emp-9"])

    assert perf.employee_id == "emp-9"
    assert perf.item_count == 0
    assert perf.profit_margin_pct == 0.0
    assert perf.sales_efficiency == 0.0
