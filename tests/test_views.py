from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from wealthflow import (
    BorrowInTransaction,
    CustomTransaction,
    DateWindow,
    ExpenseTransaction,
    IncomeTransaction,
    InvestmentTransaction,
    Metric,
    RepayLoanTransaction,
    TransactionFilter,
    TransactionType,
    aggregate,
    available_tags,
    filter_transactions,
    summarize,
    time_series,
)

D = Decimal


def _mk_transactions():
    return [
        IncomeTransaction(id="i1", date=date(2024, 1, 1), amount=1000, note="Salary", tags=["work"]),
        ExpenseTransaction(
            id="e1", date=date(2024, 1, 5), amount=200, note="Groceries", tags=["food", "home"]
        ),
        ExpenseTransaction(id="e2", date=date(2024, 1, 5), amount=30, note="Coffee", tags=["food"]),
        BorrowInTransaction(id="b1", date=date(2024, 1, 6), amount=500, counterparty="Bank"),
        InvestmentTransaction(id="v1", date=date(2024, 1, 7), amount=300, is_withdrawable=True),
        InvestmentTransaction(id="v2", date=date(2024, 1, 7), amount=100, is_withdrawable=False),
        RepayLoanTransaction(id="r1", date=date(2024, 1, 8), amount=50, counterparty="Bank"),
        CustomTransaction(
            id="c1", date=date(2024, 1, 9), amount=20, custom_label="Red packet", is_positive=True
        ),
    ]


# ---- DateWindow --------------------------------------------------------------


def test_trailing_window_ends_on_day():
    w = DateWindow.trailing(date(2024, 1, 30), 30)
    assert w.start == date(2024, 1, 1)
    assert w.end == date(2024, 1, 30)
    assert len(w) == 30
    assert list(w.days())[0] == date(2024, 1, 1)


def test_centered_window():
    w = DateWindow.centered(date(2024, 1, 15), 7)
    assert (w.start, w.end) == (date(2024, 1, 12), date(2024, 1, 18))
    even = DateWindow.centered(date(2024, 1, 15), 4)
    assert (even.start, even.end) == (date(2024, 1, 14), date(2024, 1, 17))


def test_shift_pans_both_ends():
    w = DateWindow(date(2024, 1, 1), date(2024, 1, 10)).shift(-3)
    assert (w.start, w.end) == (date(2023, 12, 29), date(2024, 1, 7))


def test_window_rejects_inverted_range_and_bad_span():
    with pytest.raises(ValueError):
        DateWindow(date(2024, 2, 1), date(2024, 1, 1))
    with pytest.raises(ValueError):
        DateWindow.trailing(date(2024, 1, 1), 0)


# ---- time_series -------------------------------------------------------------


def test_liquid_series_matches_snapshots():
    txns = _mk_transactions()
    window = DateWindow(date(2023, 12, 31), date(2024, 1, 10))
    points = time_series(txns, Metric.LIQUID, window)
    assert [p.day for p in points] == list(window.days())
    for p in points:
        assert p.value == aggregate(txns, cutoff=p.day).liquid
    assert points[0].value == D("0")
    assert points[-1].value == D("1140")


def test_income_and_expense_series_are_same_day_only():
    txns = _mk_transactions()
    window = DateWindow(date(2024, 1, 5), date(2024, 1, 9))
    income = {p.day: p.value for p in time_series(txns, "income", window)}
    expense = {p.day: p.value for p in time_series(txns, Metric.EXPENSE, window)}

    assert income[date(2024, 1, 5)] == D("0")
    assert expense[date(2024, 1, 5)] == D("230")
    assert income[date(2024, 1, 6)] == D("500")
    # Withdrawable investment is liquid-neutral; only the locked one is an outflow.
    assert expense[date(2024, 1, 7)] == D("100")
    assert expense[date(2024, 1, 8)] == D("50")
    assert income[date(2024, 1, 9)] == D("20")


def test_default_window_is_trailing_thirty_days():
    points = time_series([], Metric.LIQUID)
    assert len(points) == 30
    assert points[-1].day == date.today()


def test_unknown_metric_rejected():
    with pytest.raises(ValueError):
        time_series([], "balance")


# ---- filtering and summaries ---------------------------------------------------


def test_filter_by_text_matches_note_counterparty_label_and_tags():
    txns = _mk_transactions()
    ids = lambda crit: [t.id for t in filter_transactions(txns, crit)]  # noqa: E731
    assert ids(TransactionFilter(text="grocer")) == ["e1"]
    assert ids(TransactionFilter(text="bank")) == ["b1", "r1"]
    assert ids(TransactionFilter(text="packet")) == ["c1"]
    assert ids(TransactionFilter(text="FOOD")) == ["e1", "e2"]
    assert len(ids(TransactionFilter(text="   "))) == len(txns)


def test_filter_by_type_tag_and_dates():
    txns = _mk_transactions()
    by_type = filter_transactions(
        txns, TransactionFilter(types=frozenset({TransactionType.INVESTMENT}))
    )
    assert [t.id for t in by_type] == ["v1", "v2"]

    by_tag = filter_transactions(txns, TransactionFilter(tags=frozenset({"home", "work"})))
    assert [t.id for t in by_tag] == ["i1", "e1"]

    by_range = filter_transactions(
        txns, TransactionFilter(start=date(2024, 1, 6), end=date(2024, 1, 7))
    )
    assert [t.id for t in by_range] == ["b1", "v1", "v2"]


def test_summarize_uses_liquid_sign_buckets():
    summary = summarize(_mk_transactions())
    assert summary.inflow == D("1520")  # 1000 + 500 + 20
    assert summary.outflow == D("380")  # 200 + 30 + 100 + 50
    assert summary.count == 8
    assert summary.net == aggregate(_mk_transactions()).liquid


def test_summarize_empty():
    summary = summarize([])
    assert (summary.inflow, summary.outflow, summary.count) == (D("0"), D("0"), 0)


def test_available_tags_first_seen_order():
    assert available_tags(_mk_transactions()) == ["work", "food", "home"]
