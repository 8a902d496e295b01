from __future__ import annotations

import random
from datetime import date
from decimal import Decimal

from wealthflow import (
    Balances,
    BorrowInTransaction,
    CustomTransaction,
    ExpenseTransaction,
    IncomeTransaction,
    InvestmentTransaction,
    RepayLoanTransaction,
    aggregate,
)

D = Decimal


def _mk_transactions():
    return [
        IncomeTransaction(id="i1", date=date(2024, 1, 1), amount=1000, note="Salary"),
        ExpenseTransaction(id="e1", date=date(2024, 1, 5), amount=200, note="Groceries"),
        BorrowInTransaction(id="b1", date=date(2024, 2, 1), amount=500, counterparty="Bank"),
        InvestmentTransaction(id="v1", date=date(2024, 3, 1), amount=300, is_withdrawable=False),
        InvestmentTransaction(id="v2", date=date(2024, 3, 2), amount=300, is_withdrawable=True),
        RepayLoanTransaction(id="r1", date=date(2024, 4, 1), amount=100, counterparty="Bank"),
        CustomTransaction(id="c1", date=date(2024, 4, 2), amount=50, is_positive=False),
    ]


def test_empty_input_is_zero():
    assert aggregate([]) == Balances(D("0"), D("0"))
    assert aggregate([]) == Balances.zero()


def test_income_then_expense():
    txns = _mk_transactions()[:2]
    assert aggregate(txns) == Balances(liquid=D("800"), net_worth=D("800"))


def test_borrowing_only_moves_liquid():
    txns = [BorrowInTransaction(id="b", date=date(2024, 2, 1), amount=500, counterparty="Bank")]
    result = aggregate(txns)
    assert result.liquid == D("500")
    assert result.net_worth == D("0")


def test_full_history():
    # liquid: 1000 - 200 + 500 - 300 + 0 - 100 - 50
    # net worth: 1000 - 200 - 50
    assert aggregate(_mk_transactions()) == Balances(liquid=D("850"), net_worth=D("750"))


def test_cutoff_is_inclusive():
    txns = _mk_transactions()
    assert aggregate(txns, cutoff=date(2024, 1, 4)).liquid == D("1000")
    assert aggregate(txns, cutoff=date(2024, 1, 5)).liquid == D("800")
    assert aggregate(txns, cutoff=date(2023, 12, 31)) == Balances.zero()


def test_no_cutoff_matches_far_future_cutoff():
    txns = _mk_transactions()
    assert aggregate(txns) == aggregate(txns, cutoff=date(9999, 12, 31))


def test_idempotent_and_does_not_mutate_input():
    txns = _mk_transactions()
    snapshot = list(txns)
    first = aggregate(txns)
    second = aggregate(txns)
    assert first == second
    assert txns == snapshot


def test_order_does_not_change_totals():
    txns = _mk_transactions()
    expected = aggregate(txns)
    rng = random.Random(7)
    for _ in range(5):
        shuffled = list(txns)
        rng.shuffle(shuffled)
        assert aggregate(shuffled) == expected


def test_accepts_generators():
    assert aggregate(t for t in _mk_transactions()).liquid == D("850")


def test_cent_amounts_do_not_drift():
    txns = [
        IncomeTransaction(id=f"i{n}", date=date(2024, 1, 1), amount=0.1) for n in range(1000)
    ]
    assert aggregate(txns).liquid == D("100.00")
