from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from wealthflow import (
    BorrowInTransaction,
    CustomTransaction,
    ExpenseTransaction,
    IncomeTransaction,
    InvestmentTransaction,
    TransactionType,
    dump_transaction,
    generate_id,
    parse_transaction,
)
from wealthflow.models import FlowSummary, to_money


def test_negative_amount_is_rejected():
    with pytest.raises(ValidationError):
        ExpenseTransaction(id="e", date=date(2024, 1, 1), amount=-5)


@pytest.mark.parametrize("bad", ["abc", "", "NaN", "inf", True])
def test_non_numeric_amount_is_rejected(bad):
    with pytest.raises(ValidationError):
        IncomeTransaction(id="i", date=date(2024, 1, 1), amount=bad)


@pytest.mark.parametrize("huge", ["1e30", Decimal("1E+40"), 1e30])
def test_amount_too_large_for_cents_is_rejected(huge):
    with pytest.raises(ValueError, match="out of range"):
        to_money(huge)
    with pytest.raises(ValidationError):
        IncomeTransaction(id="i", date=date(2024, 1, 1), amount=huge)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(0.1, "0.10"), (12, "12.00"), ("3.455", "3.46"), (Decimal("7.1"), "7.10")],
)
def test_amounts_are_quantized_to_cents(raw, expected):
    assert to_money(raw) == Decimal(expected)
    txn = IncomeTransaction(id="i", date=date(2024, 1, 1), amount=raw)
    assert str(txn.amount) == expected


def test_transactions_are_immutable():
    txn = IncomeTransaction(id="i", date=date(2024, 1, 1), amount=1)
    with pytest.raises(ValidationError):
        txn.amount = Decimal("2")  # type: ignore[misc]


def test_tags_are_trimmed_deduplicated_and_keep_order():
    txn = ExpenseTransaction(
        id="e", date=date(2024, 1, 1), amount=1, tags=[" food ", "travel", "food", "", "Food"]
    )
    assert txn.tags == ("food", "travel", "Food")


def test_parse_dispatches_on_type_code():
    txn = parse_transaction(
        {
            "id": "v",
            "date": "2024-03-01",
            "type": "INVESTMENT",
            "amount": "300",
            "isWithdrawable": True,
        }
    )
    assert isinstance(txn, InvestmentTransaction)
    assert txn.is_withdrawable is True
    assert txn.type == TransactionType.INVESTMENT


def test_parse_accepts_legacy_field_names():
    loan = parse_transaction(
        {"id": "b", "date": "2024-02-01", "type": "LOAN_IN", "amount": 500, "lender": "Bank",
         "description": "Car loan"}
    )
    assert isinstance(loan, BorrowInTransaction)
    assert loan.counterparty == "Bank"
    assert loan.note == "Car loan"

    custom = parse_transaction(
        {"id": "c", "date": "2024-02-01", "type": "CUSTOM", "amount": 5, "customName": "Gift",
         "isPositive": True}
    )
    assert isinstance(custom, CustomTransaction)
    assert custom.custom_label == "Gift"
    assert custom.is_positive is True


def test_flags_irrelevant_to_a_kind_are_ignored():
    txn = parse_transaction(
        {"id": "i", "date": "2024-01-01", "type": "INCOME", "amount": 1, "isWithdrawable": True}
    )
    assert isinstance(txn, IncomeTransaction)
    assert not hasattr(txn, "is_withdrawable")


def test_parse_rejects_unknown_type():
    with pytest.raises(ValidationError):
        parse_transaction({"id": "x", "date": "2024-01-01", "type": "LOTTERY", "amount": 1})


def test_dump_omits_empty_optionals():
    txn = BorrowInTransaction(id="b", date=date(2024, 2, 1), amount=500)
    assert dump_transaction(txn) == {
        "id": "b",
        "date": "2024-02-01",
        "amount": "500.00",
        "type": "LOAN_IN",
    }


def test_dump_uses_camel_case_keys():
    txn = CustomTransaction(
        id="c",
        date=date(2024, 4, 2),
        amount="50",
        note="Lost wallet",
        tags=["misc"],
        custom_label="Loss",
        is_positive=False,
    )
    record = dump_transaction(txn)
    assert record == {
        "id": "c",
        "date": "2024-04-02",
        "amount": "50.00",
        "note": "Lost wallet",
        "tags": ["misc"],
        "type": "CUSTOM",
        "customLabel": "Loss",
        "isPositive": False,
    }
    assert parse_transaction(record) == txn


def test_generate_id_is_unique():
    ids = {generate_id() for _ in range(500)}
    assert len(ids) == 500
    assert all(i.isalnum() for i in ids)


def test_flow_summary_net():
    s = FlowSummary(inflow=Decimal("10"), outflow=Decimal("3.5"), count=2)
    assert s.net == Decimal("6.5")
