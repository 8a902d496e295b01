"""Transaction classifier: the effect of one transaction on the two balances.

Liquid funds answer "what can I spend today"; net worth answers "what do I
own minus what I owe". Loans and investments are asset/liability transfers,
so they never move net worth; only the withdrawable flag decides whether an
invested amount still counts as spendable.

=====================  ============  ============
Variant                Liquid        Net worth
=====================  ============  ============
Income / Deposit       +amount       +amount
Expense                -amount       -amount
BorrowIn               +amount       0
RepayLoan              -amount       0
Investment, liquid     0             0
Investment, locked     -amount       0
Custom, positive       +amount       +amount
Custom, negative       -amount       -amount
=====================  ============  ============

Anything else contributes a zero delta. Classification never raises.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Literal, TypeAlias

from .logging_setup import get_logger
from .models import (
    ZERO,
    BorrowInTransaction,
    CustomTransaction,
    Delta,
    DepositTransaction,
    ExpenseTransaction,
    IncomeTransaction,
    InvestmentTransaction,
    RepayLoanTransaction,
)

_logger = get_logger(__name__)

NO_EFFECT = Delta(liquid=ZERO, net_worth=ZERO)

FlowDirection: TypeAlias = Literal["inflow", "outflow"]


def classify(txn: Any) -> Delta:
    """Return the signed ``(liquid, net_worth)`` change ``txn`` applies."""

    if isinstance(txn, (IncomeTransaction, DepositTransaction)):
        return Delta(txn.amount, txn.amount)
    if isinstance(txn, ExpenseTransaction):
        return Delta(-txn.amount, -txn.amount)
    if isinstance(txn, BorrowInTransaction):
        return Delta(txn.amount, ZERO)
    if isinstance(txn, RepayLoanTransaction):
        return Delta(-txn.amount, ZERO)
    if isinstance(txn, InvestmentTransaction):
        return NO_EFFECT if txn.is_withdrawable else Delta(-txn.amount, ZERO)
    if isinstance(txn, CustomTransaction):
        if txn.is_positive:
            return Delta(txn.amount, txn.amount)
        return Delta(-txn.amount, -txn.amount)

    _logger.debug(
        "classify:unrecognized type=%s id=%s",
        getattr(txn, "type", None),
        getattr(txn, "id", None),
    )
    return NO_EFFECT


def liquid_delta(txn: Any) -> Decimal:
    """Shorthand for ``classify(txn).liquid``."""

    return classify(txn).liquid


def flow_direction(txn: Any) -> FlowDirection | None:
    """Bucket ``txn`` by the sign of its liquid delta.

    Returns ``"inflow"`` for positive, ``"outflow"`` for negative and ``None``
    for liquid-neutral transactions (withdrawable investments, unknown kinds).
    """

    d = classify(txn).liquid
    if d > 0:
        return "inflow"
    if d < 0:
        return "outflow"
    return None


__all__ = ["NO_EFFECT", "FlowDirection", "classify", "flow_direction", "liquid_delta"]
