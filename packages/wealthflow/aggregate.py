"""Snapshot aggregation: fold transactions into point-in-time totals."""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable
from typing import Any

from .classify import classify
from .models import ZERO, Balances


def aggregate(transactions: Iterable[Any], cutoff: dt.date | None = None) -> Balances:
    """Sum liquid and net-worth deltas of ``transactions`` as of ``cutoff``.

    Transactions dated strictly after ``cutoff`` are left out; ``None`` means
    the whole history. The cutoff is inclusive, so a transaction dated on the
    cutoff day is part of that day's snapshot. An empty input yields zero
    balances.
    """

    liquid = ZERO
    net_worth = ZERO
    for txn in transactions:
        if cutoff is not None and txn.date > cutoff:
            continue
        delta = classify(txn)
        liquid += delta.liquid
        net_worth += delta.net_worth
    return Balances(liquid=liquid, net_worth=net_worth)


__all__ = ["aggregate"]
