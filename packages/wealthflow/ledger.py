"""Month ledger: end-of-day liquid balances for every day of a calendar month.

The naive approach calls :func:`wealthflow.aggregate.aggregate` once per day,
which rescans the whole history for each of up to 31 cells. Instead the
history is sorted once and swept forward with a running total:

1. Stable-sort by date (equal dates keep their input order).
2. Consume everything dated before the 1st of the month to get the carried
   baseline.
3. For each day, consume the transactions dated on that day and record the
   running total.

Transactions dated after the month's last day are never consumed. For every
day ``d`` of the month the result equals ``aggregate(txns, d).liquid``.
"""

from __future__ import annotations

import calendar
import datetime as dt
from collections.abc import Iterable
from decimal import Decimal
from typing import Any

from .classify import liquid_delta
from .logging_setup import get_logger
from .models import ZERO

_logger = get_logger(__name__)


def days_in_month(year: int, month: int) -> int:
    """Number of days in ``month`` (1-12) of ``year``, leap years included."""

    if not 1 <= month <= 12:
        raise ValueError(f"month must be in 1..12, got {month}")
    return calendar.monthrange(year, month)[1]


def month_ledger(transactions: Iterable[Any], year: int, month: int) -> dict[dt.date, Decimal]:
    """Map each day of ``year``/``month`` to its end-of-day liquid balance.

    ``month`` is 1-based. The returned dict is ordered by day. Days without
    transactions carry the previous day's balance (or the baseline carried in
    from earlier months for day 1). A month with no history at all maps every
    day to zero.
    """

    last_day = days_in_month(year, month)
    ordered = sorted(transactions, key=lambda t: t.date)
    first = dt.date(year, month, 1)

    running = ZERO
    i = 0
    n = len(ordered)

    while i < n and ordered[i].date < first:
        running += liquid_delta(ordered[i])
        i += 1
    carried = i

    out: dict[dt.date, Decimal] = {}
    for day_no in range(1, last_day + 1):
        day = dt.date(year, month, day_no)
        while i < n and ordered[i].date <= day:
            running += liquid_delta(ordered[i])
            i += 1
        out[day] = running

    _logger.debug(
        "month_ledger:done year=%d month=%d carried=%d consumed=%d skipped_after=%d",
        year,
        month,
        carried,
        i - carried,
        n - i,
    )
    return out


def transactions_on(transactions: Iterable[Any], day: dt.date) -> list[Any]:
    """Return the transactions dated exactly ``day``, in input order."""

    return [t for t in transactions if t.date == day]


__all__ = ["days_in_month", "month_ledger", "transactions_on"]
