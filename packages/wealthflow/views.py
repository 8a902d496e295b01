"""Derived views over the engine: trend series and filtered summaries.

These helpers reshape classifier/aggregator results for presentation. They
hold no state; every call recomputes from the collection it is given.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from enum import StrEnum
from typing import Any, NamedTuple

from .aggregate import aggregate
from .classify import flow_direction, liquid_delta
from .models import ZERO, FlowSummary, TransactionType

DEFAULT_TREND_DAYS = 30


class Metric(StrEnum):
    """Per-day value a trend series plots."""

    LIQUID = "liquid"
    INCOME = "income"
    EXPENSE = "expense"


class SeriesPoint(NamedTuple):
    day: dt.date
    value: Decimal


# ---------------------------------------------------------------------------
# Date windows
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DateWindow:
    """An inclusive run of calendar days ``start..end``."""

    start: dt.date
    end: dt.date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(
                f"DateWindow start {self.start.isoformat()} is after end {self.end.isoformat()}"
            )

    @classmethod
    def trailing(cls, end: dt.date, span: int = DEFAULT_TREND_DAYS) -> DateWindow:
        """``span`` days ending on (and including) ``end``."""

        if span <= 0:
            raise ValueError("span must be a positive number of days")
        return cls(start=end - dt.timedelta(days=span - 1), end=end)

    @classmethod
    def centered(cls, anchor: dt.date, span: int = DEFAULT_TREND_DAYS) -> DateWindow:
        """``span`` days with ``anchor`` in the middle.

        For an even span the extra day falls after the anchor.
        """

        if span <= 0:
            raise ValueError("span must be a positive number of days")
        before = (span - 1) // 2
        start = anchor - dt.timedelta(days=before)
        return cls(start=start, end=start + dt.timedelta(days=span - 1))

    def shift(self, days: int) -> DateWindow:
        """Pan the window by ``days`` (negative moves back in time)."""

        delta = dt.timedelta(days=days)
        return DateWindow(start=self.start + delta, end=self.end + delta)

    def __len__(self) -> int:
        return (self.end - self.start).days + 1

    def days(self) -> Iterator[dt.date]:
        for offset in range(len(self)):
            yield self.start + dt.timedelta(days=offset)


# ---------------------------------------------------------------------------
# Trend series
# ---------------------------------------------------------------------------


def _same_day_flow(transactions: Sequence[Any], day: dt.date, direction: str) -> Decimal:
    total = ZERO
    for t in transactions:
        if t.date != day or flow_direction(t) != direction:
            continue
        total += abs(liquid_delta(t))
    return total


def time_series(
    transactions: Iterable[Any],
    metric: Metric | str = Metric.LIQUID,
    window: DateWindow | None = None,
) -> list[SeriesPoint]:
    """Return one point per day of ``window`` for ``metric``.

    - ``LIQUID``: liquid balance as of the end of each day.
    - ``INCOME``: total of that day's positive liquid deltas.
    - ``EXPENSE``: total magnitude of that day's negative liquid deltas.

    ``window`` defaults to the trailing 30 days ending today.
    """

    metric = Metric(metric)
    if window is None:
        window = DateWindow.trailing(dt.date.today())
    txns = list(transactions)

    points: list[SeriesPoint] = []
    for day in window.days():
        if metric is Metric.LIQUID:
            value = aggregate(txns, cutoff=day).liquid
        elif metric is Metric.INCOME:
            value = _same_day_flow(txns, day, "inflow")
        else:
            value = _same_day_flow(txns, day, "outflow")
        points.append(SeriesPoint(day=day, value=value))
    return points


# ---------------------------------------------------------------------------
# Filtering and summaries
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TransactionFilter:
    """Criteria for the history list. Unset criteria match everything.

    Attributes
    ----------
    text:
        Case-insensitive substring matched against the note, counterparty,
        custom label and tags.
    types:
        Keep only these transaction kinds.
    tags:
        Keep transactions carrying at least one of these tags.
    start, end:
        Inclusive date bounds; either may be omitted.
    """

    text: str | None = None
    types: frozenset[TransactionType] = field(default_factory=frozenset)
    tags: frozenset[str] = field(default_factory=frozenset)
    start: dt.date | None = None
    end: dt.date | None = None

    def matches(self, txn: Any) -> bool:
        if self.types and txn.type not in self.types:
            return False
        if self.tags and not self.tags.intersection(txn.tags):
            return False
        if self.start is not None and txn.date < self.start:
            return False
        if self.end is not None and txn.date > self.end:
            return False
        if self.text:
            needle = self.text.strip().casefold()
            if needle and not any(needle in h.casefold() for h in _haystack(txn)):
                return False
        return True


def _haystack(txn: Any) -> list[str]:
    fields = [
        txn.note,
        getattr(txn, "counterparty", None),
        getattr(txn, "custom_label", None),
        *txn.tags,
    ]
    return [f for f in fields if f]


def filter_transactions(transactions: Iterable[Any], criteria: TransactionFilter) -> list[Any]:
    """Return the transactions matching ``criteria`` in input order."""

    return [t for t in transactions if criteria.matches(t)]


def summarize(transactions: Iterable[Any]) -> FlowSummary:
    """Total inflow and outflow of ``transactions`` by liquid-delta sign.

    This is a reporting view for a filtered list; it does not define a new
    balance. Liquid-neutral transactions count toward ``count`` only.
    """

    inflow = ZERO
    outflow = ZERO
    count = 0
    for t in transactions:
        count += 1
        d = liquid_delta(t)
        if d > 0:
            inflow += d
        elif d < 0:
            outflow -= d
    return FlowSummary(inflow=inflow, outflow=outflow, count=count)


def available_tags(transactions: Iterable[Any]) -> list[str]:
    """Distinct tags across ``transactions`` in first-seen order."""

    seen: dict[str, None] = {}
    for t in transactions:
        for tag in t.tags:
            seen.setdefault(tag, None)
    return list(seen)


__all__ = [
    "DEFAULT_TREND_DAYS",
    "DateWindow",
    "Metric",
    "SeriesPoint",
    "TransactionFilter",
    "available_tags",
    "filter_transactions",
    "summarize",
    "time_series",
]
