"""Spreadsheet row mapping and CSV codec for transactions.

The tabular layout is a legacy compatibility surface with fixed, bilingual
column labels in this exact order:

``ID, 日期 (Date), 类型 (Type), 金额 (Amount), 说明 (Description),
债权人 (Lender), 可提现 (Withdrawable), 自定义名称 (Custom Name),
正向影响 (Is Positive)``

Mapping rules:

- ``日期 (Date)``: ISO ``YYYY-MM-DD``.
- ``类型 (Type)``: stored type code (``INCOME``, ``LOAN_IN``, ...).
- ``金额 (Amount)``: two-decimal magnitude.
- ``可提现 (Withdrawable)``: ``Yes`` only for withdrawable investments,
  ``No`` otherwise.
- ``正向影响 (Is Positive)``: ``Yes``/``No`` for custom entries, empty for
  every other type.
- Tags are not part of this layout and are dropped on export.

Import is lenient the way spreadsheet users expect: a missing ID gets a fresh
one, a missing or unreadable date becomes ``today`` and an unreadable amount
becomes zero. Rows with an unknown type code or a negative amount are skipped
with a warning.
"""

from __future__ import annotations

import csv
import datetime as dt
import os
from collections.abc import Iterable, Iterator, Mapping
from decimal import Decimal
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .logging_setup import get_logger
from .models import (
    ZERO,
    Transaction,
    TransactionType,
    generate_id,
    parse_transaction,
    to_money,
)

COL_ID = "ID"
COL_DATE = "日期 (Date)"
COL_TYPE = "类型 (Type)"
COL_AMOUNT = "金额 (Amount)"
COL_NOTE = "说明 (Description)"
COL_COUNTERPARTY = "债权人 (Lender)"
COL_WITHDRAWABLE = "可提现 (Withdrawable)"
COL_CUSTOM_LABEL = "自定义名称 (Custom Name)"
COL_POSITIVE = "正向影响 (Is Positive)"

COLUMNS: tuple[str, ...] = (
    COL_ID,
    COL_DATE,
    COL_TYPE,
    COL_AMOUNT,
    COL_NOTE,
    COL_COUNTERPARTY,
    COL_WITHDRAWABLE,
    COL_CUSTOM_LABEL,
    COL_POSITIVE,
)

YES = "Yes"
NO = "No"

_logger = get_logger(__name__)


def _flag(value: bool) -> str:
    return YES if value else NO


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s if s else None


def to_row(txn: Transaction) -> dict[str, str]:
    """Flatten ``txn`` into a row keyed by :data:`COLUMNS`."""

    is_custom = txn.type == TransactionType.CUSTOM
    return {
        COL_ID: txn.id,
        COL_DATE: txn.date.isoformat(),
        COL_TYPE: str(txn.type),
        COL_AMOUNT: f"{txn.amount:.2f}",
        COL_NOTE: txn.note,
        COL_COUNTERPARTY: getattr(txn, "counterparty", None) or "",
        COL_WITHDRAWABLE: _flag(getattr(txn, "is_withdrawable", False)),
        COL_CUSTOM_LABEL: getattr(txn, "custom_label", None) or "",
        COL_POSITIVE: _flag(txn.is_positive) if is_custom else "",
    }


def _parse_date(raw: str | None, today: dt.date) -> dt.date:
    s = _clean(raw)
    if s is None:
        return today
    try:
        # Tolerate a trailing time component ("2024-01-05 00:00:00").
        return dt.date.fromisoformat(s.split()[0].split("T", 1)[0])
    except ValueError:
        _logger.warning("tabular:bad_date value=%r substituted=%s", s, today.isoformat())
        return today


def _parse_amount(raw: str | None) -> Decimal:
    s = _clean(raw)
    if s is None:
        return ZERO
    try:
        return to_money(s.replace(",", ""))
    except ValueError:
        _logger.warning("tabular:bad_amount value=%r substituted=0", s)
        return ZERO


def from_row(row: Mapping[str, str | None], *, today: dt.date | None = None) -> Transaction:
    """Build a transaction from one tabular row.

    Raises ``ValueError`` when the type code is unknown or the resulting
    record is invalid (e.g. a negative amount).
    """

    today = today or dt.date.today()
    code = (_clean(row.get(COL_TYPE)) or "").upper()
    try:
        type_ = TransactionType(code)
    except ValueError as exc:
        raise ValueError(f"unknown transaction type code: {code!r}") from exc

    record: dict[str, Any] = {
        "id": _clean(row.get(COL_ID)) or generate_id(),
        "date": _parse_date(row.get(COL_DATE), today),
        "type": type_.value,
        "amount": _parse_amount(row.get(COL_AMOUNT)),
        "note": _clean(row.get(COL_NOTE)) or "",
    }
    if type_ in (TransactionType.BORROW_IN, TransactionType.REPAY_LOAN):
        record["counterparty"] = _clean(row.get(COL_COUNTERPARTY))
    elif type_ is TransactionType.INVESTMENT:
        record["is_withdrawable"] = _clean(row.get(COL_WITHDRAWABLE)) == YES
    elif type_ is TransactionType.CUSTOM:
        record["custom_label"] = _clean(row.get(COL_CUSTOM_LABEL))
        record["is_positive"] = _clean(row.get(COL_POSITIVE)) == YES

    try:
        return parse_transaction(record)
    except ValidationError as e:
        raise ValueError(f"invalid row for id={record['id']}: {e}") from e


def from_rows(
    rows: Iterable[Mapping[str, str | None]], *, today: dt.date | None = None
) -> Iterator[Transaction]:
    """Convert rows to transactions, skipping (and logging) unusable ones."""

    for pos, row in enumerate(rows):
        try:
            yield from_row(row, today=today)
        except ValueError as e:
            _logger.warning("tabular:skip_row pos=%d reason=%s", pos, e)


def export_rows(
    transactions: Iterable[Transaction],
    *,
    start: dt.date | None = None,
    end: dt.date | None = None,
) -> list[dict[str, str]]:
    """Rows for export, limited to ``start..end`` (inclusive) when both are set."""

    if start is not None and end is not None:
        transactions = [t for t in transactions if start <= t.date <= end]
    return [to_row(t) for t in transactions]


# ---------------------------------------------------------------------------
# CSV codec
# ---------------------------------------------------------------------------


def write_csv(
    path: str | os.PathLike[str],
    transactions: Iterable[Transaction],
    *,
    start: dt.date | None = None,
    end: dt.date | None = None,
) -> int:
    """Write transactions to ``path`` as CSV; return the number of rows.

    Uses UTF-8 with a byte-order mark so spreadsheet applications detect the
    encoding of the bilingual header.
    """

    rows = export_rows(transactions, start=start, end=end)
    with Path(path).open("w", encoding="utf-8-sig", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(COLUMNS))
        writer.writeheader()
        writer.writerows(rows)
    _logger.info("tabular:exported path=%s rows=%d", os.fspath(path), len(rows))
    return len(rows)


def read_csv(
    path: str | os.PathLike[str], *, today: dt.date | None = None
) -> list[Transaction]:
    """Read transactions from a CSV in the tabular layout.

    Raises ``csv.Error`` when the header is missing or lacks any of the
    identifying columns (ID, date, type, amount).
    """

    with Path(path).open(encoding="utf-8-sig", newline="") as f:
        reader = csv.DictReader(f)
        headers = set(reader.fieldnames or [])
        if not headers:
            raise csv.Error(f"CSV appears to have no header row: {path}")
        required = {COL_ID, COL_DATE, COL_TYPE, COL_AMOUNT}
        missing = sorted(h for h in required if h not in headers)
        if missing:
            raise csv.Error("CSV header mismatch. Missing columns: " + ", ".join(missing))
        out = list(from_rows(reader, today=today))
    _logger.info("tabular:imported path=%s transactions=%d", os.fspath(path), len(out))
    return out


__all__ = [
    "COLUMNS",
    "NO",
    "YES",
    "export_rows",
    "from_row",
    "from_rows",
    "read_csv",
    "to_row",
    "write_csv",
]
