"""CLI for the ``wealthflow`` package.

Command handlers (``cmd_*``) take an explicit data file path, load the
collection, call the balance engine and print plain text. They return a
process exit code: ``0`` on success, ``1`` with an ``Error: ...`` line on
stderr otherwise. The Typer application at the bottom wires them to the
console; its root callback loads ``.env`` from the working directory and
configures logging before any command runs.

Data location: ``--data``, else ``WEALTHFLOW_DATA_PATH``, else
``./wealthflow.json``.
"""

from __future__ import annotations

import csv
import sys
from collections import Counter
from collections.abc import Sequence
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any

import typer
from dotenv import load_dotenv
from pydantic import ValidationError

from . import store
from .aggregate import aggregate
from .classify import flow_direction
from .ledger import month_ledger, transactions_on
from .logging_setup import configure_logging
from .models import Transaction, TransactionType, generate_id, parse_transaction
from .views import (
    DEFAULT_TREND_DAYS,
    DateWindow,
    Metric,
    TransactionFilter,
    filter_transactions,
    summarize,
    time_series,
)

_SIGNS: dict[str, str] = {"inflow": "+", "outflow": "-"}


# ---- Small module-level helpers --------------------------------------------


def format_currency(amount: Decimal) -> str:
    """Render ``amount`` as ``¥1,234.56`` (``-¥...`` for negatives)."""

    sign = "-" if amount < 0 else ""
    return f"{sign}¥{abs(amount):,.2f}"


def _load(data_path: Path) -> list[Transaction] | None:
    try:
        return store.load(data_path)
    except store.StoreError as e:
        print(f"Error: {e}", file=sys.stderr)
        return None


def _save(data_path: Path, transactions: Sequence[Transaction]) -> bool:
    try:
        store.save(data_path, transactions)
    except store.StoreError as e:
        print(f"Error: {e}", file=sys.stderr)
        return False
    return True


def _describe(txn: Transaction) -> str:
    """One-line history entry: date, signed amount, kind and details."""

    sign = _SIGNS.get(flow_direction(txn) or "", "")
    parts = [txn.date.isoformat(), f"{sign}{format_currency(txn.amount)}", str(txn.type)]
    if txn.note:
        parts.append(txn.note)
    counterparty = getattr(txn, "counterparty", None)
    if counterparty:
        parts.append(f"from: {counterparty}")
    if txn.type == TransactionType.INVESTMENT:
        parts.append("liquid" if txn.is_withdrawable else "locked")
    label = getattr(txn, "custom_label", None)
    if label:
        parts.append(f"({label})")
    if txn.tags:
        parts.append(" ".join(f"#{t}" for t in txn.tags))
    return f"{txn.id}\t" + "  ".join(parts)


def _as_date(value: datetime | date | None) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    return value


# ---- Command handlers -------------------------------------------------------


def cmd_summary(data_path: Path, *, as_of: date | None = None) -> int:
    """Print liquid funds and net worth, for the whole history or as of a day."""

    txns = _load(data_path)
    if txns is None:
        return 1
    balances = aggregate(txns, cutoff=as_of)
    if as_of is not None:
        print(f"As of {as_of.isoformat()}")
    print(f"Liquid funds: {format_currency(balances.liquid)}")
    print(f"Net worth:    {format_currency(balances.net_worth)}")
    print(f"Transactions: {len(txns)}")
    return 0


def cmd_calendar(data_path: Path, *, year: int, month: int) -> int:
    """Print the end-of-day liquid balance for each day of a month."""

    txns = _load(data_path)
    if txns is None:
        return 1
    try:
        balances = month_ledger(txns, year, month)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    per_day = Counter(t.date for t in txns)
    for day, balance in balances.items():
        n = per_day.get(day, 0)
        marker = f"  ({n} txn{'s' if n != 1 else ''})" if n else ""
        print(f"{day.isoformat()}  {format_currency(balance)}{marker}")
    return 0


def cmd_day(data_path: Path, *, day: date) -> int:
    """Print one calendar day's closing balance and its transactions."""

    txns = _load(data_path)
    if txns is None:
        return 1
    balance = aggregate(txns, cutoff=day).liquid
    print(f"{day.isoformat()}  {format_currency(balance)}")
    for txn in transactions_on(txns, day):
        print(_describe(txn))
    return 0


def cmd_trend(
    data_path: Path,
    *,
    metric: Metric = Metric.LIQUID,
    days: int | None = None,
    start: date | None = None,
    end: date | None = None,
    anchor: date | None = None,
    pan: int = 0,
) -> int:
    """Print a per-day series for ``metric`` over the selected window.

    Window selection: explicit ``start``/``end``; otherwise ``days`` (default
    30) centered on ``anchor`` when given, or trailing up to today. ``pan``
    then shifts the window by that many days.
    """

    txns = _load(data_path)
    if txns is None:
        return 1
    try:
        if start is not None or end is not None:
            if start is None or end is None:
                raise ValueError("--start and --end must be given together")
            window = DateWindow(start=start, end=end)
        elif anchor is not None:
            window = DateWindow.centered(anchor, days or DEFAULT_TREND_DAYS)
        else:
            window = DateWindow.trailing(date.today(), days or DEFAULT_TREND_DAYS)
        if pan:
            window = window.shift(pan)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for point in time_series(txns, metric, window):
        print(f"{point.day.isoformat()}  {format_currency(point.value)}")
    return 0


def cmd_history(data_path: Path, *, criteria: TransactionFilter | None = None) -> int:
    """List transactions newest-first with an inflow/outflow summary."""

    txns = _load(data_path)
    if txns is None:
        return 1
    selected = filter_transactions(txns, criteria or TransactionFilter())
    if not selected:
        print("No records.")
        return 0
    for txn in sorted(selected, key=lambda t: t.date, reverse=True):
        print(_describe(txn))
    summary = summarize(selected)
    print(
        f"{summary.count} records  "
        f"in {format_currency(summary.inflow)}  "
        f"out {format_currency(summary.outflow)}  "
        f"net {format_currency(summary.net)}"
    )
    return 0


def cmd_add(data_path: Path, *, record: dict[str, Any]) -> int:
    """Validate ``record`` and store it, replacing any entry with the same id."""

    record = {k: v for k, v in record.items() if v is not None}
    record.setdefault("id", generate_id())
    try:
        txn = parse_transaction(record)
    except ValidationError as e:
        msgs = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        print(f"Error: invalid transaction: {msgs}", file=sys.stderr)
        return 1

    txns = _load(data_path)
    if txns is None:
        return 1
    if not _save(data_path, store.upsert(txns, txn)):
        return 1
    print(txn.id)
    return 0


def cmd_delete(data_path: Path, *, txn_id: str) -> int:
    txns = _load(data_path)
    if txns is None:
        return 1
    remaining = store.remove(txns, txn_id)
    if len(remaining) == len(txns):
        print(f"Error: no transaction with id {txn_id!r}", file=sys.stderr)
        return 1
    if not _save(data_path, remaining):
        return 1
    print(f"Deleted {txn_id}")
    return 0


def cmd_import_csv(data_path: Path, *, csv_path: Path, replace: bool = False) -> int:
    """Import a CSV in the tabular layout, merging by id unless ``replace``."""

    from .tabular import read_csv

    try:
        imported = read_csv(csv_path)
    except FileNotFoundError:
        print(f"Error: File not found: {csv_path}", file=sys.stderr)
        return 1
    except PermissionError:
        print(f"Error: Permission denied: {csv_path}", file=sys.stderr)
        return 1
    except csv.Error as e:
        print(f"Error: Failed to parse CSV: {e}", file=sys.stderr)
        return 1
    except UnicodeDecodeError as e:
        print(f"Error: CSV is not UTF-8 encoded: {csv_path}: {e.reason}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: Unexpected failure reading '{csv_path}': {e}", file=sys.stderr)
        return 1

    if replace:
        merged = imported
    else:
        existing = _load(data_path)
        if existing is None:
            return 1
        merged = store.merge(existing, imported)
    if not _save(data_path, merged):
        return 1
    print(f"Imported {len(imported)} records ({len(merged)} total).")
    return 0


def cmd_export_csv(
    data_path: Path,
    *,
    csv_path: Path,
    start: date | None = None,
    end: date | None = None,
) -> int:
    from .tabular import write_csv

    txns = _load(data_path)
    if txns is None:
        return 1
    try:
        n = write_csv(csv_path, txns, start=start, end=end)
    except OSError as e:
        print(f"Error: Failed to write '{csv_path}': {e}", file=sys.stderr)
        return 1
    print(f"Exported {n} records to {csv_path}")
    return 0


# ---- Typer-based console interface ------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="Track income, spending, loans and investments; report liquid funds and net worth.",
)

_DATE_FORMATS = ["%Y-%m-%d"]


def _data_path(ctx: typer.Context) -> Path:
    return ctx.obj["data_path"]


def _finish(code: int) -> None:
    if code != 0:
        raise typer.Exit(code)


@app.command("summary")
def summary_cmd(
    ctx: typer.Context,
    as_of: datetime | None = typer.Option(
        None, "--as-of", formats=_DATE_FORMATS, help="Snapshot as of this day (inclusive)."
    ),
) -> None:
    """Show liquid funds and net worth."""

    _finish(cmd_summary(_data_path(ctx), as_of=_as_date(as_of)))


@app.command("calendar")
def calendar_cmd(
    ctx: typer.Context,
    year: int = typer.Argument(..., help="Calendar year, e.g. 2024."),
    month: int = typer.Argument(..., help="Month number 1-12."),
) -> None:
    """Show the closing liquid balance for every day of a month."""

    _finish(cmd_calendar(_data_path(ctx), year=year, month=month))


@app.command("day")
def day_cmd(
    ctx: typer.Context,
    day: datetime = typer.Argument(..., formats=_DATE_FORMATS, help="Day as YYYY-MM-DD."),
) -> None:
    """Show one day's closing balance and the transactions dated that day."""

    _finish(cmd_day(_data_path(ctx), day=day.date()))


@app.command("trend")
def trend_cmd(
    ctx: typer.Context,
    metric: Metric = typer.Option(Metric.LIQUID, help="Value plotted per day."),
    days: int | None = typer.Option(None, min=1, help="Window length in days (default 30)."),
    start: datetime | None = typer.Option(None, formats=_DATE_FORMATS, help="Window start."),
    end: datetime | None = typer.Option(None, formats=_DATE_FORMATS, help="Window end."),
    anchor: datetime | None = typer.Option(
        None, formats=_DATE_FORMATS, help="Center the window on this day."
    ),
    pan: int = typer.Option(0, help="Shift the window by N days (negative = earlier)."),
) -> None:
    """Show a per-day trend series."""

    _finish(
        cmd_trend(
            _data_path(ctx),
            metric=metric,
            days=days,
            start=_as_date(start),
            end=_as_date(end),
            anchor=_as_date(anchor),
            pan=pan,
        )
    )


@app.command("history")
def history_cmd(
    ctx: typer.Context,
    text: str | None = typer.Option(None, help="Match note, lender, label or tag."),
    type_: list[TransactionType] | None = typer.Option(
        None, "--type", case_sensitive=False, help="Only these kinds (repeatable)."
    ),
    tag: list[str] | None = typer.Option(None, help="Only entries with any of these tags."),
    start: datetime | None = typer.Option(None, formats=_DATE_FORMATS, help="From this day."),
    end: datetime | None = typer.Option(None, formats=_DATE_FORMATS, help="Up to this day."),
) -> None:
    """List transactions with an inflow/outflow summary."""

    criteria = TransactionFilter(
        text=text,
        types=frozenset(type_ or ()),
        tags=frozenset(tag or ()),
        start=_as_date(start),
        end=_as_date(end),
    )
    _finish(cmd_history(_data_path(ctx), criteria=criteria))


@app.command("add")
def add_cmd(
    ctx: typer.Context,
    type_: TransactionType = typer.Argument(..., case_sensitive=False, help="Transaction kind."),
    amount: str = typer.Argument(..., help="Non-negative amount, e.g. 12.50."),
    on: datetime | None = typer.Option(
        None, "--date", formats=_DATE_FORMATS, help="Transaction day (default today)."
    ),
    note: str | None = typer.Option(None, help="Free-text note."),
    tag: list[str] | None = typer.Option(None, help="Tag (repeatable)."),
    lender: str | None = typer.Option(None, help="Counterparty for LOAN_IN/LOAN_REPAY."),
    withdrawable: bool = typer.Option(
        False, "--withdrawable/--locked", help="INVESTMENT: can the money still be spent?"
    ),
    label: str | None = typer.Option(None, help="CUSTOM: display name."),
    positive: bool = typer.Option(
        False, "--positive/--negative", help="CUSTOM: adds to (or subtracts from) wealth."
    ),
    txn_id: str | None = typer.Option(None, "--id", help="Replace the entry with this id."),
) -> None:
    """Record a transaction (or replace one with --id)."""

    record: dict[str, Any] = {
        "id": txn_id,
        "type": type_.value,
        "amount": amount,
        "date": _as_date(on) or date.today(),
        "note": note,
        "tags": tag or [],
    }
    if type_ in (TransactionType.BORROW_IN, TransactionType.REPAY_LOAN):
        record["counterparty"] = lender
    elif type_ is TransactionType.INVESTMENT:
        record["is_withdrawable"] = withdrawable
    elif type_ is TransactionType.CUSTOM:
        record["custom_label"] = label
        record["is_positive"] = positive
    _finish(cmd_add(_data_path(ctx), record=record))


@app.command("delete")
def delete_cmd(
    ctx: typer.Context,
    txn_id: str = typer.Argument(..., help="Id of the transaction to delete."),
) -> None:
    """Delete a transaction by id."""

    _finish(cmd_delete(_data_path(ctx), txn_id=txn_id))


@app.command("import-csv")
def import_csv_cmd(
    ctx: typer.Context,
    csv_path: Path = typer.Argument(..., dir_okay=False, help="CSV in the export layout."),
    replace: bool = typer.Option(
        False, help="Replace all existing data instead of merging by id."
    ),
) -> None:
    """Import transactions from a CSV export."""

    _finish(cmd_import_csv(_data_path(ctx), csv_path=csv_path, replace=replace))


@app.command("export-csv")
def export_csv_cmd(
    ctx: typer.Context,
    csv_path: Path = typer.Argument(..., dir_okay=False, help="Destination CSV file."),
    start: datetime | None = typer.Option(None, formats=_DATE_FORMATS, help="Range start."),
    end: datetime | None = typer.Option(None, formats=_DATE_FORMATS, help="Range end."),
) -> None:
    """Export transactions (optionally a date range) to CSV."""

    _finish(
        cmd_export_csv(
            _data_path(ctx), csv_path=csv_path, start=_as_date(start), end=_as_date(end)
        )
    )


@app.callback(invoke_without_command=True)
def _root(
    ctx: typer.Context,
    data: Path | None = typer.Option(
        None, "--data", dir_okay=False, help="Data file (falls back to WEALTHFLOW_DATA_PATH)."
    ),
    log_level: str | None = typer.Option(
        None, help="Log level (falls back to WEALTHFLOW_LOG_LEVEL)."
    ),
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding
    already-set variables), configures logging and resolves the data file.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(log_level)

    ctx.obj = {"data_path": store.resolve_data_path(data)}

    if ctx.invoked_subcommand is None:
        typer.echo("No subcommand provided. Use --help to see available commands.")
        raise typer.Exit(1)


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
