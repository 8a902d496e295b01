"""JSON document store for the flat transaction collection.

The application shell owns one ordered list of transactions. This module
loads and saves it as a single JSON document and provides the pure list edits
the shell applies (replace-by-id, removal, merge on import). The balance
engine never touches the store.

Document layout::

    {"version": 1, "transactions": [<record>, ...]}

A bare JSON list of records is also accepted on read. Records use the
serialized form defined in :mod:`wealthflow.models`.

Location: explicit path, else ``WEALTHFLOW_DATA_PATH``, else
``./wealthflow.json``. Writes go to ``<path>.tmp`` first and then
``os.replace`` into place.
"""

from __future__ import annotations

import contextlib
import json
import os
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .logging_setup import get_logger
from .models import Transaction, dump_transaction, parse_transaction

STORE_VERSION: int = 1
DEFAULT_FILENAME = "wealthflow.json"

_logger = get_logger(__name__)


class StoreError(RuntimeError):
    """The data file exists but cannot be read or written as a collection."""


def resolve_data_path(override: str | os.PathLike[str] | None = None) -> Path:
    """Return the data file location.

    Order: ``override``, then ``WEALTHFLOW_DATA_PATH``, then
    ``./wealthflow.json`` in the current working directory.
    """

    if override is not None and os.fspath(override).strip():
        return Path(override).expanduser()
    env_val = os.getenv("WEALTHFLOW_DATA_PATH")
    if env_val and env_val.strip():
        return Path(env_val.strip()).expanduser()
    return Path.cwd() / DEFAULT_FILENAME


def _records_from_document(doc: Any, path: Path) -> list[Any]:
    if isinstance(doc, list):
        return doc
    if isinstance(doc, dict) and isinstance(doc.get("transactions"), list):
        version = doc.get("version")
        if version != STORE_VERSION:
            _logger.warning(
                "store:version_mismatch path=%s found=%s expected=%d",
                os.fspath(path),
                version,
                STORE_VERSION,
            )
        return doc["transactions"]
    raise StoreError(f"Unrecognized data file layout: {path}")


def load(path: str | os.PathLike[str]) -> list[Transaction]:
    """Read the collection stored at ``path``.

    A missing file is an empty collection. Individual records that fail
    validation (unknown type code, negative or non-numeric amount, bad date)
    are skipped with a warning so one bad row never hides the rest.
    """

    p = Path(path)
    if not p.exists():
        _logger.info("store:load_missing path=%s", os.fspath(p))
        return []

    try:
        doc = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise StoreError(f"Failed to read data file {p}: {e}") from e
    except json.JSONDecodeError as e:
        raise StoreError(f"Data file is not valid JSON: {p}: {e}") from e

    out: list[Transaction] = []
    skipped = 0
    for pos, record in enumerate(_records_from_document(doc, p)):
        if not isinstance(record, dict):
            skipped += 1
            _logger.warning("store:skip_record pos=%d reason=not_an_object", pos)
            continue
        try:
            out.append(parse_transaction(record))
        except ValidationError as e:
            skipped += 1
            _logger.warning(
                "store:skip_record pos=%d id=%s errors=%d",
                pos,
                record.get("id"),
                e.error_count(),
            )

    _logger.info(
        "store:loaded path=%s transactions=%d skipped=%d", os.fspath(p), len(out), skipped
    )
    return out


def save(path: str | os.PathLike[str], transactions: Iterable[Transaction]) -> None:
    """Write ``transactions`` to ``path`` atomically, preserving order."""

    p = Path(path)
    records = [dump_transaction(t) for t in transactions]
    payload = {"version": STORE_VERSION, "transactions": records}
    tmp = p.with_name(p.name + ".tmp")
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp, p)
    except OSError as e:
        with contextlib.suppress(FileNotFoundError):
            tmp.unlink()
        raise StoreError(f"Failed to write data file {p}: {e}") from e
    _logger.info("store:saved path=%s transactions=%d", os.fspath(p), len(records))


# ---------------------------------------------------------------------------
# Collection edits (pure; return new lists)
# ---------------------------------------------------------------------------


def upsert(transactions: Sequence[Transaction], txn: Transaction) -> list[Transaction]:
    """Replace the entry with ``txn.id`` in place, or append ``txn``."""

    out = list(transactions)
    for i, existing in enumerate(out):
        if existing.id == txn.id:
            out[i] = txn
            return out
    out.append(txn)
    return out


def remove(transactions: Sequence[Transaction], txn_id: str) -> list[Transaction]:
    """Drop the entry with ``txn_id``. Unknown ids leave the list unchanged."""

    return [t for t in transactions if t.id != txn_id]


def merge(
    existing: Sequence[Transaction], imported: Iterable[Transaction]
) -> list[Transaction]:
    """Merge ``imported`` into ``existing`` keeping ids unique.

    Imported entries whose id is already present replace that entry at its
    position; the rest are appended in import order.
    """

    out = list(existing)
    index = {t.id: i for i, t in enumerate(out)}
    for txn in imported:
        pos = index.get(txn.id)
        if pos is None:
            index[txn.id] = len(out)
            out.append(txn)
        else:
            out[pos] = txn
    return out


__all__ = [
    "DEFAULT_FILENAME",
    "STORE_VERSION",
    "StoreError",
    "load",
    "merge",
    "remove",
    "resolve_data_path",
    "save",
    "upsert",
]
