"""Data models and type aliases for ``wealthflow``.

A transaction is an immutable, dated record of one cash-affecting event. The
closed set of transaction kinds is modelled as a discriminated union keyed on
``type``: each variant carries only the optional fields that mean something
for that kind (a lender for loans, a withdrawable flag for investments, a
label and sign for custom entries).

Amounts are ``Decimal`` values quantized to cents and never negative. The
direction of an amount's effect on balances is derived from the variant and
its flags (see :mod:`wealthflow.classify`), never from a stored sign.

Serialized form
---------------
Records serialize with camelCase keys (``isWithdrawable``, ``customLabel``,
``isPositive``), ISO ``YYYY-MM-DD`` dates and two-decimal amount strings.
Optional fields that are unset and empty ``note``/``tags`` are omitted. The
legacy keys ``description``, ``lender`` and ``customName`` are accepted on
read.
"""

from __future__ import annotations

import datetime as dt
import random
import string
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import StrEnum
from typing import Annotated, Any, Literal, NamedTuple, TypeAlias

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
)
from pydantic.alias_generators import to_camel

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(raw: Any) -> Decimal:
    """Convert ``raw`` to a cent-quantized ``Decimal``.

    Floats go through ``str()`` so ``0.1`` becomes ``Decimal("0.10")`` rather
    than its binary expansion. Raises ``ValueError`` for anything that is not
    a finite number or has too many digits to hold at cent precision.
    """

    if isinstance(raw, bool):
        raise ValueError(f"invalid amount: {raw!r}")
    if isinstance(raw, Decimal):
        d = raw
    else:
        try:
            d = Decimal(str(raw).strip())
        except (InvalidOperation, ValueError) as exc:
            raise ValueError(f"invalid amount: {raw!r}") from exc
    if not d.is_finite():
        raise ValueError(f"invalid amount: {raw!r}")
    try:
        return d.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        # More digits than the decimal context can hold at cent precision.
        raise ValueError(f"amount out of range: {raw!r}") from exc


# ---------------------------------------------------------------------------
# Transaction kinds
# ---------------------------------------------------------------------------


class TransactionType(StrEnum):
    """Closed set of transaction kinds, valued by their stored codes."""

    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    DEPOSIT = "DEPOSIT"
    BORROW_IN = "LOAN_IN"
    REPAY_LOAN = "LOAN_REPAY"
    INVESTMENT = "INVESTMENT"
    CUSTOM = "CUSTOM"


class _TransactionBase(BaseModel):
    """Fields shared by every transaction variant."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(min_length=1)
    date: dt.date
    amount: Decimal
    note: str = Field(default="", validation_alias=AliasChoices("note", "description"))
    tags: tuple[str, ...] = ()

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_to_money(cls, v: Any) -> Decimal:
        d = to_money(v)
        if d < 0:
            raise ValueError("amount must be non-negative; direction comes from the type")
        return d

    @field_validator("note", mode="before")
    @classmethod
    def _note_none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, v: Any) -> tuple[str, ...]:
        # Order-preserving de-duplication of trimmed, non-empty labels.
        if v is None:
            return ()
        if isinstance(v, str):
            v = [v]
        seen: dict[str, None] = {}
        for item in v:
            if not isinstance(item, str):
                continue
            t = item.strip()
            if t:
                seen.setdefault(t, None)
        return tuple(seen)


class IncomeTransaction(_TransactionBase):
    type: Literal["INCOME"] = "INCOME"


class ExpenseTransaction(_TransactionBase):
    type: Literal["EXPENSE"] = "EXPENSE"


class DepositTransaction(_TransactionBase):
    """Money already on hand when tracking starts; behaves like income."""

    type: Literal["DEPOSIT"] = "DEPOSIT"


class BorrowInTransaction(_TransactionBase):
    type: Literal["LOAN_IN"] = "LOAN_IN"
    counterparty: str | None = Field(
        default=None, validation_alias=AliasChoices("counterparty", "lender")
    )


class RepayLoanTransaction(_TransactionBase):
    type: Literal["LOAN_REPAY"] = "LOAN_REPAY"
    counterparty: str | None = Field(
        default=None, validation_alias=AliasChoices("counterparty", "lender")
    )


class InvestmentTransaction(_TransactionBase):
    """Cash moved into an investment.

    ``is_withdrawable`` marks whether the invested money can still be spent
    on demand. Records without the flag are treated as locked.
    """

    type: Literal["INVESTMENT"] = "INVESTMENT"
    is_withdrawable: bool = Field(
        default=False, validation_alias=AliasChoices("is_withdrawable", "isWithdrawable")
    )

    @field_validator("is_withdrawable", mode="before")
    @classmethod
    def _none_is_locked(cls, v: Any) -> Any:
        return False if v is None else v


class CustomTransaction(_TransactionBase):
    """User-labelled entry whose sign is chosen explicitly via ``is_positive``."""

    type: Literal["CUSTOM"] = "CUSTOM"
    custom_label: str | None = Field(
        default=None,
        validation_alias=AliasChoices("custom_label", "customLabel", "customName"),
    )
    is_positive: bool = Field(
        default=False, validation_alias=AliasChoices("is_positive", "isPositive")
    )

    @field_validator("is_positive", mode="before")
    @classmethod
    def _none_is_negative(cls, v: Any) -> Any:
        return False if v is None else v


Transaction = Annotated[
    IncomeTransaction
    | ExpenseTransaction
    | DepositTransaction
    | BorrowInTransaction
    | RepayLoanTransaction
    | InvestmentTransaction
    | CustomTransaction,
    Field(discriminator="type"),
]
"""Any one transaction variant, discriminated by ``type``."""

Transactions: TypeAlias = Iterable[Transaction]
"""A collection of transactions in caller order. The engine never mutates it."""

_TRANSACTION_ADAPTER: TypeAdapter[Transaction] = TypeAdapter(Transaction)


def parse_transaction(record: Mapping[str, Any]) -> Transaction:
    """Validate one serialized record into its transaction variant.

    Raises ``pydantic.ValidationError`` for unknown ``type`` codes, missing
    required fields or a negative amount.
    """

    return _TRANSACTION_ADAPTER.validate_python(dict(record))


def dump_transaction(txn: Transaction) -> dict[str, Any]:
    """Return the serialized record for ``txn`` (JSON-compatible values)."""

    data = txn.model_dump(mode="json", by_alias=True, exclude_none=True)
    data["amount"] = f"{txn.amount:.2f}"
    if not txn.note:
        data.pop("note", None)
    if not txn.tags:
        data.pop("tags", None)
    return data


_ID_ALPHABET = string.digits + string.ascii_lowercase


def _base36(n: int) -> str:
    out = []
    while True:
        n, r = divmod(n, 36)
        out.append(_ID_ALPHABET[r])
        if n == 0:
            break
    return "".join(reversed(out))


def generate_id() -> str:
    """Return a fresh opaque identifier (millisecond clock + random suffix)."""

    suffix = "".join(random.choices(_ID_ALPHABET, k=10))
    return _base36(int(time.time() * 1000)) + suffix


# ---------------------------------------------------------------------------
# Engine results
# ---------------------------------------------------------------------------


class Delta(NamedTuple):
    """Signed change one transaction applies to the two running figures."""

    liquid: Decimal
    net_worth: Decimal


@dataclass(frozen=True, slots=True)
class Balances:
    """Point-in-time totals: spendable funds and net worth."""

    liquid: Decimal
    net_worth: Decimal

    @classmethod
    def zero(cls) -> Balances:
        return cls(liquid=ZERO, net_worth=ZERO)


@dataclass(frozen=True, slots=True)
class FlowSummary:
    """Reporting view of a transaction subset split by cash direction.

    ``inflow`` and ``outflow`` are both non-negative magnitudes; ``count`` is
    the number of transactions considered, including liquid-neutral ones.
    """

    inflow: Decimal
    outflow: Decimal
    count: int

    @property
    def net(self) -> Decimal:
        return self.inflow - self.outflow


__all__ = [
    "CENT",
    "ZERO",
    "Balances",
    "BorrowInTransaction",
    "CustomTransaction",
    "Delta",
    "DepositTransaction",
    "ExpenseTransaction",
    "FlowSummary",
    "IncomeTransaction",
    "InvestmentTransaction",
    "RepayLoanTransaction",
    "Transaction",
    "TransactionType",
    "Transactions",
    "dump_transaction",
    "generate_id",
    "parse_transaction",
    "to_money",
]
