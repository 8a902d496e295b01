"""Public interface for the ``wealthflow`` package.

This module exposes the balance engine and its models as the stable import
surface. There is no runtime logic here, only symbol re-exports.
"""

from .aggregate import aggregate
from .classify import classify, flow_direction, liquid_delta
from .ledger import days_in_month, month_ledger, transactions_on
from .models import (
    Balances,
    BorrowInTransaction,
    CustomTransaction,
    Delta,
    DepositTransaction,
    ExpenseTransaction,
    FlowSummary,
    IncomeTransaction,
    InvestmentTransaction,
    RepayLoanTransaction,
    Transaction,
    Transactions,
    TransactionType,
    dump_transaction,
    generate_id,
    parse_transaction,
)
from .views import (
    DateWindow,
    Metric,
    SeriesPoint,
    TransactionFilter,
    available_tags,
    filter_transactions,
    summarize,
    time_series,
)

__all__ = [
    # Engine
    "aggregate",
    "classify",
    "flow_direction",
    "liquid_delta",
    "days_in_month",
    "month_ledger",
    "transactions_on",
    # Views
    "DateWindow",
    "Metric",
    "SeriesPoint",
    "TransactionFilter",
    "available_tags",
    "filter_transactions",
    "summarize",
    "time_series",
    # Models / types
    "Balances",
    "Delta",
    "FlowSummary",
    "Transaction",
    "Transactions",
    "TransactionType",
    "IncomeTransaction",
    "ExpenseTransaction",
    "DepositTransaction",
    "BorrowInTransaction",
    "RepayLoanTransaction",
    "InvestmentTransaction",
    "CustomTransaction",
    "dump_transaction",
    "generate_id",
    "parse_transaction",
]
