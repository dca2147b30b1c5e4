"""Public interface for the ``ledger_sync`` package.

Parse, validate, re-format and merge plain-text ledger files. This module
only re-exports the stable import surface; there is no runtime logic here.
"""

from .amounts import format_value, format_value_number, parse_value_number
from .directives import Account, Directive, Payee
from .errors import (
    BadAmountError,
    BadDateError,
    BalanceError,
    ImproperInterleaveError,
    LedgerError,
    MalformedAccountNameError,
    MalformedTagLineError,
    MalformedTransactionError,
    MultipleNullError,
    NoSyncPointError,
    ParseError,
    UnexpectedEndError,
    UnorderableTransactionsError,
)
from .ids import IdSource, new_id
from .ledger_file import LedgerFile
from .location import Location
from .matching import Matcher, load_match_rules
from .models import (
    BalanceResult,
    Posting,
    Status,
    Transaction,
    format_sums,
    sort_by_date,
    sum_transactions,
)
from .parser import parse_ledger
from .reader import CharReader
from .zipper import merge, tail

__all__ = [
    # Parsing / serialization
    "parse_ledger",
    "CharReader",
    "LedgerFile",
    "Location",
    # Models
    "Transaction",
    "Posting",
    "Status",
    "BalanceResult",
    "Directive",
    "Account",
    "Payee",
    "Matcher",
    "IdSource",
    # Operations
    "format_sums",
    "format_value",
    "format_value_number",
    "load_match_rules",
    "merge",
    "new_id",
    "parse_value_number",
    "sort_by_date",
    "sum_transactions",
    "tail",
    # Errors
    "LedgerError",
    "ParseError",
    "BadDateError",
    "BadAmountError",
    "UnexpectedEndError",
    "MalformedTransactionError",
    "MalformedTagLineError",
    "MalformedAccountNameError",
    "BalanceError",
    "MultipleNullError",
    "ImproperInterleaveError",
    "NoSyncPointError",
    "UnorderableTransactionsError",
]
