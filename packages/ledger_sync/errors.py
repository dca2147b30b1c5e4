"""Exception taxonomy for ``ledger_sync``.

Every failure the core can report is a :class:`LedgerError`. Parser errors
carry the :class:`~ledger_sync.location.Location` where they were detected;
balance errors carry the transaction index (``None`` when a single
transaction was checked on its own) and the line the transaction starts on.
"""

from __future__ import annotations

from .location import Location


class LedgerError(Exception):
    """Base class for all ledger parsing, validation and merge failures."""


# ---------------------------------------------------------------------------
# Parser errors
# ---------------------------------------------------------------------------


class ParseError(LedgerError):
    """A syntax error found while reading ledger text."""

    what = "Parse error"

    def __init__(self, location: Location) -> None:
        self.location = location
        super().__init__(f"{self.what} at {location}")

    @property
    def line(self) -> int:
        return self.location.line


class BadDateError(ParseError):
    what = "Malformed transaction date"


class BadAmountError(ParseError):
    what = "Malformed or out of range amount"


class UnexpectedEndError(ParseError):
    what = "Unexpected end of input"


class MalformedTransactionError(ParseError):
    what = "Malformed transaction"


class MalformedTagLineError(ParseError):
    what = "Malformed tags in transaction"


class MalformedAccountNameError(LedgerError):
    """An ``account`` directive (or one of its aliases) has an unusable name."""

    def __init__(self, name: str, location: Location) -> None:
        self.name = name
        self.location = location
        super().__init__(f"Malformed account name ({name}) at {location}")


# ---------------------------------------------------------------------------
# Balance errors
# ---------------------------------------------------------------------------


class BalanceError(LedgerError):
    """A transaction's postings do not sum to zero."""

    problem = "does not balance"

    def __init__(self, index: int | None, line: int) -> None:
        self.index = index
        self.line = line
        if index is None:
            msg = f"Transaction (defined on line {line}) {self.problem}."
        else:
            msg = f"Transaction {index} (defined on line {line}) {self.problem}."
        super().__init__(msg)


class MultipleNullError(BalanceError):
    """More than one posting in a transaction has an inferred value."""

    problem = "has multiple null postings"


# ---------------------------------------------------------------------------
# Serialization and merge errors
# ---------------------------------------------------------------------------


class ImproperInterleaveError(LedgerError):
    """Directive anchors and the transaction list cannot be interleaved."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message or "Ledger file transaction and directive lists do not interleave properly."
        )


class NoSyncPointError(LedgerError):
    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "No sync point found.")


class UnorderableTransactionsError(LedgerError):
    """Two same-date transactions share every tie-break key (or have none)."""

    def __init__(self, line_a: int, line_b: int) -> None:
        self.line_a = line_a
        self.line_b = line_b
        super().__init__(
            "Could not order some transactions "
            f"(defined on lines {line_a} and {line_b}). "
            "Ensure all transactions have ID and RID keys as appropriate."
        )


__all__ = [
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
