"""Transaction and posting models plus the balance engine.

A :class:`Transaction` is one dated ledger entry holding an ordered list of
:class:`Posting` line items. Postings carry signed fixed-point values in
1/10000 units (see :mod:`ledger_sync.amounts`); a posting whose value was not
written is *null* and has its value inferred so the transaction sums to zero.

Transactions are edited by appending a new revision that shares the same
``ID`` key (see :meth:`Transaction.revise`). The only in-place mutation the
core performs is :meth:`Transaction.canonicalize`, which fills in the value
of the single null posting.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import NamedTuple

from .amounts import format_value
from .errors import BalanceError, MultipleNullError
from .ids import IdSource, new_id
from .location import Location
from .matching import Matcher

# Width the account column is padded to when a posting has an amount.
ACCOUNT_WIDTH = 48


class Status(IntEnum):
    UNDEFINED = 0
    PENDING = 1
    CLEARED = 2

    @property
    def marker(self) -> str:
        """``"*"``, ``"!"`` or ``""``."""

        if self is Status.CLEARED:
            return "*"
        if self is Status.PENDING:
            return "!"
        return ""

    @classmethod
    def from_marker(cls, ch: str) -> Status:
        if ch == "*":
            return cls.CLEARED
        if ch == "!":
            return cls.PENDING
        return cls.UNDEFINED


@dataclass(slots=True)
class Posting:
    """A single account/amount line inside a transaction.

    ``value`` is meaningful only when ``null`` is false, or after the owning
    transaction has been canonicalized.
    """

    account: str
    value: int = 0
    null: bool = False
    status: Status = Status.UNDEFINED
    note: str = ""

    def to_text(self) -> str:
        out = ""
        if self.status is not Status.UNDEFINED:
            out = self.status.marker + " "

        if self.null:
            out += self.account
        else:
            # At least two blanks must separate the account from its amount,
            # otherwise the amount reads back as part of the account name.
            out += self.account.ljust(ACCOUNT_WIDTH) + "  "
            if self.value >= 0:
                out += " "
            out += format_value(self.value, exact=True)

        if self.note:
            out += f"  ; {self.note}"
        return out

    def __str__(self) -> str:
        return self.to_text()


class BalanceResult(NamedTuple):
    """Outcome of :meth:`Transaction.balance`.

    ``accounts`` is ``None`` only when the transaction has more than one null
    posting; otherwise it maps each account to its net contribution (also
    when the transaction does not balance).
    """

    balanced: bool
    accounts: dict[str, int] | None


@dataclass(slots=True)
class Transaction:
    """A single transaction from a ledger file."""

    date: dt.date
    description: str = ""
    clear_date: dt.date | None = None
    status: Status = Status.UNDEFINED
    code: str = ""
    postings: list[Posting] = field(default_factory=list)
    comments: list[str] = field(default_factory=list)
    tags: set[str] = field(default_factory=set)
    kv_pairs: dict[str, str] = field(default_factory=dict)
    location: Location = field(default_factory=Location, compare=False)

    @property
    def line(self) -> int:
        """The line the transaction starts on."""

        return self.location.line

    # -- balance engine ------------------------------------------------------

    def balance(self) -> BalanceResult:
        """Check that the postings sum to zero, allowing one inferred posting.

        With exactly one null posting its account absorbs the negated sum of
        the others and the transaction always balances. A second null posting
        makes the transaction ambiguous: ``BalanceResult(False, None)``.
        """

        total = 0
        null_index: int | None = None
        accounts: dict[str, int] = {}

        for i, p in enumerate(self.postings):
            if p.null:
                if null_index is not None:
                    return BalanceResult(False, None)
                null_index = i
                continue
            total += p.value
            accounts[p.account] = accounts.get(p.account, 0) + p.value

        if null_index is not None:
            account = self.postings[null_index].account
            accounts[account] = accounts.get(account, 0) - total
            return BalanceResult(True, accounts)
        return BalanceResult(total == 0, accounts)

    def canonicalize(self, index: int | None = None) -> None:
        """Fill in the value of the null posting, if any.

        Raises :class:`MultipleNullError` when more than one posting is null
        and :class:`BalanceError` when none is and the values do not sum to
        zero. ``index`` is only used to label the error.
        """

        total = 0
        null_posting: Posting | None = None

        for p in self.postings:
            if p.null:
                if null_posting is not None:
                    raise MultipleNullError(index, self.line)
                null_posting = p
                continue
            total += p.value

        if null_posting is not None:
            null_posting.value = -total
            return
        if total != 0:
            raise BalanceError(index, self.line)

    # -- copies and edits ----------------------------------------------------

    def clean_copy(self) -> Transaction:
        """Return a copy that shares no mutable state with this transaction."""

        return replace(
            self,
            postings=[replace(p) for p in self.postings],
            comments=list(self.comments),
            tags=set(self.tags),
            kv_pairs=dict(self.kv_pairs),
        )

    def revise(self, *, id_source: IdSource = new_id) -> Transaction:
        """Return a clean copy stamped with a fresh revision id (``RID``)."""

        tr = self.clean_copy()
        tr.kv_pairs["RID"] = id_source()
        return tr

    def match(self, account: str, matchers: Iterable[Matcher]) -> bool:
        """Apply the first matcher whose pattern matches the description.

        Only transactions with a posting on ``account`` are considered. On a
        match every other posting moves to the matcher's account (when set)
        and the description becomes the matcher's payee (when set). Returns
        ``True`` if the transaction was modified.
        """

        if not any(p.account == account for p in self.postings):
            return False

        for m in matchers:
            if not m.pattern.search(self.description):
                continue
            if m.account:
                for p in self.postings:
                    if p.account != account:
                        p.account = m.account
            if m.payee:
                self.description = m.payee
            return True
        return False

    # -- text form -----------------------------------------------------------

    def to_text(self) -> str:
        """Render the transaction in ledger syntax (ends with a newline).

        Comment-like content is written before the postings: comments, then
        one line with all tags, then key/value pairs.
        """

        header = _format_date(self.date)
        if self.clear_date is not None:
            header += "=" + _format_date(self.clear_date)

        marker = self.status.marker
        header += f" {marker} " if marker else "   "

        if self.code:
            header += f"({self.code}) "
        header += self.description

        lines = [header]
        lines.extend(f"\t; {c}" for c in self.comments)
        if self.tags:
            lines.append("\t; :" + ":".join(sorted(self.tags)) + ":")
        lines.extend(f"\t; {k}: {v}" for k, v in self.kv_pairs.items())
        lines.extend(f"\t{p.to_text()}" for p in self.postings)
        return "\n".join(lines) + "\n"

    def __str__(self) -> str:
        return self.to_text()


def _format_date(d: dt.date) -> str:
    return f"{d.year:04d}/{d.month:02d}/{d.day:02d}"


# ---------------------------------------------------------------------------
# Collections of transactions
# ---------------------------------------------------------------------------


def sum_transactions(transactions: Iterable[Transaction]) -> dict[str, int]:
    """Balance each transaction and total the per-account results.

    Raises :class:`BalanceError` (or :class:`MultipleNullError`) labelled with
    the index and line of the first transaction that does not balance.
    """

    totals: dict[str, int] = {}
    for i, t in enumerate(transactions):
        result = t.balance()
        if result.accounts is None:
            raise MultipleNullError(i, t.line)
        if not result.balanced:
            raise BalanceError(i, t.line)
        for account, value in result.accounts.items():
            totals[account] = totals.get(account, 0) + value
    return totals


def sort_by_date(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Stable sort on the primary date."""

    return sorted(transactions, key=lambda t: t.date)


@dataclass(slots=True)
class _SumNode:
    value: int = 0
    children: dict[str, _SumNode] = field(default_factory=dict)


def _render_sums(
    node: _SumNode, name: str, indent: str, pad: str, out: list[tuple[str, str]]
) -> None:
    # A node with a single child is folded into its parent's line.
    if len(node.children) == 1:
        ((key, child),) = node.children.items()
        _render_sums(child, f"{name}:{key}" if name else key, indent, pad, out)
        return

    child_indent = indent
    if name:
        out.append((indent + name, format_value(node.value)))
        child_indent = indent + pad

    for key in sorted(node.children):
        _render_sums(node.children[key], key, child_indent, pad, out)


def format_sums(accounts: Mapping[str, int], pad: str = "  ") -> list[tuple[str, str]]:
    """Render account totals as an indented tree of ``(name, value)`` rows.

    Account names are split on ``:``; each segment's row carries the sum of
    everything beneath it, children are sorted by name and indented by one
    ``pad`` per level. A segment with exactly one child shares its row
    (``Assets:Cash`` rather than ``Assets`` with ``Cash`` nested below).
    """

    root = _SumNode()
    for account, value in accounts.items():
        level = root
        for part in account.split(":"):
            level = level.children.setdefault(part, _SumNode())
            level.value += value

    out: list[tuple[str, str]] = []
    _render_sums(root, "", "", pad, out)
    return out


def find_by_key(
    transactions: Sequence[Transaction], key: str, value: str
) -> int | None:
    """Index of the last transaction whose ``key`` equals ``value``."""

    for i in range(len(transactions) - 1, -1, -1):
        if transactions[i].kv_pairs.get(key) == value:
            return i
    return None


__all__ = [
    "ACCOUNT_WIDTH",
    "BalanceResult",
    "Posting",
    "Status",
    "Transaction",
    "find_by_key",
    "format_sums",
    "sort_by_date",
    "sum_transactions",
]
