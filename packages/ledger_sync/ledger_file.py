"""In-memory ledger file: transactions plus anchored directives.

A :class:`LedgerFile` keeps its transactions in file order and its directives
sorted by anchor (the index of the transaction each directive is written
before). :meth:`LedgerFile.format` writes the two lists back out interleaved,
producing text that :func:`ledger_sync.parser.parse_ledger` reads back to an
equal file.
"""

from __future__ import annotations

import io
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TextIO

from .directives import Account, Directive, Payee, parse_accounts, parse_payees
from .errors import ImproperInterleaveError
from .ids import IdSource, new_id
from .matching import Matcher
from .models import Transaction


@dataclass(slots=True)
class LedgerFile:
    """A parsed ledger file.

    Directives are stable-sorted by ``anchor`` on construction, so directives
    sharing an anchor keep their relative order.
    """

    transactions: list[Transaction] = field(default_factory=list)
    directives: list[Directive] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.transactions = list(self.transactions)
        self.directives = sorted(self.directives, key=lambda d: d.anchor)

    # -- serialization -------------------------------------------------------

    def _check_interleave(self) -> None:
        previous = 0
        for d in self.directives:
            if d.anchor < previous:
                raise ImproperInterleaveError(
                    f"Directive {d.type!r} (anchor {d.anchor}) is out of order; "
                    f"anchors must be non-decreasing."
                )
            if d.anchor > len(self.transactions):
                raise ImproperInterleaveError(
                    f"Directive {d.type!r} is anchored before transaction {d.anchor} "
                    f"but the file has only {len(self.transactions)} transactions."
                )
            previous = d.anchor

    def format(self, sink: TextIO) -> None:
        """Write the file to ``sink``, each entry preceded by a blank line.

        Every directive is written immediately before the transaction its
        anchor names; directives anchored at ``len(transactions)`` follow the
        last transaction. Raises :class:`ImproperInterleaveError` (before
        writing anything) when the anchors cannot be honoured.
        """

        self._check_interleave()

        trs, drs = self.transactions, self.directives
        ti = di = 0
        while ti < len(trs) or di < len(drs):
            if di < len(drs) and drs[di].anchor == ti:
                sink.write("\n" + drs[di].to_text())
                di += 1
                continue
            sink.write("\n" + trs[ti].to_text())
            ti += 1

    def to_text(self) -> str:
        buf = io.StringIO()
        self.format(buf)
        return buf.getvalue()

    # -- directive views -----------------------------------------------------

    def accounts(self) -> list[Account]:
        return parse_accounts(self.directives)

    def payees(self) -> list[Payee]:
        return parse_payees(self.directives)

    def parse_matchers(self) -> list[Matcher]:
        """Build matchers from ``account`` and ``payee`` directives.

        Each ``payee`` sub-line of an account is a pattern selecting that
        account. For every ``payee`` directive whose name one of those
        patterns matches, the directive's aliases become additional patterns
        that select the account *and* substitute the payee name. Alias-based
        matchers come first. Invalid patterns raise ``re.error``.
        """

        accounts = self.accounts()
        payees = self.payees()

        matchers: list[Matcher] = []
        for acct in accounts:
            by_payee = [Matcher(pattern=re.compile(p), account=acct.name) for p in acct.payees]

            for payee in payees:
                for m in by_payee:
                    if not m.pattern.search(payee.name):
                        continue
                    for alias in payee.aliases:
                        matchers.append(
                            Matcher(pattern=re.compile(alias), account=acct.name, payee=payee.name)
                        )

            matchers.extend(by_payee)
        return matchers

    # -- transaction helpers -------------------------------------------------

    def matched(
        self,
        account: str,
        matchers: Iterable[Matcher],
        *,
        id_source: IdSource = new_id,
    ) -> list[Transaction]:
        """Return rewritten copies of the transactions a matcher applies to.

        Each returned transaction is a fresh revision (new ``RID``); this file
        is not modified.
        """

        matchers = list(matchers)
        out: list[Transaction] = []
        for t in self.transactions:
            tr = t.clean_copy()
            if tr.match(account, matchers):
                tr.kv_pairs["RID"] = id_source()
                out.append(tr)
        return out

    def clean_copy(self) -> LedgerFile:
        return LedgerFile(
            [t.clean_copy() for t in self.transactions],
            [d.clean_copy() for d in self.directives],
        )

    def strip_history(self) -> None:
        """Keep only the latest revision of each ``ID``, in place.

        The latest revision takes the position where the ``ID`` first
        appeared. Transactions without an ``ID`` are kept. Directive anchors
        are not adjusted, so this is only safe when all directives are at the
        top of the file (anchor 0), as they are after a merge.
        """

        kept: list[Transaction] = []
        positions: dict[str, int] = {}
        for t in self.transactions:
            tid = t.kv_pairs.get("ID", "")
            if not tid:
                kept.append(t)
                continue
            if tid in positions:
                kept[positions[tid]] = t
                continue
            positions[tid] = len(kept)
            kept.append(t)
        self.transactions = kept


__all__ = ["LedgerFile"]
