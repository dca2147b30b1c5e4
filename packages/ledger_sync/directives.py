"""Directive blocks and the structured views built from them.

A :class:`Directive` is a command block kept partially parsed: the keyword,
the rest of its first line, and its indented sub-lines verbatim. Only
``account`` and ``payee`` directives are interpreted, through
:func:`parse_accounts` and :func:`parse_payees`.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from .errors import MalformedAccountNameError
from .location import Location


@dataclass(slots=True)
class Directive:
    """A partially parsed, unvalidated command directive.

    ``anchor`` is the index of the transaction this directive is written
    immediately before. Equality compares only the directive's content
    (``type``, ``argument`` and ``lines``), not where it was found.
    """

    type: str
    argument: str = ""
    lines: list[str] = field(default_factory=list)
    anchor: int = field(default=0, compare=False)
    location: Location = field(default_factory=Location, compare=False)

    def clean_copy(self) -> Directive:
        return Directive(
            type=self.type,
            argument=self.argument,
            lines=list(self.lines),
            anchor=self.anchor,
            location=self.location,
        )

    def to_text(self) -> str:
        out = f"{self.type} {self.argument}\n"
        for line in self.lines:
            out += f"\t{line}\n"
        return out

    def __str__(self) -> str:
        return self.to_text()


@dataclass(slots=True)
class Account:
    """An ``account`` directive. Value-expression sub-lines are not kept."""

    name: str
    note: str = ""
    aliases: list[str] = field(default_factory=list)
    payees: list[str] = field(default_factory=list)
    default: bool = False

    anchor: int = 0
    # Position in LedgerFile.directives, which is sorted by anchor.
    directive_index: int = 0
    location: Location = field(default_factory=Location)


@dataclass(slots=True)
class Payee:
    """A ``payee`` directive: a payee name and the patterns that select it."""

    name: str
    aliases: list[str] = field(default_factory=list)
    uuids: list[str] = field(default_factory=list)

    anchor: int = 0
    directive_index: int = 0
    location: Location = field(default_factory=Location)


def _bad_account_name(name: str) -> bool:
    return "  " in name or ";" in name or "\t" in name


def _sub_value(line: str, keyword: str) -> str:
    return line[len(keyword) :].strip()


def parse_accounts(directives: Sequence[Directive]) -> list[Account]:
    """Interpret every ``account`` directive, in list order.

    Sub-lines are recognised by prefix (``default``, ``alias``, ``payee``,
    ``note``); anything else is ignored. Raises
    :class:`MalformedAccountNameError` for an account or alias name that
    contains a double space, a semicolon or a tab.
    """

    accounts: list[Account] = []
    for d_ix, d in enumerate(directives):
        if d.type != "account":
            continue

        acct = Account(
            name=d.argument,
            anchor=d.anchor,
            directive_index=d_ix,
            location=d.location,
        )
        if _bad_account_name(acct.name):
            raise MalformedAccountNameError(acct.name, acct.location)

        for sub_ix, sub in enumerate(d.lines):
            if sub.startswith("default"):
                acct.default = True
            elif sub.startswith("alias"):
                alias = _sub_value(sub, "alias")
                if _bad_account_name(alias):
                    raise MalformedAccountNameError(
                        alias, acct.location.with_line(acct.location.line + 1 + sub_ix)
                    )
                acct.aliases.append(alias)
            elif sub.startswith("payee"):
                acct.payees.append(_sub_value(sub, "payee"))
            elif sub.startswith("note"):
                acct.note = _sub_value(sub, "note")

        accounts.append(acct)
    return accounts


def parse_payees(directives: Sequence[Directive]) -> list[Payee]:
    """Interpret every ``payee`` directive (``alias`` and ``uuid`` sub-lines)."""

    payees: list[Payee] = []
    for d_ix, d in enumerate(directives):
        if d.type != "payee":
            continue

        payee = Payee(
            name=d.argument,
            anchor=d.anchor,
            directive_index=d_ix,
            location=d.location,
        )
        for sub in d.lines:
            if sub.startswith("alias"):
                payee.aliases.append(_sub_value(sub, "alias"))
            elif sub.startswith("uuid"):
                payee.uuids.append(_sub_value(sub, "uuid"))

        payees.append(payee)
    return payees


__all__ = ["Account", "Directive", "Payee", "parse_accounts", "parse_payees"]
