"""Description matchers used to rewrite imported transactions.

A :class:`Matcher` pairs a compiled pattern with a target account and/or
payee. Matchers come either from a ledger file's ``account``/``payee``
directives (see :meth:`ledger_sync.ledger_file.LedgerFile.parse_matchers`)
or from a small CSV file of rules loaded by :func:`load_match_rules`.

Match file format
-----------------
Three columns per row, no header: ``pattern,account,payee``. Lines starting
with ``#`` are comments. Either ``account`` or ``payee`` may be empty, but
not both.
"""

from __future__ import annotations

import csv
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from os import PathLike
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator


@dataclass(frozen=True, slots=True)
class Matcher:
    pattern: re.Pattern[str]
    account: str = ""
    payee: str = ""


class MatchRule(BaseModel):
    """One validated row of a match file."""

    model_config = ConfigDict(strict=True, extra="forbid", str_strip_whitespace=True)

    pattern: str
    account: str = ""
    payee: str = ""

    @field_validator("pattern")
    @classmethod
    def _pattern_compiles(cls, v: str) -> str:
        if not v:
            raise ValueError("pattern must be non-empty")
        try:
            re.compile(v)
        except re.error as exc:
            raise ValueError(f"invalid regular expression {v!r}: {exc}") from exc
        return v

    @model_validator(mode="after")
    def _has_target(self) -> MatchRule:
        if not self.account and not self.payee:
            raise ValueError("a match rule needs an account, a payee, or both")
        return self

    def to_matcher(self) -> Matcher:
        return Matcher(pattern=re.compile(self.pattern), account=self.account, payee=self.payee)


def _rows(lines: Iterable[str]) -> Iterator[tuple[int, list[str]]]:
    reader = csv.reader(lines)
    for row in reader:
        if not row or (row[0].lstrip().startswith("#")):
            continue
        yield reader.line_num, row


def parse_match_rules(lines: Iterable[str]) -> list[Matcher]:
    """Parse match-file rows into matchers, in file order.

    Raises ``ValueError`` naming the offending line when a row does not have
    exactly three fields or fails validation.
    """

    matchers: list[Matcher] = []
    for line_num, row in _rows(lines):
        if len(row) != 3:
            raise ValueError(f"line {line_num}: expected 3 fields, found {len(row)}")
        try:
            rule = MatchRule(pattern=row[0], account=row[1], payee=row[2])
        except ValidationError as exc:
            raise ValueError(f"line {line_num}: {exc}") from exc
        matchers.append(rule.to_matcher())
    return matchers


def load_match_rules(path: str | PathLike[str]) -> list[Matcher]:
    """Read a match file from ``path`` (see module docstring)."""

    with Path(path).open(encoding="utf-8", newline="") as f:
        return parse_match_rules(f)


__all__ = ["Matcher", "MatchRule", "load_match_rules", "parse_match_rules"]
