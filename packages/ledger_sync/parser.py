"""Recursive-descent parser for ledger text.

The parser consumes a :class:`~ledger_sync.reader.CharReader` directly; there
is no separate tokenizer. At the top level it skips blank lines and ``;``
comment lines, reads a :class:`~ledger_sync.directives.Directive` for lines
starting with a keyword, and otherwise expects a transaction::

    2012/03/10=2012/03/12 * (code) Description
        ; Free comment
        ; :tag1:tag2:
        ; Key: Value
        Expenses:Food          $20.00
        Assets:Cash                       ; inferred, with a note

Parsing stops at the first error; nothing partial is returned. End of input
is accepted wherever a line break is.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import IntEnum
from typing import TextIO

from .amounts import read_amount
from .directives import Directive
from .errors import (
    BadDateError,
    MalformedTagLineError,
    MalformedTransactionError,
    UnexpectedEndError,
)
from .ledger_file import LedgerFile
from .logging_setup import get_logger
from .models import Posting, Status, Transaction
from .reader import DIGITS, WHITESPACE, CharReader

logger = get_logger(__name__)

_DATE_SEPARATORS = "/-."
_STATUS_MARKERS = "*!"


def parse_ledger(source: str | TextIO, *, line: int = 1) -> LedgerFile:
    """Parse ledger text (a string or a text stream) into a :class:`LedgerFile`.

    ``line`` is the line number assigned to the first line of input.
    """

    return parse_ledger_raw(CharReader(source, line))


def parse_ledger_raw(cr: CharReader) -> LedgerFile:
    transactions: list[Transaction] = []
    directives: list[Directive] = []

    while not cr.eof:
        indented = cr.match(WHITESPACE)
        cr.eat(WHITESPACE)
        if cr.eof:
            break
        if cr.c == "\n":
            cr.advance()
            continue

        # Comments that are not attached to a transaction.
        if cr.c == ";":
            cr.eat_until("\n")
            cr.advance()
            continue

        # An indented line here has no transaction to belong to.
        if indented:
            raise MalformedTransactionError(cr.loc)

        if cr.match_alpha():
            directives.append(_parse_directive(cr, anchor=len(transactions)))
            continue

        transactions.append(_parse_transaction(cr))

    logger.debug(
        "parsed %d transactions and %d directives", len(transactions), len(directives)
    )
    return LedgerFile(transactions, directives)


# ---------------------------------------------------------------------------
# Small helpers
# ---------------------------------------------------------------------------


def _trim(buf: list[str]) -> str:
    return "".join(buf).strip(WHITESPACE)


def _read_rest_of_line(cr: CharReader) -> str:
    """Read up to the end of the line, consume the line break, return it trimmed."""

    buf = cr.read_until("\n", [])
    cr.advance()
    return _trim(buf)


def _read_date_part(cr: CharReader, digits: int, exact: bool) -> int:
    start = cr.loc
    buf: list[str] = []
    hit_limit = cr.read_match_limit(DIGITS, buf, digits)
    if not buf or (exact and not hit_limit):
        if cr.eof:
            raise UnexpectedEndError(cr.loc)
        raise BadDateError(start)
    if cr.eof:
        raise UnexpectedEndError(cr.loc)
    return int("".join(buf))


def parse_date(cr: CharReader) -> dt.date:
    """Read a ``YYYY/MM/DD`` date; month and day may be one or two digits.

    Any of ``/``, ``-`` or ``.`` separates the parts.
    """

    start = cr.loc
    year = _read_date_part(cr, 4, exact=True)
    if not cr.match(_DATE_SEPARATORS):
        raise BadDateError(cr.loc)
    cr.advance()

    month = _read_date_part(cr, 2, exact=False)
    if not cr.match(_DATE_SEPARATORS):
        raise BadDateError(cr.loc)
    cr.advance()

    day = _read_date_part(cr, 2, exact=False)
    if cr.match_numeric():
        raise BadDateError(cr.loc)

    try:
        return dt.date(year, month, day)
    except ValueError:
        raise BadDateError(start) from None


# ---------------------------------------------------------------------------
# Directives
# ---------------------------------------------------------------------------


def _parse_directive(cr: CharReader, *, anchor: int) -> Directive:
    location = cr.loc
    keyword = "".join(cr.read_until(" \t\n", []))
    cr.eat(WHITESPACE)
    argument = _read_rest_of_line(cr)

    lines: list[str] = []
    while cr.match(WHITESPACE):
        cr.eat(WHITESPACE)
        if cr.eof:
            break
        if cr.c == "\n":
            cr.advance()
            break
        lines.append(_read_rest_of_line(cr))

    return Directive(
        type=keyword, argument=argument, lines=lines, anchor=anchor, location=location
    )


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


def _parse_transaction(cr: CharReader) -> Transaction:
    location = cr.loc

    date = parse_date(cr)
    clear_date = None
    if cr.match("="):
        cr.advance()
        clear_date = parse_date(cr)

    cr.eat(WHITESPACE)
    if cr.eof:
        raise UnexpectedEndError(cr.loc)

    status = Status.UNDEFINED
    if cr.match(_STATUS_MARKERS):
        status = Status.from_marker(cr.c)
        cr.advance()
        cr.eat(WHITESPACE)
        if cr.eof:
            raise UnexpectedEndError(cr.loc)

    code = ""
    if cr.match("("):
        cr.advance()
        cr.eat(WHITESPACE)
        buf = cr.read_until(")\n", [])
        if cr.eof:
            raise UnexpectedEndError(cr.loc)
        if cr.c == "\n":
            raise MalformedTransactionError(cr.loc)
        code = _trim(buf)
        cr.advance()
        cr.eat(WHITESPACE)

    tr = Transaction(
        date=date,
        clear_date=clear_date,
        status=status,
        code=code,
        description=_read_rest_of_line(cr),
        location=location,
    )

    # Postings and attached comments, one indented line each.
    while cr.match(WHITESPACE):
        cr.eat(WHITESPACE)
        if cr.eof:
            break
        if cr.c == "\n":
            # A blank indented line ends the transaction.
            cr.advance()
            break
        if cr.c == ";":
            cr.advance()
            _parse_attached_comment(cr, tr)
            continue
        tr.postings.append(_parse_posting(cr))

    return tr


def _parse_posting(cr: CharReader) -> Posting:
    status = Status.UNDEFINED
    if cr.match(_STATUS_MARKERS):
        status = Status.from_marker(cr.c)
        cr.advance()
        cr.eat(WHITESPACE)

    # Account names may contain single spaces; a tab, a line break or two
    # spaces in a row end the name.
    buf: list[str] = []
    while not cr.eof:
        if cr.c in "\t\n" or (cr.c == " " and cr.match_next(" ")):
            break
        buf.append(cr.c)
        cr.advance()
    account = "".join(buf).rstrip(" ")
    if not account:
        raise MalformedTransactionError(cr.loc)

    cr.eat(WHITESPACE)
    value = read_amount(cr)
    cr.eat(WHITESPACE)

    note = ""
    if cr.match(";"):
        cr.advance()
        note = _read_rest_of_line(cr)
    elif not cr.eof:
        if cr.c != "\n":
            raise MalformedTransactionError(cr.loc)
        cr.advance()

    return Posting(
        account=account,
        value=value if value is not None else 0,
        null=value is None,
        status=status,
        note=note,
    )


# ---------------------------------------------------------------------------
# Attached comment lines
# ---------------------------------------------------------------------------


class _CommentState(IntEnum):
    START = 0
    TAGS = 1  # line began with ':'
    MAYBE_KEY = 2  # no whitespace or ':' seen yet
    VALUE = 3  # found "key: "
    COMMENT = 4  # plain text


@dataclass(slots=True)
class _CommentScan:
    state: _CommentState = _CommentState.START
    buf: list[str] = field(default_factory=list)
    key: str = ""
    tags: list[str] = field(default_factory=list)


def _on_start(cr: CharReader, scan: _CommentScan) -> None:
    if cr.c == ":":
        cr.advance()
        scan.state = _CommentState.TAGS
        return
    scan.buf.append(cr.c)
    cr.advance()
    scan.state = _CommentState.MAYBE_KEY


def _on_tags(cr: CharReader, scan: _CommentScan) -> None:
    if cr.c == ":":
        tag = _trim(scan.buf)
        if tag:
            scan.tags.append(tag)
        scan.buf.clear()
        cr.advance()
        cr.eat(WHITESPACE)
        return
    scan.buf.append(cr.c)
    cr.advance()


def _on_maybe_key(cr: CharReader, scan: _CommentScan) -> None:
    if cr.c == ":":
        if cr.match_next(WHITESPACE):
            scan.key = "".join(scan.buf)
            scan.buf.clear()
            cr.advance()
            cr.eat(WHITESPACE)
            scan.state = _CommentState.VALUE
            return
        # A colon without a following blank is not a separator.
        scan.state = _CommentState.COMMENT
    elif cr.match(WHITESPACE):
        # Keys cannot contain whitespace.
        scan.state = _CommentState.COMMENT
    scan.buf.append(cr.c)
    cr.advance()


def _on_text(cr: CharReader, scan: _CommentScan) -> None:
    scan.buf.append(cr.c)
    cr.advance()


_TRANSITIONS = {
    _CommentState.START: _on_start,
    _CommentState.TAGS: _on_tags,
    _CommentState.MAYBE_KEY: _on_maybe_key,
    _CommentState.VALUE: _on_text,
    _CommentState.COMMENT: _on_text,
}


def _parse_attached_comment(cr: CharReader, tr: Transaction) -> None:
    """Classify one ``;`` line as tags, a key/value pair, or a free comment."""

    cr.eat(WHITESPACE)

    scan = _CommentScan()
    while not cr.eof and cr.c != "\n":
        _TRANSITIONS[scan.state](cr, scan)
    end = cr.loc
    cr.advance()

    text = _trim(scan.buf)
    if scan.state is _CommentState.TAGS:
        # Only whitespace may follow the last tag.
        if text:
            raise MalformedTagLineError(end)
        tr.tags.update(scan.tags)
    elif scan.state is _CommentState.VALUE:
        tr.kv_pairs[scan.key] = text
    elif scan.state in (_CommentState.MAYBE_KEY, _CommentState.COMMENT):
        tr.comments.append(text)


__all__ = ["parse_date", "parse_ledger", "parse_ledger_raw"]
