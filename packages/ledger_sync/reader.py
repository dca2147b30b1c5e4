"""Character-level reader with one code point of lookahead.

The parser works directly on characters rather than on a token stream, so
this module provides the two things it needs: a :class:`CharReader` that
tracks the current and next code point along with their locations, and a
few stateless predicates used to decide whether to consume a character.

Carriage returns never surface; ``\\r\\n`` and ``\\n`` line endings read the
same. A line feed moves the location to the next line with column zero and
every other character advances the column by one.
"""

from __future__ import annotations

import io
from typing import TextIO

from .location import Location

WHITESPACE = " \t"
DIGITS = "0123456789"


# ---------------------------------------------------------------------------
# Lexical predicates
# ---------------------------------------------------------------------------


def in_set(ch: str, chars: str) -> bool:
    """Return ``True`` when ``ch`` is one of ``chars``.

    The empty string (no character) is never a member.
    """

    return ch != "" and ch in chars


def is_alpha(ch: str) -> bool:
    """Underscore or a Unicode letter."""

    return ch == "_" or (ch != "" and ch.isalpha())


def is_digit(ch: str) -> bool:
    # ASCII only; other numeral systems are not amounts.
    return ch != "" and "0" <= ch <= "9"


# ---------------------------------------------------------------------------
# Reader
# ---------------------------------------------------------------------------


class CharReader:
    """Stream ledger text one code point at a time.

    Attributes
    ----------
    c, loc, eof:
        The current character, its location, and whether the reader has
        moved past the end of input (``c`` and ``loc`` are stale when set).
    nc, next_loc, next_eof:
        The lookahead character, its location, and whether the next
        :meth:`advance` will move past the end of input.

    The constructor primes both slots, so all attributes are valid as soon
    as the reader exists.
    """

    __slots__ = ("_read", "c", "loc", "eof", "nc", "next_loc", "next_eof")

    def __init__(self, source: str | TextIO, line: int = 1) -> None:
        if isinstance(source, str):
            source = io.StringIO(source)
        self._read = source.read

        self.c = ""
        self.loc = Location(line, 0)
        self.eof = False

        self.nc = ""
        self.next_loc = Location(line, 0)
        self.next_eof = False

        self.advance()
        self.advance()

    def advance(self) -> None:
        """Shift the lookahead into the current slot and read one more character."""

        if self.eof:
            return
        if self.next_eof:
            self.eof = True
            return

        self.c = self.nc
        self.loc = self.next_loc

        ch = self._read(1)
        while ch == "\r":
            ch = self._read(1)
        if ch == "":
            self.next_eof = True
            return

        self.nc = ch
        if ch == "\n":
            self.next_loc = self.next_loc.next_line()
        else:
            self.next_loc = self.next_loc.next_column()

    # -- tests ---------------------------------------------------------------

    def match(self, chars: str) -> bool:
        return not self.eof and in_set(self.c, chars)

    def match_next(self, chars: str) -> bool:
        return not self.next_eof and in_set(self.nc, chars)

    def match_alpha(self) -> bool:
        return not self.eof and is_alpha(self.c)

    def match_numeric(self) -> bool:
        return not self.eof and is_digit(self.c)

    # -- consumers -----------------------------------------------------------

    def eat(self, chars: str) -> None:
        """Skip characters while they are in ``chars``."""

        while self.match(chars):
            self.advance()

    def eat_until(self, chars: str) -> None:
        """Skip characters until one in ``chars`` (or the end of input) is current."""

        while not self.eof and not self.match(chars):
            self.advance()

    def read_match(self, chars: str, buf: list[str]) -> list[str]:
        while self.match(chars):
            buf.append(self.c)
            self.advance()
        return buf

    def read_match_limit(self, chars: str, buf: list[str], limit: int) -> bool:
        """Read at most ``limit`` matching characters into ``buf``.

        Returns ``True`` when reading stopped because the limit was reached.
        """

        count = 0
        while count < limit and self.match(chars):
            buf.append(self.c)
            self.advance()
            count += 1
        return count == limit

    def read_until(self, chars: str, buf: list[str]) -> list[str]:
        while not self.eof and not self.match(chars):
            buf.append(self.c)
            self.advance()
        return buf


__all__ = [
    "CharReader",
    "DIGITS",
    "WHITESPACE",
    "in_set",
    "is_alpha",
    "is_digit",
]
