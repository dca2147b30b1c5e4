"""Fixed-point amounts at 1/10000 of the base currency unit.

Values are plain ``int`` counts of ten-thousandths (``$20.00`` is
``200000``). Display formatting keeps two fractional digits and rounds the
cent digit half-to-even using only the third fractional digit, which is the
exact inverse of the parser's scaling for amounts written with up to two
fractional digits.

Public surface:
- ``read_amount``: consume an amount from a :class:`~ledger_sync.reader.CharReader`.
- ``parse_value_number``: convert a plain decimal string (import adapters).
- ``format_value`` / ``format_value_number``: render a value for display.
"""

from __future__ import annotations

from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation

from .errors import BadAmountError
from .reader import CharReader, WHITESPACE

VALUE_SCALE = 10_000
FRACTION_DIGITS = 4
CURRENCY = "$"

# Stored values must fit a signed 64-bit integer.
_MAX_VALUE = (1 << 63) - 1


def read_amount(cr: CharReader) -> int | None:
    """Read an optional currency marker and amount from ``cr``.

    Returns ``None`` when no digits were consumed (the posting's value is
    inferred). ``,`` separators are discarded; a second ``.``, a ``.`` before
    any digit, more than four fractional digits or a value outside the signed
    64-bit range raise :class:`BadAmountError`.
    """

    if cr.match(CURRENCY):
        cr.advance()
        cr.eat(WHITESPACE)

    start = cr.loc
    negative = False
    if cr.match("-"):
        negative = True
        cr.advance()

    whole = 0
    fraction = 0
    fraction_digits = 0
    in_fraction = False
    seen_digit = False
    while cr.match_numeric() or cr.match(".,"):
        if cr.c == ".":
            if in_fraction or not seen_digit:
                raise BadAmountError(cr.loc)
            in_fraction = True
            cr.advance()
            continue
        if cr.c == ",":
            cr.advance()
            continue

        digit = ord(cr.c) - ord("0")
        if in_fraction:
            fraction_digits += 1
            if fraction_digits > FRACTION_DIGITS:
                raise BadAmountError(cr.loc)
            fraction = fraction * 10 + digit
        else:
            whole = whole * 10 + digit
        seen_digit = True
        cr.advance()

    if not seen_digit:
        return None

    value = whole * VALUE_SCALE + fraction * 10 ** (FRACTION_DIGITS - fraction_digits)
    if value > _MAX_VALUE:
        raise BadAmountError(start)
    return -value if negative else value


def parse_value_number(text: str) -> int:
    """Convert a plain decimal string (e.g. ``"-12.3456"``) to 1/10000 units.

    Intended for statement importers. Digits beyond the fourth fractional
    place are rounded half-to-even. Raises ``ValueError`` on malformed input.
    """

    s = text.strip()
    try:
        d = Decimal(s)
    except InvalidOperation as exc:
        raise ValueError(f"invalid amount: {text!r}") from exc
    if not d.is_finite():
        raise ValueError(f"invalid amount: {text!r}")
    q = d.quantize(Decimal(1).scaleb(-FRACTION_DIGITS), rounding=ROUND_HALF_EVEN)
    return int(q.scaleb(FRACTION_DIGITS))


def _round_half_even(cents: int, digit: int) -> int:
    # ``digit`` is the single decimal digit following the cent digit.
    if digit > 5 or (digit == 5 and cents % 2 == 1):
        return cents + 1
    return cents


def format_value_number(value: int, *, exact: bool = False) -> str:
    """Format ``value`` as a decimal number without a currency marker.

    With ``exact=True`` sub-cent digits are kept (trailing zeros trimmed to
    two places) instead of rounded away.
    """

    magnitude = abs(value)
    whole, frac = divmod(magnitude, VALUE_SCALE)
    sign = "-" if value < 0 else ""

    if exact and frac % 100:
        digits = f"{frac:0{FRACTION_DIGITS}d}".rstrip("0")
        return f"{sign}{whole}.{digits}"

    cents = _round_half_even(frac // 100, frac % 100 // 10)
    if cents > 99:
        cents = 0
        whole += 1
    if whole == 0 and cents == 0:
        sign = ""
    return f"{sign}{whole}.{cents:02d}"


def format_value(value: int, *, exact: bool = False) -> str:
    """Format ``value`` for display, e.g. ``200000`` -> ``"$20.00"``."""

    return CURRENCY + format_value_number(value, exact=exact)


__all__ = [
    "CURRENCY",
    "VALUE_SCALE",
    "format_value",
    "format_value_number",
    "parse_value_number",
    "read_amount",
]
