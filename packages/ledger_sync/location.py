"""Source positions attached to parsed entities and errors.

A :class:`Location` is a plain ``(line, column)`` pair. Both counters
saturate at their bounds instead of wrapping: lines at ``2**48 - 1`` and
columns at ``2**16 - 1``.
"""

from __future__ import annotations

from dataclasses import dataclass

MAX_LINE = (1 << 48) - 1
MAX_COLUMN = (1 << 16) - 1


def _clamp(value: int, upper: int) -> int:
    if value < 0:
        return 0
    return value if value <= upper else upper


@dataclass(frozen=True, slots=True)
class Location:
    """A line/column position within ledger source text."""

    line: int = 0
    column: int = 0

    def __post_init__(self) -> None:
        # frozen: go through object.__setattr__ to store the clamped values
        object.__setattr__(self, "line", _clamp(self.line, MAX_LINE))
        object.__setattr__(self, "column", _clamp(self.column, MAX_COLUMN))

    def with_line(self, line: int) -> Location:
        return Location(line, self.column)

    def with_column(self, column: int) -> Location:
        return Location(self.line, column)

    def next_line(self) -> Location:
        """Return the start of the following line (column reset to zero)."""

        return Location(self.line + 1, 0)

    def next_column(self) -> Location:
        return Location(self.line, self.column + 1)

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


__all__ = ["Location", "MAX_LINE", "MAX_COLUMN"]
