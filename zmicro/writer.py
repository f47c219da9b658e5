"""A small line-oriented writer for generated source code."""

from __future__ import annotations

from typing import Any


def _render(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class CodeWriter:
    """Accumulates generated source code one line at a time."""

    def __init__(self) -> None:
        self._lines: list[str] = []

    def p(self, *args: Any) -> None:
        """Write the concatenation of ``args`` as one line; no arguments writes a blank line."""
        self._lines.append("".join(_render(arg) for arg in args))

    def text(self) -> str:
        """Return everything written so far, each line ended by a newline."""
        return "".join(line + "\n" for line in self._lines)

    def __str__(self) -> str:
        return self.text()