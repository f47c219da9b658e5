"""Collection of error definitions from annotated enum values."""

from __future__ import annotations

import re
import string
from collections.abc import Iterable
from dataclasses import dataclass

_LETTERS = frozenset(string.ascii_letters)
_DIGITS = frozenset(string.digits)
_INTEGER = re.compile(r"[+-]?[0-9]+", re.ASCII)
_INT_MIN = -(1 << 63)
_INT_MAX = (1 << 63) - 1


@dataclass(frozen=True)
class EnumValueSpec:
    """One enum value with its optional error code and message annotations."""

    name: str
    code: int = 0
    msg: str = ""


@dataclass(frozen=True)
class ErrorInfo:
    """An error definition produced for one enum value."""

    name: str
    code: int
    value: str
    camel_value: str
    message: str


def remove_invalid_chars(s: str, remove_first_digit: bool) -> str:
    """Keep ASCII letters and digits, optionally dropping leading digits."""
    kept: list[str] = []
    for char in s.encode("utf-8").decode("latin-1"):
        if char in _LETTERS:
            kept.append(char)
        elif char in _DIGITS and (not remove_first_digit or kept):
            kept.append(char)
    return "".join(kept)


def _is_int(text: str) -> bool:
    return bool(_INTEGER.fullmatch(text)) and _INT_MIN <= int(text) <= _INT_MAX


def camel_case(s: str) -> str:
    """Turn an enum value name into an identifier, splitting on capitals and ``_``."""
    text = s.strip()
    if not text:
        return ""
    words: list[str] = []
    rest = text
    while rest:
        cut = next((i for i, c in enumerate(rest[1:], 1) if c.isupper()), len(rest))
        words.extend(rest[:cut].split("_"))
        rest = rest[cut:]
    parts = []
    for index, word in enumerate(words):
        cleaned = remove_invalid_chars(word, index == 0)
        if cleaned:
            parts.append(cleaned[0].upper() + cleaned[1:].lower())
    result = "".join(parts)
    if not result and _is_int(text):
        result = "Key" + text
    return result


def collect_errors(
    enum_name: str,
    values: Iterable[EnumValueSpec],
    default_code: int = 0,
) -> list[ErrorInfo]:
    """Build error definitions for the values that end up with a non-zero code.

    A value's own code wins; otherwise the enum's default code applies.
    """
    errors = []
    for value in values:
        code = value.code or default_code or 0
        if code == 0:
            continue
        errors.append(
            ErrorInfo(
                name=enum_name,
                code=code,
                value=value.name,
                camel_value=camel_case(value.name),
                message=value.msg or "",
            )
        )
    return errors