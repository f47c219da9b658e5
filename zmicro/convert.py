"""Conversions from query and path strings into typed values."""

from __future__ import annotations

import base64
import binascii
import calendar
import math
import re
import struct
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import TypeVar

from google.protobuf import duration_pb2, timestamp_pb2, wrappers_pb2

T = TypeVar("T")


class ConversionError(ValueError):
    """Raised when a string cannot be converted into the requested type."""


def _syntax_error(val: str) -> ConversionError:
    return ConversionError(f"parsing {val!r}: invalid syntax")


def _range_error(val: str) -> ConversionError:
    return ConversionError(f"parsing {val!r}: value out of range")


def _split(val: str, sep: str) -> list[str]:
    if sep == "":
        return list(val)
    return val.split(sep)


def _convert_all(val: str, sep: str, convert: Callable[[str], T]) -> list[T]:
    return [convert(part) for part in _split(val, sep)]


def _underscore_ok(s: str) -> bool:
    """Check that underscores only separate digits (or follow a base prefix)."""
    saw = "^"
    if s[:1] in ("+", "-"):
        s = s[1:]
    start = 0
    hex_digits = False
    if len(s) >= 2 and s[0] == "0" and s[1].lower() in ("b", "o", "x"):
        start = 2
        saw = "0"
        hex_digits = s[1].lower() == "x"
    for c in s[start:]:
        if c in _DECIMAL or (hex_digits and c in _HEX_LETTERS):
            saw = "0"
            continue
        if c == "_":
            if saw != "0":
                return False
            saw = "_"
            continue
        if saw == "_":
            return False
        saw = "!"
    return saw != "_"


_DECIMAL = frozenset("0123456789")
_HEX_LETTERS = frozenset("abcdefABCDEF")
_DIGIT_VALUES = {c: i for i, c in enumerate("0123456789abcdefghijklmnopqrstuvwxyz")}
_DIGIT_VALUES.update({c.upper(): i for c, i in list(_DIGIT_VALUES.items()) if c.isalpha()})
_PREFIX_BASES = {"b": 2, "o": 8, "x": 16}


def _parse_magnitude(text: str, original: str) -> int:
    """Parse an unsigned integer literal, detecting the base from its prefix."""
    if not text:
        raise _syntax_error(original)
    base = 10
    digits = text
    if text[0] == "0":
        prefix = text[1:2].lower()
        if len(text) >= 3 and prefix in _PREFIX_BASES:
            base = _PREFIX_BASES[prefix]
            digits = text[2:]
        else:
            base = 8
            digits = text[1:]
    value = 0
    underscores = False
    for c in digits:
        if c == "_":
            underscores = True
            continue
        digit = _DIGIT_VALUES.get(c)
        if digit is None or digit >= base:
            raise _syntax_error(original)
        value = value * base + digit
    if underscores and not _underscore_ok(text):
        raise _syntax_error(original)
    return value


def _parse_signed(val: str, bits: int) -> int:
    text = val
    negative = False
    if text[:1] in ("+", "-"):
        negative = text[0] == "-"
        text = text[1:]
    magnitude = _parse_magnitude(text, val)
    limit = 1 << (bits - 1)
    if magnitude > limit or (magnitude == limit and not negative):
        raise _range_error(val)
    return -magnitude if negative else magnitude


def _parse_unsigned(val: str, bits: int) -> int:
    value = _parse_magnitude(val, val)
    if value >= 1 << bits:
        raise _range_error(val)
    return value


_DEC_FLOAT = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)
_HEX_FLOAT = re.compile(
    r"[+-]?0[xX](?:[0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+)[pP][+-]?\d+", re.ASCII
)
_POSITIVE_INF = frozenset({"inf", "+inf", "infinity", "+infinity"})
_NEGATIVE_INF = frozenset({"-inf", "-infinity"})


def _parse_float(val: str) -> float:
    lowered = val.lower()
    if lowered in _POSITIVE_INF:
        return math.inf
    if lowered in _NEGATIVE_INF:
        return -math.inf
    if lowered == "nan":
        return math.nan
    text = val
    if "_" in text:
        if not _underscore_ok(text):
            raise _syntax_error(val)
        text = text.replace("_", "")
    if _HEX_FLOAT.fullmatch(text):
        try:
            return float.fromhex(text)
        except OverflowError:
            raise _range_error(val) from None
    if _DEC_FLOAT.fullmatch(text):
        result = float(text)
        if math.isinf(result):
            raise _range_error(val)
        return result
    raise _syntax_error(val)


def parse_string(val: str) -> str:
    """Return ``val`` as a string; anything that is not a string is rejected."""
    if not isinstance(val, str):
        raise ConversionError(f"expected a string, got {type(val).__name__}")
    return val


def parse_string_slice(val: str, sep: str) -> list[str]:
    """Split ``val`` on ``sep``."""
    return _split(val, sep)


_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def parse_bool(val: str) -> bool:
    """Parse a boolean written as 1/0, t/f or true/false in common casings."""
    if val in _TRUE:
        return True
    if val in _FALSE:
        return False
    raise _syntax_error(val)


def parse_bool_slice(val: str, sep: str) -> list[bool]:
    """Parse booleans separated by ``sep``."""
    return _convert_all(val, sep, parse_bool)


def parse_float64(val: str) -> float:
    """Parse a decimal or hexadecimal floating-point literal."""
    return _parse_float(val)


def parse_float64_slice(val: str, sep: str) -> list[float]:
    """Parse floating-point numbers separated by ``sep``."""
    return _convert_all(val, sep, parse_float64)


def parse_float32(val: str) -> float:
    """Parse a floating-point literal rounded to single precision."""
    result = _parse_float(val)
    try:
        return struct.unpack("<f", struct.pack("<f", result))[0]
    except OverflowError:
        raise _range_error(val) from None


def parse_float32_slice(val: str, sep: str) -> list[float]:
    """Parse single-precision numbers separated by ``sep``."""
    return _convert_all(val, sep, parse_float32)


def parse_int64(val: str) -> int:
    """Parse a signed 64-bit integer; 0x, 0o, 0b and leading-0 prefixes set the base."""
    return _parse_signed(val, 64)


def parse_int64_slice(val: str, sep: str) -> list[int]:
    """Parse signed 64-bit integers separated by ``sep``."""
    return _convert_all(val, sep, parse_int64)


def parse_int32(val: str) -> int:
    """Parse a signed 32-bit integer."""
    return _parse_signed(val, 32)


def parse_int32_slice(val: str, sep: str) -> list[int]:
    """Parse signed 32-bit integers separated by ``sep``."""
    return _convert_all(val, sep, parse_int32)


def parse_uint64(val: str) -> int:
    """Parse an unsigned 64-bit integer."""
    return _parse_unsigned(val, 64)


def parse_uint64_slice(val: str, sep: str) -> list[int]:
    """Parse unsigned 64-bit integers separated by ``sep``."""
    return _convert_all(val, sep, parse_uint64)


def parse_uint32(val: str) -> int:
    """Parse an unsigned 32-bit integer."""
    return _parse_unsigned(val, 32)


def parse_uint32_slice(val: str, sep: str) -> list[int]:
    """Parse unsigned 32-bit integers separated by ``sep``."""
    return _convert_all(val, sep, parse_uint32)


_STD_BASE64 = re.compile(r"[A-Za-z0-9+/]*={0,2}")
_URL_BASE64 = re.compile(r"[A-Za-z0-9\-_]*={0,2}")


def _decode_base64(text: str, pattern: re.Pattern[str], altchars: bytes | None) -> bytes | None:
    if len(text) % 4 or not pattern.fullmatch(text):
        return None
    try:
        return base64.b64decode(text, altchars=altchars)
    except (binascii.Error, ValueError):
        return None


def parse_bytes(val: str) -> bytes:
    """Decode padded base64, trying the standard alphabet before the URL-safe one."""
    text = val.replace("\r", "").replace("\n", "")
    decoded = _decode_base64(text, _STD_BASE64, None)
    if decoded is None:
        decoded = _decode_base64(text, _URL_BASE64, b"-_")
    if decoded is None:
        raise ConversionError(f"illegal base64 data: {val!r}")
    return decoded


def parse_bytes_slice(val: str, sep: str) -> list[bytes]:
    """Decode base64 sequences separated by ``sep``."""
    return _convert_all(val, sep, parse_bytes)


_TIMESTAMP = re.compile(
    r"(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(\d{1,9}))?(?:(Z)|([+-])(\d{2}):(\d{2}))",
    re.ASCII,
)
_MIN_TIMESTAMP_SECONDS = -62135596800
_MAX_TIMESTAMP_SECONDS = 253402300799


def parse_timestamp(val: str) -> timestamp_pb2.Timestamp:
    """Parse an RFC 3339 timestamp, optionally wrapped in double quotes."""
    text = val.strip('"')
    match = _TIMESTAMP.fullmatch(text)
    if match is None:
        raise ConversionError(f"invalid timestamp: {val!r}")
    base, fraction, _, sign, off_hours, off_minutes = match.groups()
    try:
        moment = datetime.strptime(base, "%Y-%m-%dT%H:%M:%S")
    except ValueError as exc:
        raise ConversionError(f"invalid timestamp: {val!r}") from exc
    seconds = calendar.timegm(moment.timetuple())
    if sign is not None:
        hours, minutes = int(off_hours), int(off_minutes)
        if hours >= 24 or minutes >= 60:
            raise ConversionError(f"invalid timestamp: {val!r}")
        offset = hours * 3600 + minutes * 60
        seconds -= offset if sign == "+" else -offset
    if not _MIN_TIMESTAMP_SECONDS <= seconds <= _MAX_TIMESTAMP_SECONDS:
        raise ConversionError(f"timestamp out of range: {val!r}")
    nanos = int(fraction.ljust(9, "0")) if fraction else 0
    return timestamp_pb2.Timestamp(seconds=seconds, nanos=nanos)


_DURATION = re.compile(r"(-?)(\d+)(?:\.(\d{1,9}))?s", re.ASCII)
_MAX_DURATION_SECONDS = 315_576_000_000


def parse_duration(val: str) -> duration_pb2.Duration:
    """Parse a duration such as ``1.5s``, optionally wrapped in double quotes."""
    text = val.strip('"')
    match = _DURATION.fullmatch(text)
    if match is None:
        raise ConversionError(f"invalid duration: {val!r}")
    sign, whole, fraction = match.groups()
    seconds = int(whole)
    nanos = int(fraction.ljust(9, "0")) if fraction else 0
    if seconds > _MAX_DURATION_SECONDS:
        raise ConversionError(f"duration out of range: {val!r}")
    if sign:
        seconds, nanos = -seconds, -nanos
    return duration_pb2.Duration(seconds=seconds, nanos=nanos)


def parse_enum(val: str, enum_values: Mapping[str, int]) -> int:
    """Resolve an enum by name, or by number if that number is a known value."""
    if val in enum_values:
        return enum_values[val]
    try:
        number = parse_int32(val)
    except ConversionError:
        raise ConversionError(f"{val} is not valid") from None
    if number in enum_values.values():
        return number
    raise ConversionError(f"{val} is not valid")


def parse_enum_slice(val: str, sep: str, enum_values: Mapping[str, int]) -> list[int]:
    """Resolve enums separated by ``sep``."""
    return _convert_all(val, sep, lambda part: parse_enum(part, enum_values))


def string_value(val: str) -> wrappers_pb2.StringValue:
    """Wrap ``val`` in a StringValue."""
    return wrappers_pb2.StringValue(value=parse_string(val))


def float_value(val: str) -> wrappers_pb2.FloatValue:
    """Parse ``val`` into a FloatValue."""
    return wrappers_pb2.FloatValue(value=parse_float32(val))


def double_value(val: str) -> wrappers_pb2.DoubleValue:
    """Parse ``val`` into a DoubleValue."""
    return wrappers_pb2.DoubleValue(value=parse_float64(val))


def bool_value(val: str) -> wrappers_pb2.BoolValue:
    """Parse ``val`` into a BoolValue."""
    return wrappers_pb2.BoolValue(value=parse_bool(val))


def int32_value(val: str) -> wrappers_pb2.Int32Value:
    """Parse ``val`` into an Int32Value."""
    return wrappers_pb2.Int32Value(value=parse_int32(val))


def uint32_value(val: str) -> wrappers_pb2.UInt32Value:
    """Parse ``val`` into a UInt32Value."""
    return wrappers_pb2.UInt32Value(value=parse_uint32(val))


def int64_value(val: str) -> wrappers_pb2.Int64Value:
    """Parse ``val`` into an Int64Value."""
    return wrappers_pb2.Int64Value(value=parse_int64(val))


def uint64_value(val: str) -> wrappers_pb2.UInt64Value:
    """Parse ``val`` into a UInt64Value."""
    return wrappers_pb2.UInt64Value(value=parse_uint64(val))


def bytes_value(val: str) -> wrappers_pb2.BytesValue:
    """Decode ``val`` into a BytesValue."""
    return wrappers_pb2.BytesValue(value=parse_bytes(val))