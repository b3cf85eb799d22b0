"""Encoding of parameters and decoding of column values, text and binary."""

from __future__ import annotations

import binascii
import math
import re
import struct
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from decimal import Decimal
from enum import IntEnum

from .oid import Oid
from .timestamps import format_ts, parse_ts

__all__ = [
    "Format",
    "ParameterStatus",
    "binary_decode",
    "binary_encode",
    "decode",
    "encode",
    "encode_bytea",
    "encode_copy_text",
    "escape_copy_text",
    "parse_bytea",
    "parse_time_of_day",
    "text_decode",
]

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

_STRING_OIDS = frozenset(
    {Oid.CHAR, Oid.VARCHAR, Oid.TEXT, Oid.REFCURSOR, Oid.REFCURSOR_ARRAY}
)
_INT_OIDS = frozenset({Oid.INT8, Oid.INT4, Oid.INT2})
_FLOAT_OIDS = frozenset({Oid.FLOAT4, Oid.FLOAT8, Oid.NUMERIC})
_BINARY_INTS = {Oid.INT8: ">q", Oid.INT4: ">i", Oid.INT2: ">h"}

_INTEGER = re.compile(r"[+-]?[0-9]+")
_OCTAL_ESCAPE = re.compile(rb"[0-7]{3}")
_TIME_2400 = re.compile(r"^(24:00(?::00(?:\.0+)?)?)(?:[Z+-].*)?$")
_TIME = re.compile(r"(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?")
_TIMETZ = re.compile(
    r"(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?([+-])(\d{2})(?::(\d{2}))?(?::(\d{2}))?"
)


class Format(IntEnum):
    """Wire format of a value."""

    TEXT = 0
    BINARY = 1


@dataclass
class ParameterStatus:
    """Server settings that influence how values are encoded and decoded."""

    server_version: int = 0
    current_location: tzinfo | None = None


def _format_float(value: float) -> bytes:
    if math.isnan(value):
        return b"NaN"
    if math.isinf(value):
        return b"+Inf" if value > 0 else b"-Inf"
    return format(Decimal(repr(value)).normalize(), "f").encode()


def _unknown_type(value: object) -> TypeError:
    return TypeError(f"pq: encode: unknown type for {type(value).__name__}")


def encode(parameter_status: ParameterStatus, value: object, type_oid: int) -> bytes:
    """Encode a parameter value in text format for the given type OID."""
    if isinstance(value, bool):
        return b"true" if value else b"false"
    if isinstance(value, int):
        return str(value).encode()
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        data = bytes(value)
        if type_oid == Oid.BYTEA:
            return encode_bytea(parameter_status.server_version, data)
        return data
    if isinstance(value, str):
        data = value.encode()
        if type_oid == Oid.BYTEA:
            return encode_bytea(parameter_status.server_version, data)
        return data
    if isinstance(value, datetime):
        return format_ts(value)
    raise _unknown_type(value)


def binary_encode(parameter_status: ParameterStatus, value: object) -> bytes:
    """Encode a parameter for binary transfer; bytes are sent unchanged."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    return encode(parameter_status, value, Oid.UNKNOWN)


def decode(
    parameter_status: ParameterStatus, data: bytes, type_oid: int, fmt: Format
) -> object:
    """Decode a column value received in the given format."""
    if fmt == Format.BINARY:
        return binary_decode(parameter_status, data, type_oid)
    if fmt == Format.TEXT:
        return text_decode(parameter_status, data, type_oid)
    raise ValueError(f"pq: unknown format {fmt!r}")


def binary_decode(parameter_status: ParameterStatus, data: bytes, type_oid: int) -> object:
    """Decode a value received in binary format."""
    oid = int(type_oid)
    if oid == Oid.BYTEA:
        return data
    if oid in _BINARY_INTS:
        try:
            (number,) = struct.unpack_from(_BINARY_INTS[Oid(oid)], data)
        except struct.error as exc:
            raise ValueError(f"pq: {exc}") from exc
        return number
    if oid == Oid.UUID:
        if len(data) != 16:
            raise ValueError(f"pq: unable to decode uuid; bad length: {len(data)}")
        return str(uuid.UUID(bytes=bytes(data))).encode()
    raise ValueError(f"pq: don't know how to decode binary parameter of type {oid}")


def _parse_int(text: str) -> int:
    if not _INTEGER.fullmatch(text):
        raise ValueError(f"pq: invalid integer syntax: {text!r}")
    number = int(text)
    if not _INT64_MIN <= number <= _INT64_MAX:
        raise ValueError(f"pq: integer value out of range: {text!r}")
    return number


def _parse_float(text: str) -> float:
    if text != text.strip() or "_" in text:
        raise ValueError(f"pq: invalid float syntax: {text!r}")
    try:
        return float(text)
    except ValueError as exc:
        raise ValueError(f"pq: invalid float syntax: {text!r}") from exc


def text_decode(parameter_status: ParameterStatus, data: bytes, type_oid: int) -> object:
    """Decode a value received in text format.

    Types without a special decoding are returned as the raw bytes.
    """
    oid = int(type_oid)
    if oid in _STRING_OIDS:
        return bytes(data).decode()
    if oid == Oid.BYTEA:
        return parse_bytea(data)
    if oid == Oid.TIMESTAMPTZ:
        return parse_ts(parameter_status.current_location, bytes(data).decode())
    if oid in (Oid.TIMESTAMP, Oid.DATE):
        return parse_ts(None, bytes(data).decode())
    if oid in (Oid.TIME, Oid.TIMETZ):
        return parse_time_of_day(oid, data)
    if oid == Oid.BOOL:
        return bytes(data[:1]) == b"t"
    if oid in _INT_OIDS:
        return _parse_int(bytes(data).decode())
    if oid in _FLOAT_OIDS:
        # All float types decode to a 64-bit float to avoid lossy results.
        return _parse_float(bytes(data).decode())
    return data


def parse_time_of_day(type_oid: int, data: bytes) -> datetime:
    """Parse a time or timetz value.

    The result is a datetime on 0001-01-01; a time of 24:00 rolls over to
    0001-01-02. Values without a zone are in UTC.
    """
    text = bytes(data).decode()
    oid = int(type_oid)
    is_2400 = False
    match = _TIME_2400.match(text)
    if match:
        text = "00:00:00" + text[len(match.group(1)) :]
        is_2400 = True

    if oid == Oid.TIMETZ:
        parts = _TIMETZ.fullmatch(text)
    else:
        parts = _TIME.fullmatch(text)
    if parts is None:
        raise ValueError(f"pq: decode: cannot parse {text!r} as a time of day")

    hour, minute, second = (int(parts.group(i)) for i in (1, 2, 3))
    fraction = parts.group(4) or ""
    microsecond = int((fraction + "000000")[:6])
    zone: tzinfo = timezone.utc
    if oid == Oid.TIMETZ:
        sign = -1 if parts.group(5) == "-" else 1
        offset = int(parts.group(6)) * 3600
        offset += int(parts.group(7) or 0) * 60 + int(parts.group(8) or 0)
        if offset:
            zone = timezone(timedelta(seconds=sign * offset))
    try:
        result = datetime(1, 1, 1, hour, minute, second, microsecond, tzinfo=zone)
    except ValueError as exc:
        raise ValueError(f"pq: decode: {exc}") from exc
    if is_2400:
        result += timedelta(days=1)
    return result


def encode_copy_text(parameter_status: ParameterStatus, value: object) -> bytes:
    """Encode a value in the text format used by COPY."""
    if value is None:
        return b"\\N"
    if isinstance(value, bool):
        return b"true" if value else b"false"
    if isinstance(value, int):
        return str(value).encode()
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return escape_copy_text(encode_bytea(parameter_status.server_version, bytes(value)))
    if isinstance(value, str):
        return escape_copy_text(value)
    if isinstance(value, datetime):
        return format_ts(value)
    raise _unknown_type(value)


def escape_copy_text(text: str | bytes) -> bytes:
    """Escape backslashes, newlines, carriage returns and tabs for COPY."""
    data = text.encode() if isinstance(text, str) else bytes(text)
    return (
        data.replace(b"\\", b"\\\\")
        .replace(b"\n", b"\\n")
        .replace(b"\r", b"\\r")
        .replace(b"\t", b"\\t")
    )


def parse_bytea(data: bytes) -> bytes:
    """Parse a bytea value in either "hex" or the legacy "escape" format."""
    data = bytes(data)
    if data[:2] == b"\\x":
        try:
            return binascii.unhexlify(data[2:])
        except (binascii.Error, ValueError) as exc:
            raise ValueError(f"pq: {exc}") from exc

    result = bytearray()
    pos = 0
    while pos < len(data):
        if data[pos] == ord("\\"):
            if data[pos + 1 : pos + 2] == b"\\":
                result.append(ord("\\"))
                pos += 2
                continue
            if len(data) - pos < 4:
                raise ValueError(f"invalid bytea sequence {list(data[pos:])}")
            digits = data[pos + 1 : pos + 4]
            if not _OCTAL_ESCAPE.fullmatch(digits) or int(digits, 8) > 0xFF:
                raise ValueError(f"could not parse bytea value: invalid escape {digits!r}")
            result.append(int(digits, 8))
            pos += 4
        else:
            end = data.find(b"\\", pos)
            if end < 0:
                result += data[pos:]
                break
            result += data[pos:end]
            pos = end
    return bytes(result)


def encode_bytea(server_version: int, data: bytes) -> bytes:
    """Encode bytes as a bytea literal: hex for 9.0+ servers, else escape."""
    if server_version >= 90000:
        return b"\\x" + binascii.hexlify(data)
    result = bytearray()
    for byte in data:
        if byte == ord("\\"):
            result += b"\\\\"
        elif byte < 0x20 or byte > 0x7E:
            result += b"\\%03o" % byte
        else:
            result.append(byte)
    return bytes(result)