"""Column metadata as described by a RowDescription message."""

from __future__ import annotations

import datetime
from dataclasses import dataclass

from .oid import Oid, type_name

__all__ = ["FieldDesc", "MAX_INT64"]

MAX_INT64 = 2**63 - 1

# Size of the varlena header that the server adds to type modifiers.
_HEADER_SIZE = 4

_SCAN_TYPES: dict[int, type] = {
    Oid.INT8: int,
    Oid.INT4: int,
    Oid.INT2: int,
    Oid.VARCHAR: str,
    Oid.TEXT: str,
    Oid.BOOL: bool,
    Oid.DATE: datetime.datetime,
    Oid.TIME: datetime.datetime,
    Oid.TIMETZ: datetime.datetime,
    Oid.TIMESTAMP: datetime.datetime,
    Oid.TIMESTAMPTZ: datetime.datetime,
    Oid.BYTEA: bytes,
}


@dataclass(frozen=True)
class FieldDesc:
    """Description of one result column.

    ``oid`` is the data type, ``size`` the type size (pg_type.typlen; negative
    for variable-width types) and ``modifier`` the type-specific modifier
    (pg_attribute.atttypmod).
    """

    oid: int
    size: int = 0
    modifier: int = 0

    def scan_type(self) -> type:
        """Return the Python type that values of this column decode to."""
        return _SCAN_TYPES.get(int(self.oid), object)

    def name(self) -> str:
        """Return the database type name, or "" for an unknown type."""
        return type_name(self.oid)

    def length(self) -> int | None:
        """Return the length of a variable-length type, or None otherwise."""
        oid = int(self.oid)
        if oid in (Oid.TEXT, Oid.BYTEA):
            return MAX_INT64
        if oid in (Oid.VARCHAR, Oid.BPCHAR):
            return self.modifier - _HEADER_SIZE
        return None

    def precision_scale(self) -> tuple[int, int] | None:
        """Return (precision, scale) for numeric types, or None otherwise."""
        if int(self.oid) not in (Oid.NUMERIC, Oid.NUMERIC_ARRAY):
            return None
        mod = self.modifier - _HEADER_SIZE
        return (mod >> 16) & 0xFFFF, mod & 0xFFFF