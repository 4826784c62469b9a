"""Conversion between Python values and Athena's string encodings.

Athena binds execution parameters as literal SQL text and returns every
result cell as a string (``VarCharValue``) next to a declared column type.
"""

from __future__ import annotations

import datetime
import functools
import math
import re
from collections.abc import Mapping, Sequence
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import DataError, ParameterEncodingError, ProgrammingError, UnsupportedValueTypeError

if TYPE_CHECKING:
    from .client import ColumnInfo

DATE_LAYOUT = "%Y-%m-%d"

INTEGER_TYPES = frozenset({"tinyint", "smallint", "int", "integer", "bigint"})
FLOAT_TYPES = frozenset({"float", "real", "double"})
STRING_TYPES = frozenset({"char", "varchar", "string"})

_TYPE_ARGS = re.compile(r"\(.*?\)")


@functools.total_ordering
class AthenaDate:
    """A DATE value that renders itself for display and for re-use in SQL.

    Equality and ordering compare the underlying instant, so two values
    built from different representations of the same day are equal. Naive
    values are read as UTC.
    """

    __slots__ = ("_value",)

    def __init__(self, value: datetime.date) -> None:
        if isinstance(value, datetime.datetime):
            self._value = value
        elif isinstance(value, datetime.date):
            self._value = datetime.datetime.combine(value, datetime.time())
        else:
            raise TypeError(f"AthenaDate expects a date, got {type(value).__name__}")

    @classmethod
    def from_string(cls, text: str) -> "AthenaDate":
        return cls(datetime.datetime.strptime(text, DATE_LAYOUT))

    @property
    def value(self) -> datetime.datetime:
        return self._value

    def date(self) -> datetime.date:
        return self._value.date()

    def _instant(self) -> datetime.datetime:
        if self._value.tzinfo is None:
            return self._value.replace(tzinfo=datetime.timezone.utc)
        return self._value

    def to_query_value(self) -> str:
        """Render as a DATE literal, e.g. ``date '2024-01-01'``."""
        return f"date '{self}'"

    def isoformat(self) -> str:
        return str(self)

    def __str__(self) -> str:
        return self._value.strftime(DATE_LAYOUT)

    def __repr__(self) -> str:
        return f"AthenaDate({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AthenaDate):
            return NotImplemented
        return self._instant() == other._instant()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, AthenaDate):
            return NotImplemented
        return self._instant() < other._instant()

    def __hash__(self) -> int:
        return hash(self._instant())


def _quote(text: str) -> str:
    return "'" + text.replace("'", "''") + "'"


def encode_parameter(value: Any, name: str) -> str:
    """Convert a native value to the literal Athena substitutes for ``?``.

    Raises:
        UnsupportedValueTypeError: If there is no conversion for the type.
        ParameterEncodingError: If the value cannot be written as a literal.
    """
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ParameterEncodingError(
                f"cannot convert parameter {name} to an Athena literal: {value!r}"
            )
        return repr(value)
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ParameterEncodingError(
                f"cannot convert parameter {name} to an Athena literal: {value!r}"
            )
        return f"DECIMAL '{value}'"
    if isinstance(value, str):
        return _quote(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"X'{bytes(value).hex().upper()}'"
    if isinstance(value, AthenaDate):
        return value.to_query_value()
    if isinstance(value, datetime.datetime):
        if value.tzinfo is not None:
            utc = value.astimezone(datetime.timezone.utc)
            return f"timestamp '{utc.isoformat(sep=' ', timespec='microseconds')[:-6]} UTC'"
        return f"timestamp '{value.isoformat(sep=' ', timespec='microseconds')}'"
    if isinstance(value, datetime.date):
        return f"date '{value.strftime(DATE_LAYOUT)}'"
    if isinstance(value, datetime.time):
        return f"time '{value.isoformat(timespec='microseconds')}'"
    raise UnsupportedValueTypeError(name, value)


def encode_parameters(params: Sequence[Any] | None) -> list[str]:
    """Encode positional parameters, named ``$1``, ``$2``, ... in errors."""
    if params is None:
        return []
    if isinstance(params, Mapping):
        raise ProgrammingError("Athena only supports positional (qmark) parameters")
    if isinstance(params, (str, bytes)):
        raise ProgrammingError("parameters must be a sequence, not a single string")
    return [encode_parameter(value, f"${index}") for index, value in enumerate(params, start=1)]


def base_type_name(type_name: str | None) -> str:
    """``decimal(10,2)`` -> ``decimal``, ``timestamp(3) with time zone`` -> ``timestamp with time zone``."""
    if not type_name:
        return ""
    return " ".join(_TYPE_ARGS.sub("", type_name).lower().split())


def _parse_timestamp_tz(raw: str) -> datetime.datetime:
    head, _, zone = raw.rpartition(" ")
    if not head:
        return datetime.datetime.fromisoformat(raw)
    if zone.startswith(("+", "-")):
        return datetime.datetime.fromisoformat(head + zone)
    tz: datetime.tzinfo
    if zone in ("UTC", "Z"):
        tz = datetime.timezone.utc
    else:
        try:
            tz = ZoneInfo(zone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"unknown time zone {zone!r}") from None
    return datetime.datetime.fromisoformat(head).replace(tzinfo=tz)


def _parse_boolean(raw: str) -> bool:
    lowered = raw.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise ValueError(f"invalid boolean {raw!r}")


def _parse_decimal(raw: str) -> Decimal:
    try:
        return Decimal(raw)
    except InvalidOperation:
        raise ValueError(f"invalid decimal {raw!r}") from None


_DECODERS = {
    **{name: int for name in INTEGER_TYPES},
    **{name: float for name in FLOAT_TYPES},
    "decimal": _parse_decimal,
    "boolean": _parse_boolean,
    "date": AthenaDate.from_string,
    "timestamp": datetime.datetime.fromisoformat,
    "timestamp with time zone": _parse_timestamp_tz,
    "time": datetime.time.fromisoformat,
    "varbinary": bytes.fromhex,
}


def decode_value(type_name: str | None, raw: str | None) -> Any:
    """Convert one result cell to a Python value using its declared type.

    Unknown type names return the raw string unchanged.

    Raises:
        DataError: If the cell is not a valid literal of a known type.
    """
    if raw is None:
        return None
    base = base_type_name(type_name)
    if base in STRING_TYPES:
        return raw
    decoder = _DECODERS.get(base)
    if decoder is None:
        return raw
    if raw == "":
        return None
    try:
        return decoder(raw)
    except ValueError as exc:
        raise DataError(f"cannot decode {raw!r} as {type_name}: {exc}") from exc


def decode_row(columns: Sequence["ColumnInfo"], cells: Sequence[str | None]) -> tuple[Any, ...]:
    """Decode a row. Cells beyond the known columns are passed through."""
    values = []
    for index, raw in enumerate(cells):
        type_name = columns[index].type if index < len(columns) else None
        values.append(decode_value(type_name, raw))
    return tuple(values)
