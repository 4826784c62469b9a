from typing import NamedTuple

from ..client import ColumnInfo
from ..codec import FLOAT_TYPES, INTEGER_TYPES, STRING_TYPES, base_type_name

NULLABILITY = {
    "NOT_NULL": False,
    "NULLABLE": True,
    "UNKNOWN": None,
}


class ResultMetadata(NamedTuple):
    """PEP 249 column description."""

    name: str
    type_code: str
    display_size: int | None
    internal_size: int | None
    precision: int | None
    scale: int | None
    null_ok: bool | None


class DBAPITypeObject(frozenset):
    """Compares equal to every Athena type name in the group (PEP 249 type objects)."""

    def __eq__(self, other: object) -> bool:
        if isinstance(other, str):
            return base_type_name(other) in self
        return super().__eq__(other)

    def __ne__(self, other: object) -> bool:
        return not self == other

    def __hash__(self) -> int:
        return frozenset.__hash__(self)


STRING = DBAPITypeObject(STRING_TYPES | {"json"})
BINARY = DBAPITypeObject({"varbinary"})
NUMBER = DBAPITypeObject(INTEGER_TYPES | FLOAT_TYPES | {"decimal"})
DATETIME = DBAPITypeObject({"date", "time", "timestamp", "timestamp with time zone"})
ROWID = DBAPITypeObject()


def describe_as_result_metadata(columns: list[ColumnInfo]) -> list[ResultMetadata]:
    """
    Convert Athena column info to a cursor ``description``.

    Args:
        columns (list[ColumnInfo]): Column metadata from the first result page.

    Returns:
        list[ResultMetadata]: One entry per column, in result order.
    """

    def as_result_metadata(column: ColumnInfo) -> ResultMetadata:
        base = base_type_name(column.type)
        internal_size = None
        precision = None
        scale = None

        if base in STRING_TYPES or base == "varbinary":
            internal_size = column.precision
        elif base in NUMBER:
            precision = column.precision
            scale = column.scale

        return ResultMetadata(
            name=column.name,
            type_code=column.type,
            display_size=None,
            internal_size=internal_size,
            precision=precision,
            scale=scale,
            null_ok=NULLABILITY.get(column.nullable) if column.nullable else None,
        )

    return [as_result_metadata(c) for c in columns]
