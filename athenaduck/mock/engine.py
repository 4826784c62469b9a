"""DuckDB-backed Athena double.

Queries run in DuckDB as soon as they are submitted. Results are served in
Athena's shape: a header row for queries (not for SHOW, DESCRIBE or DDL),
every cell rendered as a string and column types named the way Athena
names them.
"""

from __future__ import annotations

import datetime
import re
import threading
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

import duckdb

from ..client import ColumnInfo, ExecutionStatus, ResultPage

DUCKDB_TO_ATHENA_TYPE = {
    "BOOLEAN": "boolean",
    "TINYINT": "tinyint",
    "SMALLINT": "smallint",
    "INTEGER": "integer",
    "BIGINT": "bigint",
    "HUGEINT": "bigint",
    "UTINYINT": "smallint",
    "USMALLINT": "integer",
    "UINTEGER": "bigint",
    "UBIGINT": "bigint",
    "FLOAT": "float",
    "DOUBLE": "double",
    "DECIMAL": "decimal",
    "VARCHAR": "varchar",
    "UUID": "varchar",
    "JSON": "json",
    "DATE": "date",
    "TIME": "time",
    "TIMESTAMP": "timestamp",
    "TIMESTAMP_S": "timestamp",
    "TIMESTAMP_MS": "timestamp",
    "TIMESTAMP_NS": "timestamp",
    "TIMESTAMP WITH TIME ZONE": "timestamp with time zone",
    "BLOB": "varbinary",
    "INTERVAL": "varchar",
}

# Athena error name used as the prefix of StateChangeReason.
ERROR_NAMES: list[tuple[type[Exception], str]] = [
    (duckdb.ParserException, "SYNTAX_ERROR"),
    (duckdb.CatalogException, "TABLE_NOT_FOUND"),
    (duckdb.BinderException, "COLUMN_NOT_FOUND"),
    (duckdb.ConversionException, "INVALID_CAST_ARGUMENT"),
    (duckdb.ConstraintException, "CONSTRAINT_VIOLATION"),
]

# Statements whose results Athena prefixes with a row of column names.
HEADER_STATEMENTS = frozenset({"SELECT", "WITH", "VALUES", "TABLE"})

_LEADING_NOISE = re.compile(r"^(?:\s+|--[^\n]*(?:\n|$)|/\*.*?\*/|\()*", re.DOTALL)


def has_header_row(sql: str) -> bool:
    """Whether Athena returns a header row for the statement (not for SHOW, DESCRIBE or DDL)."""
    words = _LEADING_NOISE.sub("", sql, count=1).split(None, 1)
    return bool(words) and words[0].upper() in HEADER_STATEMENTS


def fetch_rows(relation: duckdb.DuckDBPyRelation) -> list[tuple[Any, ...]]:
    """Fetch a relation, reading TIMESTAMP WITH TIME ZONE columns as UTC datetimes.

    DuckDB needs pytz to build aware datetimes, so those columns are
    converted to UTC wall time in SQL and tagged with UTC here.
    """
    tz_columns = [
        index for index, duck_type in enumerate(relation.types) if str(duck_type) == "TIMESTAMP WITH TIME ZONE"
    ]
    if not tz_columns:
        return relation.fetchall()

    projection = []
    for index, name in enumerate(relation.columns):
        column = '"' + name.replace('"', '""') + '"'
        if index in tz_columns:
            projection.append(f"timezone('UTC', {column}) AS {column}")
        else:
            projection.append(column)

    rows = []
    for row in relation.project(", ".join(projection)).fetchall():
        values = list(row)
        for index in tz_columns:
            if values[index] is not None:
                values[index] = values[index].replace(tzinfo=datetime.timezone.utc)
        rows.append(tuple(values))
    return rows


def athena_column(name: str, duck_type: str) -> ColumnInfo:
    """Map a DuckDB column type to Athena column metadata."""
    type_str = duck_type.upper()
    if type_str.endswith("]") or type_str.startswith("LIST"):
        return ColumnInfo(name=name, type="array", nullable="UNKNOWN")
    if type_str.startswith("STRUCT"):
        return ColumnInfo(name=name, type="row", nullable="UNKNOWN")
    if type_str.startswith("MAP"):
        return ColumnInfo(name=name, type="map", nullable="UNKNOWN")
    if type_str.startswith("DECIMAL"):
        match = re.search(r"\((\d+),\s*(\d+)\)", type_str)
        return ColumnInfo(
            name=name,
            type="decimal",
            precision=int(match[1]) if match else 18,
            scale=int(match[2]) if match else 3,
            nullable="UNKNOWN",
        )
    if type_str.startswith("VARCHAR"):
        return ColumnInfo(name=name, type="varchar", precision=2147483647, nullable="UNKNOWN")

    return ColumnInfo(
        name=name,
        type=DUCKDB_TO_ATHENA_TYPE.get(type_str, "varchar"),
        nullable="UNKNOWN",
    )


def format_cell(value: Any) -> str | None:
    """Render a DuckDB value the way Athena writes it into VarCharValue."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime.datetime):
        if value.tzinfo is not None:
            utc = value.astimezone(datetime.timezone.utc).replace(tzinfo=None)
            return f"{utc.isoformat(sep=' ', timespec='milliseconds')} UTC"
        return value.isoformat(sep=" ", timespec="milliseconds")
    if isinstance(value, datetime.date):
        return value.isoformat()
    if isinstance(value, datetime.time):
        return value.isoformat(timespec="milliseconds")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return " ".join(f"{b:02x}" for b in bytes(value))
    if isinstance(value, (Decimal, float)):
        return str(value)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(_nested_cell(v) for v in value) + "]"
    if isinstance(value, dict):
        return "{" + ", ".join(f"{k}={_nested_cell(v)}" for k, v in value.items()) + "}"
    return str(value)


def _nested_cell(value: Any) -> str:
    cell = format_cell(value)
    return "null" if cell is None else cell


def bind_parameters(query: str, params: Sequence[str]) -> str:
    """Substitute execution parameters for ``?`` outside quoted text."""
    if not params:
        return query

    values = iter(params)
    parts: list[str] = []
    quote: str | None = None
    for char in query:
        if quote:
            if char == quote:
                quote = None
        elif char in ("'", '"'):
            quote = char
        elif char == "?":
            try:
                parts.append(next(values))
            except StopIteration:
                raise ValueError("not enough execution parameters for the query") from None
            continue
        parts.append(char)

    if next(values, None) is not None:
        raise ValueError("more execution parameters than placeholders in the query")
    return "".join(parts)


def failure_reason(error: duckdb.Error) -> str:
    message = str(error).split("\n")[0]
    for error_type, name in ERROR_NAMES:
        if isinstance(error, error_type):
            return f"{name}: {message}"
    return f"GENERIC_INTERNAL_ERROR: {message}"


@dataclass
class EngineExecution:
    query_id: str
    query: str
    state: str = "QUEUED"
    reason: str | None = None
    output_location: str | None = None
    columns: tuple[ColumnInfo, ...] = ()
    rows: list[tuple[str | None, ...]] = field(default_factory=list)


class DuckDBAthenaClient:
    """Remote client that runs every query in a DuckDB database.

    The Athena database maps to a DuckDB schema of the same name, created on
    first use.
    """

    def __init__(self, db_file: str = ":memory:", duck_conn: duckdb.DuckDBPyConnection | None = None) -> None:
        self._owns_conn = duck_conn is None
        self._duck_conn = duck_conn if duck_conn is not None else duckdb.connect(database=db_file)
        self._executions: dict[str, EngineExecution] = {}
        self._lock = threading.Lock()

    @property
    def duck_conn(self) -> duckdb.DuckDBPyConnection:
        return self._duck_conn

    def _use_database(self, database: str | None) -> None:
        if not database:
            return
        self._duck_conn.execute(f'CREATE SCHEMA IF NOT EXISTS "{database}"')
        self._duck_conn.execute(f"SET schema = '{database}'")

    def submit(
        self,
        query: str,
        database: str | None,
        catalog: str | None,
        output_location: str | None,
        workgroup: str | None,
        params: Sequence[str],
    ) -> str:
        sql = bind_parameters(query, params)
        query_id = str(uuid.uuid4())
        execution = EngineExecution(
            query_id=query_id,
            query=sql,
            state="RUNNING",
            output_location=f"{output_location.rstrip('/')}/{query_id}.csv" if output_location else None,
        )

        with self._lock:
            self._executions[query_id] = execution
            try:
                self._use_database(database)
                relation = self._duck_conn.sql(sql)
                if relation is not None:
                    execution.columns = tuple(
                        athena_column(name, str(duck_type))
                        for name, duck_type in zip(relation.columns, relation.types)
                    )
                    execution.rows = [tuple(relation.columns)] if has_header_row(sql) else []
                    execution.rows.extend(
                        tuple(format_cell(value) for value in row) for row in fetch_rows(relation)
                    )
            except duckdb.Error as e:
                execution.state = "FAILED"
                execution.reason = failure_reason(e)
                execution.columns = ()
                execution.rows = []
            else:
                execution.state = "SUCCEEDED"

        return query_id

    def _execution(self, query_id: str) -> EngineExecution:
        try:
            return self._executions[query_id]
        except KeyError:
            raise ValueError(f"unknown query execution id: {query_id}") from None

    def get_status(self, query_id: str) -> ExecutionStatus:
        execution = self._execution(query_id)
        return ExecutionStatus(
            state=execution.state,
            reason=execution.reason,
            output_location=execution.output_location,
        )

    def stop(self, query_id: str) -> None:
        execution = self._execution(query_id)
        if execution.state in ("QUEUED", "RUNNING"):
            execution.state = "CANCELLED"
            execution.reason = "Query cancelled by user"

    def get_result_page(self, query_id: str, next_token: str | None, max_rows: int) -> ResultPage:
        execution = self._execution(query_id)
        if execution.state != "SUCCEEDED":
            raise ValueError(f"query {query_id} has not succeeded: {execution.state}")

        offset = int(next_token) if next_token else 0
        page = execution.rows[offset : offset + max_rows]
        end = offset + len(page)
        return ResultPage(
            columns=execution.columns,
            rows=tuple(page),
            next_token=str(end) if end < len(execution.rows) else None,
        )

    def close(self) -> None:
        if self._owns_conn and self._duck_conn is not None:
            self._duck_conn.close()
            self._duck_conn = None
