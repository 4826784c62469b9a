"""Remote execution client: the RPC surface of the query engine.

The coordinator and the result iterator only talk to Athena through the
:class:`RemoteExecutionClient` protocol. :class:`AthenaClient` implements it
with boto3. Test doubles live in :mod:`athenaduck.mock`.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

import boto3

if TYPE_CHECKING:
    from .config import AthenaConfig


@dataclass(frozen=True)
class ColumnInfo:
    """Column metadata as declared by Athena (``ResultSetMetadata.ColumnInfo``)."""

    name: str
    type: str = ""
    precision: int | None = None
    scale: int | None = None
    nullable: str | None = None


@dataclass(frozen=True)
class ExecutionStatus:
    state: str
    reason: str | None = None
    output_location: str | None = None


@dataclass(frozen=True)
class ResultPage:
    """One page of ``GetQueryResults``. An empty ``next_token`` marks the last page."""

    columns: tuple[ColumnInfo, ...] = ()
    rows: tuple[tuple[str | None, ...], ...] = field(default_factory=tuple)
    next_token: str | None = None


class RemoteExecutionClient(Protocol):
    def submit(
        self,
        query: str,
        database: str | None,
        catalog: str | None,
        output_location: str | None,
        workgroup: str | None,
        params: Sequence[str],
    ) -> str: ...

    def get_status(self, query_id: str) -> ExecutionStatus: ...

    def stop(self, query_id: str) -> None: ...

    def get_result_page(
        self, query_id: str, next_token: str | None, max_rows: int
    ) -> ResultPage: ...


def _column_from_api(info: dict[str, Any]) -> ColumnInfo:
    return ColumnInfo(
        name=info.get("Name", ""),
        type=info.get("Type", ""),
        precision=info.get("Precision"),
        scale=info.get("Scale"),
        nullable=info.get("Nullable"),
    )


def _row_from_api(row: dict[str, Any]) -> tuple[str | None, ...]:
    # A datum without VarCharValue is a NULL cell.
    return tuple(datum.get("VarCharValue") for datum in row.get("Data", []))


class AthenaClient:
    """boto3-backed :class:`RemoteExecutionClient`.

    Errors raised by boto3/botocore propagate unchanged; the coordinator and
    iterator wrap them. Retries of transient network errors are left to
    botocore's own retry configuration.
    """

    def __init__(self, client: Any) -> None:
        self._client = client

    @classmethod
    def from_config(cls, config: "AthenaConfig") -> "AthenaClient":
        session = config.session
        if session is None:
            session = boto3.Session(
                aws_access_key_id=config.aws_access_key_id,
                aws_secret_access_key=config.aws_secret_access_key,
                region_name=config.region,
            )
        return cls(session.client("athena"))

    def submit(
        self,
        query: str,
        database: str | None,
        catalog: str | None,
        output_location: str | None,
        workgroup: str | None,
        params: Sequence[str],
    ) -> str:
        context: dict[str, str] = {}
        if database:
            context["Database"] = database
        if catalog:
            context["Catalog"] = catalog

        kwargs: dict[str, Any] = {"QueryString": query}
        if context:
            kwargs["QueryExecutionContext"] = context
        if output_location:
            kwargs["ResultConfiguration"] = {"OutputLocation": output_location}
        if workgroup:
            kwargs["WorkGroup"] = workgroup
        if params:
            kwargs["ExecutionParameters"] = list(params)

        response = self._client.start_query_execution(**kwargs)
        return response["QueryExecutionId"]

    def get_status(self, query_id: str) -> ExecutionStatus:
        response = self._client.get_query_execution(QueryExecutionId=query_id)
        execution = response["QueryExecution"]
        status = execution.get("Status", {})
        return ExecutionStatus(
            state=status.get("State", ""),
            reason=status.get("StateChangeReason"),
            output_location=execution.get("ResultConfiguration", {}).get("OutputLocation"),
        )

    def stop(self, query_id: str) -> None:
        self._client.stop_query_execution(QueryExecutionId=query_id)

    def get_result_page(
        self, query_id: str, next_token: str | None, max_rows: int
    ) -> ResultPage:
        kwargs: dict[str, Any] = {"QueryExecutionId": query_id, "MaxResults": max_rows}
        if next_token:
            kwargs["NextToken"] = next_token
        response = self._client.get_query_results(**kwargs)

        result_set = response.get("ResultSet", {})
        metadata = result_set.get("ResultSetMetadata", {}).get("ColumnInfo", [])
        return ResultPage(
            columns=tuple(_column_from_api(info) for info in metadata),
            rows=tuple(_row_from_api(row) for row in result_set.get("Rows", [])),
            next_token=response.get("NextToken") or None,
        )
