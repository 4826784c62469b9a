"""Scripted in-memory stand-in for the Athena RPC surface."""

from __future__ import annotations

import itertools
from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from ..client import ColumnInfo, ExecutionStatus, ResultPage
from ..connector.rows import MAX_RESULTS

Row = tuple[str | None, ...]


@dataclass
class ScriptedQuery:
    """What the mock answers for one submitted query.

    Attributes:
        columns: Column metadata returned with every page
        pages: Result pages exactly as Athena would return them, header
            row included
        statuses: States returned by consecutive status reads; the last one
            repeats
        reason: StateChangeReason reported with FAILED or CANCELLED
        query_id: Assigned on submission
        stopped: Set once ``stop`` was called for the execution
    """

    columns: tuple[ColumnInfo, ...]
    pages: list[tuple[Row, ...]]
    statuses: list[str] = field(default_factory=lambda: ["SUCCEEDED"])
    reason: str | None = None
    query_id: str | None = None
    stopped: bool = False
    status_reads: int = 0


def _column_info(columns: Sequence[str], types: Sequence[str]) -> tuple[ColumnInfo, ...]:
    if len(columns) != len(types):
        raise ValueError("columns and types must have the same length")
    return tuple(ColumnInfo(name=name, type=type_name) for name, type_name in zip(columns, types))


class MockAthenaClient:
    """Remote client double that replays queued scripts.

    Every ``mock_query``/``mock_pages`` call queues one script; each
    ``submit`` takes the oldest one. All calls are recorded in ``calls`` as
    ``(method, args)`` tuples.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.submissions: list[dict[str, Any]] = []
        self._pending: deque[ScriptedQuery] = deque()
        self._executions: dict[str, ScriptedQuery] = {}
        self._ids = itertools.count(1)

    def mock_query(
        self,
        columns: Sequence[str],
        types: Sequence[str],
        rows: Sequence[Sequence[str | None]],
        *,
        statuses: Sequence[str] = ("SUCCEEDED",),
        reason: str | None = None,
        page_size: int = MAX_RESULTS,
        header: bool = True,
    ) -> ScriptedQuery:
        """Queue a query whose rows are split into pages of ``page_size``.

        With ``header`` the column names are prepended as the first row, the
        way Athena returns non-DDL results.
        """
        data: list[Row] = [tuple(row) for row in rows]
        if header:
            data.insert(0, tuple(columns))
        pages = [tuple(data[i : i + page_size]) for i in range(0, len(data), page_size)]
        return self._queue(
            ScriptedQuery(
                columns=_column_info(columns, types),
                pages=pages or [()],
                statuses=list(statuses),
                reason=reason,
            )
        )

    def mock_pages(
        self,
        columns: Sequence[str],
        types: Sequence[str],
        pages: Sequence[Sequence[Sequence[str | None]]],
        *,
        statuses: Sequence[str] = ("SUCCEEDED",),
        reason: str | None = None,
    ) -> ScriptedQuery:
        """Queue a query with explicit page boundaries (header row not added)."""
        return self._queue(
            ScriptedQuery(
                columns=_column_info(columns, types),
                pages=[tuple(tuple(row) for row in page) for page in pages] or [()],
                statuses=list(statuses),
                reason=reason,
            )
        )

    def mock_failure(self, reason: str, statuses: Sequence[str] = ("RUNNING", "FAILED")) -> ScriptedQuery:
        return self._queue(ScriptedQuery(columns=(), pages=[()], statuses=list(statuses), reason=reason))

    def _queue(self, script: ScriptedQuery) -> ScriptedQuery:
        if not script.statuses:
            raise ValueError("at least one status is required")
        self._pending.append(script)
        return script

    def _execution(self, query_id: str) -> ScriptedQuery:
        try:
            return self._executions[query_id]
        except KeyError:
            raise ValueError(f"unknown query execution id: {query_id}") from None

    def call_count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    def submit(
        self,
        query: str,
        database: str | None,
        catalog: str | None,
        output_location: str | None,
        workgroup: str | None,
        params: Sequence[str],
    ) -> str:
        self.calls.append(("submit", (query, database, catalog, output_location, workgroup, tuple(params))))
        if not self._pending:
            raise RuntimeError(f"no mocked query left for: {query}")

        script = self._pending.popleft()
        script.query_id = f"mock-query-{next(self._ids)}"
        self._executions[script.query_id] = script
        self.submissions.append(
            {
                "query": query,
                "database": database,
                "catalog": catalog,
                "output_location": output_location,
                "workgroup": workgroup,
                "params": list(params),
                "query_id": script.query_id,
            }
        )
        return script.query_id

    def get_status(self, query_id: str) -> ExecutionStatus:
        self.calls.append(("get_status", (query_id,)))
        script = self._execution(query_id)
        state = script.statuses[min(script.status_reads, len(script.statuses) - 1)]
        script.status_reads += 1
        return ExecutionStatus(
            state=state,
            reason=script.reason if state in ("FAILED", "CANCELLED") else None,
            output_location=f"s3://mock-results/{query_id}.csv",
        )

    def stop(self, query_id: str) -> None:
        self.calls.append(("stop", (query_id,)))
        self._execution(query_id).stopped = True

    def get_result_page(self, query_id: str, next_token: str | None, max_rows: int) -> ResultPage:
        self.calls.append(("get_result_page", (query_id, next_token, max_rows)))
        script = self._execution(query_id)
        index = int(next_token.removeprefix("page-")) if next_token else 0
        if index >= len(script.pages):
            raise ValueError(f"invalid next token: {next_token}")

        has_more = index + 1 < len(script.pages)
        return ResultPage(
            columns=script.columns,
            rows=script.pages[index],
            next_token=f"page-{index + 1}" if has_more else None,
        )
