from collections.abc import Iterator, Sequence
from types import TracebackType
from typing import TYPE_CHECKING, Any, Self

from ..cancel import CancelToken
from ..errors import InterfaceError, ProgrammingError
from .rows import ResultRows
from .rowtype import ResultMetadata, describe_as_result_metadata

if TYPE_CHECKING:
    from .connection import Connection


class Cursor:
    """DB-API cursor over one Athena query at a time."""

    def __init__(self, conn: "Connection") -> None:
        self._conn = conn
        self._rows: ResultRows | None = None
        self._query_id: str | None = None
        self._is_closed = False
        self.arraysize: int = 1

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def __iter__(self) -> Iterator[tuple[Any, ...]]:
        return self._result_set()

    def _check_open(self) -> None:
        if self._is_closed:
            raise InterfaceError("Cursor is closed")

    def _result_set(self) -> ResultRows:
        self._check_open()
        if self._rows is None:
            raise ProgrammingError("No open result set")
        return self._rows

    def execute(
        self,
        operation: str,
        parameters: Sequence[Any] | None = None,
        *,
        skip_header: bool = True,
        cancel: CancelToken | None = None,
    ) -> Self:
        """Run a query and open its result set.

        Args:
            operation: SQL text with ``?`` placeholders
            parameters: Positional values bound to the placeholders
            skip_header: Drop the column-name row Athena prepends to the
                results of non-DDL statements. Pass False for DDL.
            cancel: Token that aborts the wait (stopping the query) or the
                page fetches
        """
        self._check_open()
        if self._rows is not None:
            self._rows.close()
        self._rows = None
        self._query_id = None

        try:
            self._rows = self._conn.run_query(
                operation, parameters, skip_header=skip_header, cancel=cancel
            )
        except Exception as e:
            self._query_id = getattr(e, "query_id", None)
            raise
        self._query_id = self._rows.query_id
        return self

    def executemany(
        self,
        operation: str,
        seq_of_parameters: Sequence[Sequence[Any]],
        *,
        cancel: CancelToken | None = None,
    ) -> Self:
        """Run ``operation`` once per parameter set. Results are discarded."""
        self._check_open()
        if self._rows is not None:
            self._rows.close()
        self._rows = None
        for parameters in seq_of_parameters:
            execution = self._conn.exec(operation, parameters, cancel=cancel)
            self._query_id = execution.query_id
        return self

    def fetchone(self) -> tuple[Any, ...] | None:
        return self._result_set().fetch_next()

    def fetchmany(self, size: int | None = None) -> list[tuple[Any, ...]]:
        rows = self._result_set()
        if size is None:
            size = self.arraysize

        result = []
        for _ in range(size):
            row = rows.fetch_next()
            if row is None:
                break
            result.append(row)
        return result

    def fetchall(self) -> list[tuple[Any, ...]]:
        return list(self._result_set())

    @property
    def description(self) -> list[ResultMetadata] | None:
        if self._rows is None:
            return None
        return describe_as_result_metadata(self._rows.column_info)

    def column_type(self, index: int) -> str:
        return self._result_set().column_type(index)

    @property
    def rowcount(self) -> int:
        # Athena reports no affected-row count.
        return -1

    @property
    def query_id(self) -> str | None:
        return self._query_id

    @property
    def connection(self) -> "Connection":
        return self._conn

    def setinputsizes(self, sizes: Any) -> None:
        pass

    def setoutputsize(self, size: Any, column: int | None = None) -> None:
        pass

    def is_closed(self) -> bool:
        return self._is_closed

    def close(self) -> None:
        if self._rows is not None:
            self._rows.close()
        self._is_closed = True
