from collections.abc import Sequence
from types import TracebackType
from typing import Any, NoReturn, Self

from ..cancel import CancelToken
from ..client import RemoteExecutionClient
from ..config import AthenaConfig
from ..errors import InterfaceError, UnsupportedOperation
from .cursor import Cursor
from .execution import ExecutionCoordinator, QueryExecution
from .rows import MAX_RESULTS, ResultRows


class Connection:
    """DB-API connection to Athena.

    The remote client is injected and may be shared between connections.
    A connection runs one query at a time; callers that share it across
    threads must serialize access.
    """

    def __init__(
        self,
        client: RemoteExecutionClient,
        config: AthenaConfig,
        page_size: int = MAX_RESULTS,
    ) -> None:
        self._client = client
        self._config = config
        self._page_size = page_size
        self._coordinator = ExecutionCoordinator(client, config)
        self._is_closed = False

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def _check_open(self) -> None:
        if self._is_closed:
            raise InterfaceError("Connection is closed")

    def run_query(
        self,
        query: str,
        params: Sequence[Any] | None = None,
        *,
        skip_header: bool = True,
        cancel: CancelToken | None = None,
    ) -> ResultRows:
        """Run a query to completion and return an iterator over its rows."""
        self._check_open()
        execution = self._coordinator.run(query, params, cancel)
        return ResultRows(
            self._client,
            execution.query_id,
            skip_header=skip_header,
            cancel=cancel,
            page_size=self._page_size,
        )

    def exec(
        self,
        query: str,
        params: Sequence[Any] | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> QueryExecution:
        """Run a statement to completion without reading its results."""
        self._check_open()
        return self._coordinator.run(query, params, cancel)

    def cursor(self) -> Cursor:
        """
        Returns a new Cursor object for executing queries.
        """
        self._check_open()
        return Cursor(self)

    def commit(self) -> None:
        # Every Athena statement is final once it succeeds.
        self._check_open()

    def rollback(self) -> NoReturn:
        raise UnsupportedOperation("Athena doesn't support transactions")

    def begin(self) -> NoReturn:
        raise UnsupportedOperation("Athena doesn't support transactions")

    def prepare(self, query: str) -> NoReturn:
        raise UnsupportedOperation("Athena doesn't support prepared statements")

    def close(self) -> None:
        """
        Closes the connection. The shared client stays usable.
        """
        self._is_closed = True

    def is_closed(self) -> bool:
        return self._is_closed

    @property
    def config(self) -> AthenaConfig:
        return self._config

    @property
    def database(self) -> str:
        return self._config.database

    @property
    def workgroup(self) -> str | None:
        return self._config.workgroup
