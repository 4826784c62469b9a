"""Row-at-a-time iteration over a finished query's paginated results."""

from __future__ import annotations

import logging
from typing import Any, Self

from ..cancel import CancelToken
from ..client import ColumnInfo, RemoteExecutionClient, ResultPage
from ..codec import decode_row
from ..errors import CallerCancelled, Error, FetchError

logger = logging.getLogger(__name__)

# Upper bound Athena accepts for GetQueryResults.MaxResults.
MAX_RESULTS = 1000


class ResultRows:
    """Iterator over the rows of a SUCCEEDED query execution.

    The first page is fetched on construction so that column metadata is
    available before the first row is read. Further pages are fetched when
    the current one runs out. Each page is kept as received and read
    through an index, so rows are delivered once, in engine order.

    For statements that produce a result set Athena repeats the column names
    as the first row of the first page. ``skip_header=True`` drops that row;
    pass ``False`` for DDL and other statements without it.
    """

    def __init__(
        self,
        client: RemoteExecutionClient,
        query_id: str,
        skip_header: bool = True,
        cancel: CancelToken | None = None,
        page_size: int = MAX_RESULTS,
    ) -> None:
        self._client = client
        self._query_id = query_id
        self._skip_header = skip_header
        self._cancel = cancel or CancelToken()
        self._page_size = page_size

        self._columns: tuple[ColumnInfo, ...] = ()
        self._page = ResultPage()
        self._index = 0
        self._first_fetch = True
        self._done = False

        if not self._fetch_page(None):
            self._done = True

    def __iter__(self) -> Self:
        return self

    def __next__(self) -> tuple[Any, ...]:
        if self._done:
            raise StopIteration

        while self._index >= len(self._page.rows):
            token = self._page.next_token
            if not token or not self._fetch_page(token):
                self._done = True
                raise StopIteration

        row = self._page.rows[self._index]
        self._index += 1
        return decode_row(self._columns, row)

    def fetch_next(self) -> tuple[Any, ...] | None:
        return next(self, None)

    def _fetch_page(self, token: str | None) -> bool:
        """Fetch a page and make it current. False when there is nothing left to read."""
        if self._cancel.cancelled:
            raise CallerCancelled(self._cancel.reason(), query_id=self._query_id)

        try:
            page = self._client.get_result_page(self._query_id, token, self._page_size)
        except Error:
            raise
        except Exception as e:
            raise FetchError(
                f"failed to fetch results of query {self._query_id}: {e}", query_id=self._query_id
            ) from e

        start = 0
        if self._first_fetch:
            self._first_fetch = False
            self._columns = page.columns
            if self._skip_header and page.rows:
                start = 1

        self._page = page
        self._index = start
        logger.debug(
            "Fetched %d rows of Athena query %s (more: %s)",
            len(page.rows) - start,
            self._query_id,
            bool(page.next_token),
        )
        return start < len(page.rows) or bool(page.next_token)

    @property
    def query_id(self) -> str:
        return self._query_id

    @property
    def columns(self) -> list[str]:
        return [column.name for column in self._columns]

    @property
    def column_info(self) -> list[ColumnInfo]:
        return list(self._columns)

    def column_type(self, index: int) -> str:
        """Athena's declared type of a column, or "" when unknown."""
        if 0 <= index < len(self._columns):
            return self._columns[index].type or ""
        return ""

    @property
    def exhausted(self) -> bool:
        return self._done

    def close(self) -> None:
        self._done = True
