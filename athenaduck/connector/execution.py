"""Query execution lifecycle: submit a query, then poll it to a terminal state."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Any

from ..cancel import CancelToken
from ..client import RemoteExecutionClient
from ..codec import encode_parameters
from ..config import AthenaConfig
from ..errors import (
    CallerCancelled,
    Error,
    ExecutionCancelledByEngine,
    ExecutionFailed,
    PollError,
    SubmissionError,
)

logger = logging.getLogger(__name__)


class ExecutionState(str, Enum):
    QUEUED = "QUEUED"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (ExecutionState.SUCCEEDED, ExecutionState.FAILED, ExecutionState.CANCELLED)


@dataclass
class QueryExecution:
    """Handle of one query execution, updated by every status poll."""

    query_id: str
    state: ExecutionState = ExecutionState.QUEUED
    reason: str | None = None
    output_location: str | None = None


def poll_intervals(
    initial: timedelta, increment: timedelta, maximum: timedelta
) -> Iterator[timedelta]:
    """Yield the waits between polls: initial, initial + increment, ... capped at maximum."""
    interval = min(initial, maximum)
    while True:
        yield interval
        interval = min(interval + increment, maximum)


class ExecutionCoordinator:
    """Drives one query at a time from submission to a terminal state.

    Not safe for concurrent use by more than one logical query. The client
    may be shared, it carries no per-query state.
    """

    def __init__(self, client: RemoteExecutionClient, config: AthenaConfig) -> None:
        self._client = client
        self._config = config

    def submit(self, query: str, params: Sequence[Any] | None = None) -> str:
        """Start a query and return its execution id.

        Raises:
            ParameterEncodingError: If a parameter has no Athena literal.
            SubmissionError: If Athena did not accept the query.
        """
        execution_params = encode_parameters(params)
        try:
            query_id = self._client.submit(
                query,
                self._config.database,
                self._config.catalog,
                self._config.output_location,
                self._config.workgroup,
                execution_params,
            )
        except Error:
            raise
        except Exception as e:
            raise SubmissionError(f"failed to start query: {e}") from e

        logger.debug("Submitted Athena query %s", query_id)
        return query_id

    def wait(self, query_id: str, cancel: CancelToken | None = None) -> QueryExecution:
        """Block until the query reaches a terminal state.

        The first status poll is immediate; later ones follow
        :func:`poll_intervals`. Cancelling the token stops the remote query
        (best effort) and raises :class:`CallerCancelled`.
        """
        cancel = cancel or CancelToken()
        execution = QueryExecution(query_id=query_id)
        intervals = poll_intervals(
            self._config.poll_frequency,
            self._config.poll_retry_increment,
            self._config.max_retry_duration,
        )

        while True:
            if cancel.cancelled:
                self._stop(query_id)
                raise CallerCancelled(cancel.reason(), query_id=query_id)

            try:
                status = self._client.get_status(query_id)
            except Exception as e:
                raise PollError(f"failed to get status of query {query_id}: {e}", query_id=query_id) from e

            try:
                state = ExecutionState(status.state)
            except ValueError:
                raise PollError(
                    f"unknown state {status.state!r} for query {query_id}", query_id=query_id
                ) from None

            if state != execution.state:
                logger.debug("Athena query %s is %s", query_id, state.value)
            execution.state = state
            execution.reason = status.reason
            execution.output_location = status.output_location or execution.output_location

            if state == ExecutionState.SUCCEEDED:
                return execution
            if state == ExecutionState.FAILED:
                raise ExecutionFailed(status.reason or f"query {query_id} failed", query_id=query_id)
            if state == ExecutionState.CANCELLED:
                raise ExecutionCancelledByEngine(
                    status.reason or f"query {query_id} was cancelled", query_id=query_id
                )

            if cancel.wait(next(intervals).total_seconds()):
                self._stop(query_id)
                raise CallerCancelled(cancel.reason(), query_id=query_id)

    def run(
        self,
        query: str,
        params: Sequence[Any] | None = None,
        cancel: CancelToken | None = None,
    ) -> QueryExecution:
        return self.wait(self.submit(query, params), cancel)

    def _stop(self, query_id: str) -> None:
        # Best effort: a failed stop is logged, never raised.
        try:
            self._client.stop(query_id)
        except Exception as e:
            logger.warning("Failed to stop Athena query %s: %s", query_id, e)
        else:
            logger.debug("Requested stop of Athena query %s", query_id)
