from .connection import Connection
from .connector import Connector, connect, create_client
from .cursor import Cursor
from .execution import ExecutionCoordinator, ExecutionState, QueryExecution, poll_intervals
from .rows import MAX_RESULTS, ResultRows
from .rowtype import ResultMetadata, describe_as_result_metadata

__all__ = [
    "Connection",
    "Connector",
    "Cursor",
    "ExecutionCoordinator",
    "ExecutionState",
    "MAX_RESULTS",
    "QueryExecution",
    "ResultMetadata",
    "ResultRows",
    "connect",
    "create_client",
    "describe_as_result_metadata",
    "poll_intervals",
]
