from .cancel import CancelToken
from .codec import AthenaDate
from .config import AthenaConfig
from .connector import Connection, Connector, Cursor, connect
from .connector.rowtype import BINARY, DATETIME, NUMBER, ROWID, STRING
from .decorators import mock_athena
from .errors import (
    CallerCancelled,
    DatabaseError,
    DataError,
    Error,
    ExecutionCancelledByEngine,
    ExecutionFailed,
    FetchError,
    IntegrityError,
    InterfaceError,
    InternalError,
    NotSupportedError,
    OperationalError,
    ParameterEncodingError,
    PollError,
    ProgrammingError,
    SubmissionError,
    UnsupportedOperation,
    UnsupportedValueTypeError,
    Warning,
)
from .patch import patch_athena

apilevel = "2.0"
threadsafety = 1
paramstyle = "qmark"

__all__ = [
    "AthenaConfig",
    "AthenaDate",
    "BINARY",
    "CallerCancelled",
    "CancelToken",
    "Connection",
    "Connector",
    "Cursor",
    "DATETIME",
    "DataError",
    "DatabaseError",
    "Error",
    "ExecutionCancelledByEngine",
    "ExecutionFailed",
    "FetchError",
    "IntegrityError",
    "InterfaceError",
    "InternalError",
    "NUMBER",
    "NotSupportedError",
    "OperationalError",
    "ParameterEncodingError",
    "PollError",
    "ProgrammingError",
    "ROWID",
    "STRING",
    "SubmissionError",
    "UnsupportedOperation",
    "UnsupportedValueTypeError",
    "Warning",
    "apilevel",
    "connect",
    "mock_athena",
    "paramstyle",
    "patch_athena",
    "threadsafety",
]
