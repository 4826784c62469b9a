"""Exceptions raised by the Athena driver.

The module follows the PEP 249 hierarchy. Each failure of the query
lifecycle gets its own subclass so callers can tell an engine-side SQL
error apart from a local submission or encoding problem.
"""

from __future__ import annotations


class Warning(Exception):  # noqa: A001
    pass


class Error(Exception):
    """Base class of all driver errors.

    Attributes:
        msg: Human readable message, returned verbatim by ``str()``
        query_id: Athena query execution id, when one was assigned
    """

    def __init__(self, msg: str, query_id: str | None = None) -> None:
        super().__init__(msg)
        self.msg = msg
        self.query_id = query_id

    def __str__(self) -> str:
        return self.msg


class InterfaceError(Error):
    pass


class DatabaseError(Error):
    pass


class DataError(DatabaseError):
    pass


class OperationalError(DatabaseError):
    pass


class IntegrityError(DatabaseError):
    pass


class InternalError(DatabaseError):
    pass


class ProgrammingError(DatabaseError):
    pass


class NotSupportedError(DatabaseError):
    pass


class SubmissionError(OperationalError):
    """Athena rejected or could not accept the query."""


class ParameterEncodingError(ProgrammingError):
    """A bound parameter has no Athena literal representation."""


class UnsupportedValueTypeError(ParameterEncodingError):
    """The codec has no conversion for the parameter's runtime type."""

    def __init__(self, name: str, value: object) -> None:
        self.name = name
        self.value_type = type(value)
        super().__init__(
            f"cannot convert parameter {name} to an Athena literal, "
            f"unsupported type: {self.value_type.__name__}"
        )


class PollError(OperationalError):
    """The status check RPC failed. Never retried."""


class ExecutionFailed(DatabaseError):
    """The query reached the FAILED state. The message is Athena's reason."""


class ExecutionCancelledByEngine(OperationalError):
    """The query reached the CANCELLED state without the caller asking."""


class CallerCancelled(OperationalError):
    """The caller's cancel token fired, or its deadline passed."""


class FetchError(OperationalError):
    """A result page RPC failed."""


class UnsupportedOperation(NotSupportedError):
    """Athena has no transactions and no prepared statements."""
