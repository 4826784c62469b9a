import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Any
from urllib.parse import parse_qs

from .errors import InterfaceError

DEFAULT_POLL_FREQUENCY = timedelta(seconds=1)
DEFAULT_POLL_RETRY_INCREMENT = timedelta(milliseconds=300)
DEFAULT_MAX_RETRY_DURATION = timedelta(seconds=3)

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": timedelta(microseconds=0.001),
    "us": timedelta(microseconds=1),
    "µs": timedelta(microseconds=1),
    "ms": timedelta(milliseconds=1),
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
}


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``5s``, ``300ms`` or ``1m30s``."""
    text = text.strip()
    if text == "0":
        return timedelta(0)
    position = 0
    total = timedelta(0)
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()
    if position == 0 or position != len(text):
        raise ValueError(f"invalid duration {text!r}")
    return total


@dataclass
class AthenaConfig:
    """Settings consumed by a connection.

    Attributes:
        database: Athena database the query runs in
        output_location: S3 location Athena writes results to, e.g.
            ``s3://bucket/prefix``; may be omitted when the workgroup
            enforces its own
        catalog: Data catalog, Athena's default when unset
        workgroup: Workgroup, Athena's default when unset
        region: AWS region for the boto3 client
        aws_access_key_id: Static credentials; the boto3 default chain is
            used when unset
        aws_secret_access_key: Static credentials
        session: A ready ``boto3.Session``, takes precedence over the
            region and credential fields
        poll_frequency: Wait before the second status poll
        poll_retry_increment: Added to the wait after every poll
        max_retry_duration: Upper bound of the wait between polls. A bound
            below poll_frequency is raised to it by validate(), whichever way
            the config was built
    """

    database: str
    output_location: str | None = None
    catalog: str | None = None
    workgroup: str | None = None
    region: str | None = None
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    session: Any = None
    poll_frequency: timedelta = DEFAULT_POLL_FREQUENCY
    poll_retry_increment: timedelta = DEFAULT_POLL_RETRY_INCREMENT
    max_retry_duration: timedelta = DEFAULT_MAX_RETRY_DURATION

    def validate(self) -> "AthenaConfig":
        if not self.database:
            raise InterfaceError("db is required")
        if self.poll_frequency <= timedelta(0):
            raise InterfaceError("poll_frequency must be positive")
        if self.poll_retry_increment < timedelta(0):
            raise InterfaceError("poll_retry_increment must not be negative")
        if self.max_retry_duration < self.poll_frequency:
            self.max_retry_duration = self.poll_frequency
        return self

    @classmethod
    def from_connection_string(cls, conn_str: str) -> "AthenaConfig":
        """Build a config from URI query parameters.

        Example::

            db=default&output_location=s3://results&region=us-east-1&poll_frequency=2s

        Recognised keys: ``db``, ``output_location``, ``poll_frequency``,
        ``work_group``, ``data_catalog``, ``region``, ``aws_access_key_id``
        and ``aws_access_key_secret``.
        """
        args = {key: values[-1] for key, values in parse_qs(conn_str).items()}

        config = cls(
            database=args.get("db", ""),
            output_location=args.get("output_location") or None,
            catalog=args.get("data_catalog") or None,
            workgroup=args.get("work_group") or None,
            region=args.get("region") or None,
            aws_access_key_id=args.get("aws_access_key_id") or None,
            aws_secret_access_key=args.get("aws_access_key_secret") or None,
        )

        frequency = args.get("poll_frequency")
        if frequency:
            try:
                config.poll_frequency = parse_duration(frequency)
            except ValueError:
                raise InterfaceError(f"invalid poll_frequency parameter: {frequency}") from None

        return config.validate()
