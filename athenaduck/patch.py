from collections.abc import Iterator
from contextlib import contextmanager
from unittest.mock import patch as mock_patch

from .mock import DuckDBAthenaClient


@contextmanager
def patch_athena(db_file: str = ":memory:") -> Iterator[DuckDBAthenaClient]:
    """
    Context manager that points connections opened inside it at DuckDB.

    ``athenaduck.connect(...)`` calls without an explicit ``client`` get a
    shared :class:`DuckDBAthenaClient` instead of a boto3 Athena client.

    Args:
        db_file: Path to DuckDB database file. Use ':memory:' for in-memory (default),
                 or provide a file path for persistent storage (e.g., 'test_data.duckdb').

    Yields:
        The DuckDB-backed client, e.g. for seeding tables through ``duck_conn``.
    """
    client = DuckDBAthenaClient(db_file=db_file)
    with mock_patch("athenaduck.connector.connector.create_client", return_value=client):
        try:
            yield client
        finally:
            client.close()
