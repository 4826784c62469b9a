from datetime import timedelta
from typing import Any, Generator, Iterator

import pytest

import athenaduck
from athenaduck import AthenaConfig, CancelToken, Connection
from athenaduck.mock import DuckDBAthenaClient, MockAthenaClient


class RecordingToken(CancelToken):
    """Cancel token that never sleeps and records every requested wait.

    With ``cancel_after`` set, the token fires during that many-th wait.
    """

    def __init__(self, cancel_after: int | None = None) -> None:
        super().__init__()
        self.waits: list[float] = []
        self._cancel_after = cancel_after

    def wait(self, seconds: float) -> bool:
        self.waits.append(seconds)
        if self._cancel_after is not None and len(self.waits) >= self._cancel_after:
            self.cancel()
        return self.cancelled


@pytest.fixture
def config() -> AthenaConfig:
    return AthenaConfig(
        database="analytics",
        output_location="s3://results-bucket/athena/",
        catalog="AwsDataCatalog",
        workgroup="primary",
        poll_frequency=timedelta(milliseconds=1),
        poll_retry_increment=timedelta(milliseconds=1),
        max_retry_duration=timedelta(milliseconds=3),
    )


@pytest.fixture
def mock_client() -> MockAthenaClient:
    return MockAthenaClient()


@pytest.fixture
def conn(config: AthenaConfig, mock_client: MockAthenaClient) -> Generator[Connection, Any, None]:
    with athenaduck.connect(config, client=mock_client) as conn:
        yield conn


@pytest.fixture
def duck_client() -> Iterator[DuckDBAthenaClient]:
    client = DuckDBAthenaClient()
    yield client
    client.close()


@pytest.fixture
def duck_conn(duck_client: DuckDBAthenaClient) -> Generator[Connection, Any, None]:
    with athenaduck.connect(database="analytics", client=duck_client) as conn:
        yield conn


@pytest.fixture
def recording_token() -> type[RecordingToken]:
    return RecordingToken
