from typing import Any

from ..client import AthenaClient, RemoteExecutionClient
from ..config import AthenaConfig
from .connection import Connection


def create_client(config: AthenaConfig) -> RemoteExecutionClient:
    """Build the remote client used when none is injected."""
    return AthenaClient.from_config(config)


class Connector:
    def __init__(
        self,
        config: AthenaConfig,
        client: RemoteExecutionClient | None = None,
    ):
        """
        Initializes the connector factory.

        Args:
            config: Validated settings shared by every connection.
            client: Remote client to use. Built from the config when omitted.
                All connections created by this connector share it.
        """
        self._config = config.validate()
        self._client = client if client is not None else create_client(self._config)

    def connect(self, **kwargs: Any) -> Connection:
        """
        Create a new connection that shares the connector's remote client.
        """
        return Connection(client=self._client, config=self._config, **kwargs)

    @property
    def client(self) -> RemoteExecutionClient:
        return self._client


def connect(
    config: AthenaConfig | str | None = None,
    *,
    client: RemoteExecutionClient | None = None,
    page_size: int | None = None,
    **kwargs: Any,
) -> Connection:
    """
    Open a connection.

    Args:
        config: An ``AthenaConfig`` or a connection string such as
            ``"db=default&output_location=s3://results&region=us-east-1"``.
            When omitted, ``kwargs`` are the ``AthenaConfig`` fields.
        client: Remote client to use instead of a boto3 Athena client.
        page_size: Rows requested per result page.
    """
    if config is None:
        config = AthenaConfig(**kwargs)
    elif isinstance(config, str):
        config = AthenaConfig.from_connection_string(config)

    connection_kwargs = {} if page_size is None else {"page_size": page_size}
    return Connector(config, client=client).connect(**connection_kwargs)
