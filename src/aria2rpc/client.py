"""High-level aria2 client."""

from __future__ import annotations

from typing import Any, Callable

from aria2rpc.config import DEFAULT_ENDPOINT, DEFAULT_TIMEOUT_MS, ClientConfig
from aria2rpc.methods import (
    DownloadMethods,
    GlobalMethods,
    StatusMethods,
    SystemMethods,
)
from aria2rpc.protocol.client import (
    NotificationHandler,
    RPCClient,
    TransportFactory,
)
from aria2rpc.protocol.errors import Aria2Error
from aria2rpc.protocol.state import ConnectionPhase


class Aria2Client(DownloadMethods, StatusMethods, GlobalMethods, SystemMethods):
    """
    Typed client for aria2's JSON-RPC interface over WebSocket.

    Example:
        async with Aria2Client("ws://localhost:6800/jsonrpc", secret="s3cret") as aria2:
            gid = await aria2.add_uri(["https://example.com/file.iso"])
            status = await aria2.tell_status(gid)

    The connection opens on the first call. Once it closes, whether by
    ``close()`` or by the server, the client stays closed; build a new one
    to reconnect.
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        *,
        secret: str | None = None,
        timeout: int = DEFAULT_TIMEOUT_MS,
        headers: dict[str, str] | None = None,
        config: ClientConfig | None = None,
        transport_factory: TransportFactory | None = None,
    ):
        """
        Initialize the client.

        Args:
            endpoint: ``ws://`` or ``wss://`` URL of the RPC endpoint.
            secret: aria2 ``--rpc-secret``.
            timeout: Per-call timeout in milliseconds.
            headers: Extra handshake headers.
            config: Complete configuration; overrides the other settings.
            transport_factory: Builds the transport, mainly for tests.

        Raises:
            Aria2Error: CONFIGURATION kind for invalid settings.
        """
        if config is None:
            config = ClientConfig(
                endpoint=endpoint,
                secret=secret,
                timeout=timeout,
                headers=dict(headers or {}),
            )
        self.config = config
        self.rpc = RPCClient(config, transport_factory=transport_factory)

    @property
    def phase(self) -> ConnectionPhase:
        return self.rpc.phase

    @property
    def is_open(self) -> bool:
        return self.rpc.is_open

    @property
    def is_closed(self) -> bool:
        return self.rpc.is_closed

    async def open(self) -> None:
        """Connect ahead of the first call."""
        await self.rpc.open()

    async def close(self) -> None:
        """Close the connection and fail every pending call."""
        await self.rpc.close()

    def on_notification(
        self,
        event: str,
        handler: NotificationHandler,
    ) -> Callable[[], None]:
        """
        Subscribe to a push event such as ``onDownloadComplete``.

        Returns:
            A callable removing the subscription.
        """
        return self.rpc.on_notification(event, handler)

    async def call(self, method: str, params: list[Any] | None = None) -> Any:
        """Invoke any aria2 method by name and return its raw result."""
        return await self._call(method, list(params or []))

    async def _call(self, method: str, params: list[Any]) -> Any:
        try:
            return await self.rpc.call(method, params)
        except Aria2Error as e:
            if e.method is None:
                e.method = method
            raise

    async def __aenter__(self) -> "Aria2Client":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"Aria2Client({self.config.endpoint!r}, phase={self.phase.name})"
