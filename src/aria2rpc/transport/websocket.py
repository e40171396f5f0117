"""WebSocket transport for aria2's JSON-RPC endpoint."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, AsyncIterator

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import (
    ConnectionClosed,
    ConnectionClosedError,
    InvalidStatus,
    WebSocketException,
)
from websockets.protocol import State

from aria2rpc.transport.base import (
    ConnectError,
    HandshakeRejected,
    NotConnectedError,
    Transport,
    TransportError,
)
from aria2rpc.transport.types import TransportEventType

if TYPE_CHECKING:
    from aria2rpc.config import ClientConfig

# aria2 status lists for large queues easily exceed the 1 MiB default.
MAX_MESSAGE_SIZE = 16 * 1024 * 1024


class WebSocketTransport(Transport):
    """
    One WebSocket connection to aria2.

    The handshake carries ``config.headers``. Opening is bounded by the
    configured call timeout.
    """

    def __init__(self, config: ClientConfig):
        super().__init__(config)
        self._ws: ClientConnection | None = None
        self._close_code: int | None = None
        self._close_reason: str | None = None

    async def connect(self) -> None:
        if self._ws is not None:
            return

        self._emit_event(
            TransportEventType.CONNECTING,
            data={"endpoint": self.config.endpoint},
        )

        try:
            self._ws = await connect(
                self.config.endpoint,
                additional_headers=self.config.headers or None,
                open_timeout=self.config.timeout_seconds,
                max_size=MAX_MESSAGE_SIZE,
            )
        except InvalidStatus as e:
            status = e.response.status_code
            self._emit_event(TransportEventType.ERROR, error=e)
            raise HandshakeRejected(status, cause=e) from e
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            self._emit_event(TransportEventType.ERROR, error=e)
            raise ConnectError(
                f"Failed to connect to {self.config.endpoint}: {e}", cause=e
            ) from e

        self._emit_event(TransportEventType.CONNECTED)

    async def disconnect(self) -> None:
        """Close the WebSocket. Safe to call multiple times."""
        ws = self._ws
        if ws is None:
            return
        self._ws = None

        self._emit_event(TransportEventType.DISCONNECTING)
        await ws.close()
        self._record_close(ws)
        self._emit_event(
            TransportEventType.DISCONNECTED,
            data={"code": self._close_code, "reason": self._close_reason},
        )

    async def send(self, message: str) -> None:
        if self._ws is None:
            raise NotConnectedError("Transport not connected")

        try:
            await self._ws.send(message)
        except ConnectionClosed as e:
            raise TransportError(f"WebSocket send failed: {e}", cause=e) from e

        self._emit_event(TransportEventType.MESSAGE_SENT, data={"size": len(message)})

    async def receive(self) -> AsyncIterator[str]:
        ws = self._ws
        if ws is None:
            raise NotConnectedError("Transport not connected")

        try:
            async for frame in ws:
                if isinstance(frame, bytes):
                    frame = frame.decode("utf-8", errors="replace")
                self._emit_event(
                    TransportEventType.MESSAGE_RECEIVED, data={"size": len(frame)}
                )
                yield frame
        except ConnectionClosedError as e:
            self._record_close(ws)
            self._emit_event(TransportEventType.ERROR, error=e)
            raise TransportError(
                f"WebSocket closed abnormally: code={self._close_code}, "
                f"reason={self._close_reason}",
                cause=e,
            ) from e

        self._record_close(ws)

    def is_connected(self) -> bool:
        return self._ws is not None and self._ws.state is State.OPEN

    @property
    def close_code(self) -> int | None:
        return self._close_code

    @property
    def close_reason(self) -> str | None:
        return self._close_reason

    def _record_close(self, ws: ClientConnection) -> None:
        if ws.close_code is not None:
            self._close_code = ws.close_code
            self._close_reason = ws.close_reason
