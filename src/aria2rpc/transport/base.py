"""Abstract base transport and error types."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, AsyncIterator, Callable

from aria2rpc.transport.types import TransportEvent, TransportEventType

if TYPE_CHECKING:
    from aria2rpc.config import ClientConfig

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """Base exception for transport errors."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class ConnectError(TransportError):
    """Failed to establish connection to server."""

    pass


class HandshakeRejected(ConnectError):
    """The server answered the opening handshake with an HTTP error."""

    def __init__(
        self,
        status_code: int,
        message: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(
            message or f"Handshake rejected with HTTP {status_code}",
            cause=cause,
        )
        self.status_code = status_code


class NotConnectedError(TransportError):
    """Operation requires an open connection."""

    pass


class Transport(ABC):
    """
    Abstract base class for the physical channel to aria2.

    A transport carries text frames in both directions over exactly one
    connection. It knows nothing about JSON-RPC; correlation happens in
    ``aria2rpc.protocol.client.RPCClient``.
    """

    def __init__(self, config: ClientConfig):
        self.config = config
        self._event_handlers: list[Callable[[TransportEvent], None]] = []

    def on_event(self, handler: Callable[[TransportEvent], None]) -> None:
        """
        Register an event handler for transport events.

        Args:
            handler: Callback invoked when transport events occur.
        """
        self._event_handlers.append(handler)

    def _emit_event(
        self,
        event_type: TransportEventType,
        data: dict[str, Any] | None = None,
        error: Exception | None = None,
    ) -> None:
        event = TransportEvent(
            type=event_type,
            timestamp=time.time(),
            data=data,
            error=error,
        )
        for handler in self._event_handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(f"Transport event handler failed for {event}")

    @abstractmethod
    async def connect(self) -> None:
        """
        Open the connection. Returns once it is ready to send.

        Raises:
            ConnectError: If the connection cannot be established.
            HandshakeRejected: If the server refuses the handshake.
        """

    @abstractmethod
    async def disconnect(self) -> None:
        """
        Close the connection and release resources.

        Safe to call multiple times.
        """

    @abstractmethod
    async def send(self, message: str) -> None:
        """
        Send one text frame.

        Raises:
            NotConnectedError: If the connection is not open.
            TransportError: If the frame cannot be written.
        """

    @abstractmethod
    def receive(self) -> AsyncIterator[str]:
        """
        Async iterator over inbound text frames.

        The iterator ends when the peer closes the connection cleanly and
        raises ``TransportError`` on an abnormal close or socket error.
        """

    @abstractmethod
    def is_connected(self) -> bool:
        """Check if the connection is open."""

    @property
    def close_code(self) -> int | None:
        """Close code reported by the peer, once closed."""
        return None

    @property
    def close_reason(self) -> str | None:
        """Close reason reported by the peer, once closed."""
        return None

    async def __aenter__(self) -> "Transport":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.disconnect()
