"""Events emitted by the WebSocket transport."""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any


class TransportEventType(Enum):
    """
    Lifecycle and traffic events of one aria2 connection.

    Data carried per type:
        CONNECTING: ``endpoint``
        MESSAGE_SENT, MESSAGE_RECEIVED: ``size`` of the text frame
        DISCONNECTED: ``code`` and ``reason`` of the close handshake
        ERROR: no data; the exception is in ``error``
    """

    CONNECTING = auto()
    CONNECTED = auto()
    DISCONNECTING = auto()
    DISCONNECTED = auto()
    MESSAGE_SENT = auto()
    MESSAGE_RECEIVED = auto()
    ERROR = auto()


@dataclass
class TransportEvent:
    type: TransportEventType
    timestamp: float
    data: dict[str, Any] | None = None
    error: Exception | None = None

    def _get(self, key: str) -> Any:
        return (self.data or {}).get(key)

    @property
    def endpoint(self) -> str | None:
        return self._get("endpoint")

    @property
    def size(self) -> int | None:
        """Frame length for MESSAGE_SENT and MESSAGE_RECEIVED."""
        return self._get("size")

    @property
    def close_code(self) -> int | None:
        """WebSocket close code for DISCONNECTED, e.g. 1000 or 1001."""
        return self._get("code")

    @property
    def close_reason(self) -> str | None:
        return self._get("reason")

    def __str__(self) -> str:
        if self.type is TransportEventType.DISCONNECTED:
            return f"[DISCONNECTED] code={self.close_code} reason={self.close_reason!r}"
        base = f"[{self.type.name}]"
        if self.data:
            base += f" {self.data}"
        if self.error:
            base += f" error={self.error}"
        return base
