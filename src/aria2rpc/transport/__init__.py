"""
Transport layer.

A transport is the physical channel to aria2: one WebSocket connection
carrying text frames.
"""

from aria2rpc.transport.types import TransportEvent, TransportEventType
from aria2rpc.transport.base import (
    Transport,
    TransportError,
    ConnectError,
    HandshakeRejected,
    NotConnectedError,
)
from aria2rpc.transport.websocket import WebSocketTransport

__all__ = [
    "Transport",
    "TransportEvent",
    "TransportEventType",
    "TransportError",
    "ConnectError",
    "HandshakeRejected",
    "NotConnectedError",
    "WebSocketTransport",
]
