"""
JSON-RPC protocol core.

Implements the aria2 envelope codec, the error taxonomy, the connection
phase machine and request/response correlation.
"""

from aria2rpc.protocol.errors import (
    Aria2Error,
    ErrorKind,
    AUTHENTICATION_FAILED,
    INVALID_METHOD,
    INVALID_PARAMS,
    MALFORMED_RESULT,
)
from aria2rpc.protocol.messages import (
    JSONRPCRequest,
    JSONRPCError,
    CorrelatedResponse,
    Notification,
    Unrecognized,
    NOTIFICATION_EVENTS,
    encode_request,
    encode_multicall_entry,
    decode_inbound,
)
from aria2rpc.protocol.state import (
    ConnectionPhase,
    ConnectionStateMachine,
    InvalidStateTransition,
)
from aria2rpc.protocol.client import RPCClient, PendingCall

__all__ = [
    # Errors
    "Aria2Error",
    "ErrorKind",
    "AUTHENTICATION_FAILED",
    "INVALID_METHOD",
    "INVALID_PARAMS",
    "MALFORMED_RESULT",
    # Messages
    "JSONRPCRequest",
    "JSONRPCError",
    "CorrelatedResponse",
    "Notification",
    "Unrecognized",
    "NOTIFICATION_EVENTS",
    "encode_request",
    "encode_multicall_entry",
    "decode_inbound",
    # State
    "ConnectionPhase",
    "ConnectionStateMachine",
    "InvalidStateTransition",
    # Client
    "RPCClient",
    "PendingCall",
]
