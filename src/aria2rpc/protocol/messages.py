"""JSON-RPC 2.0 envelopes and the inbound decoder for aria2."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

import orjson

JSONRPC_VERSION = "2.0"
TOKEN_PREFIX = "token:"
NOTIFICATION_NAMESPACE = "aria2"

# Push events aria2 sends over the WebSocket channel.
NOTIFICATION_EVENTS = (
    "onDownloadStart",
    "onDownloadPause",
    "onDownloadStop",
    "onDownloadComplete",
    "onDownloadError",
    "onBtDownloadComplete",
)
NOTIFICATION_METHODS = {
    f"{NOTIFICATION_NAMESPACE}.{event}": event for event in NOTIFICATION_EVENTS
}

RequestId = Union[str, int]


@dataclass(frozen=True)
class JSONRPCRequest:
    """
    JSON-RPC 2.0 request message.

    The id is always supplied by the caller; this module never allocates ids.
    """

    method: str
    params: list[Any]
    id: RequestId
    jsonrpc: str = field(default=JSONRPC_VERSION, init=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "jsonrpc": self.jsonrpc,
            "method": self.method,
            "params": self.params,
            "id": self.id,
        }

    def to_json(self) -> str:
        """Serialize to the text sent on the wire."""
        return orjson.dumps(self.to_dict()).decode("utf-8")

    def __str__(self) -> str:
        return f"Request({self.method}, id={self.id})"


@dataclass(frozen=True)
class JSONRPCError:
    """JSON-RPC 2.0 error object as sent by the server."""

    code: Any
    message: Any
    data: Any = None

    def to_dict(self) -> dict[str, Any]:
        error: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.data is not None:
            error["data"] = self.data
        return error


@dataclass(frozen=True)
class CorrelatedResponse:
    """A response that answers one of our requests."""

    id: RequestId
    result: Any = None
    error: JSONRPCError | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def __str__(self) -> str:
        if self.is_error:
            return f"Response(id={self.id}, error={self.error.code})"
        return f"Response(id={self.id}, success)"


@dataclass(frozen=True)
class Notification:
    """An unsolicited push event, e.g. ``onDownloadComplete``."""

    event: str
    payload: dict[str, Any]

    @property
    def method(self) -> str:
        return f"{NOTIFICATION_NAMESPACE}.{self.event}"

    @property
    def gid(self) -> str:
        return self.payload["gid"]

    def __str__(self) -> str:
        return f"Notification({self.event}, gid={self.gid})"


@dataclass(frozen=True)
class Unrecognized:
    """Inbound data that is neither a response nor a known notification."""

    raw: Any
    reason: str


InboundMessage = Union[CorrelatedResponse, Notification, Unrecognized]


def format_token(secret: str) -> str:
    return f"{TOKEN_PREFIX}{secret}"


def encode_request(
    method: str,
    params: list[Any] | tuple[Any, ...],
    request_id: RequestId,
    secret: str | None = None,
) -> JSONRPCRequest:
    """
    Build a request envelope.

    Args:
        method: Full RPC method name, e.g. ``aria2.addUri``.
        params: Positional arguments.
        request_id: Identifier allocated by the caller.
        secret: If set, ``token:<secret>`` is prepended to the params.
    """
    positional = list(params)
    if secret:
        positional.insert(0, format_token(secret))
    return JSONRPCRequest(method=method, params=positional, id=request_id)


def encode_multicall_entry(
    method: str,
    params: list[Any] | tuple[Any, ...],
    secret: str | None = None,
) -> dict[str, Any]:
    """Build one ``{methodName, params}`` struct for ``system.multicall``."""
    positional = list(params)
    if secret:
        positional.insert(0, format_token(secret))
    return {"methodName": method, "params": positional}


def decode_inbound(raw: str | bytes) -> InboundMessage:
    """
    Classify a raw inbound message.

    Never raises: malformed data is returned as ``Unrecognized`` so the
    receive loop keeps running.
    """
    try:
        data = orjson.loads(raw)
    except (orjson.JSONDecodeError, TypeError) as e:
        return Unrecognized(raw=raw, reason=f"not JSON: {e}")

    if not isinstance(data, dict):
        return Unrecognized(raw=data, reason="not an object")

    if "id" in data:
        return _decode_response(data)

    return _decode_notification(data)


def _is_valid_id(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, (str, int, float))


def _decode_response(data: dict[str, Any]) -> InboundMessage:
    if data.get("jsonrpc") != JSONRPC_VERSION:
        return Unrecognized(raw=data, reason="missing or wrong jsonrpc version")

    request_id = data["id"]
    if not _is_valid_id(request_id):
        return Unrecognized(raw=data, reason="id is not a string or number")

    error = data.get("error")
    if error is not None:
        if not isinstance(error, dict):
            return Unrecognized(raw=data, reason="error is not an object")
        return CorrelatedResponse(
            id=request_id,
            error=JSONRPCError(
                code=error.get("code"),
                message=error.get("message"),
                data=error.get("data"),
            ),
        )

    if "result" not in data:
        return Unrecognized(raw=data, reason="neither result nor error present")

    return CorrelatedResponse(id=request_id, result=data["result"])


def _decode_notification(data: dict[str, Any]) -> InboundMessage:
    method = data.get("method")
    event = NOTIFICATION_METHODS.get(method) if isinstance(method, str) else None
    if event is None:
        return Unrecognized(raw=data, reason="unknown method")

    params = data.get("params")
    if not isinstance(params, list) or not params:
        return Unrecognized(raw=data, reason="notification without params")

    payload = params[0]
    if not isinstance(payload, dict) or not isinstance(payload.get("gid"), str):
        return Unrecognized(raw=data, reason="notification payload without gid")

    return Notification(event=event, payload=payload)
