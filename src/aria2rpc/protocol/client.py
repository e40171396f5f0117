"""JSON-RPC client: request/response correlation over one connection."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from aria2rpc.protocol.errors import Aria2Error
from aria2rpc.protocol.messages import (
    NOTIFICATION_EVENTS,
    NOTIFICATION_METHODS,
    CorrelatedResponse,
    Notification,
    Unrecognized,
    decode_inbound,
    encode_request,
)
from aria2rpc.protocol.state import (
    ConnectionPhase,
    ConnectionStateMachine,
    StateTransitionCallback,
)
from aria2rpc.transport.base import HandshakeRejected, Transport, TransportError
from aria2rpc.transport.websocket import WebSocketTransport

if TYPE_CHECKING:
    from aria2rpc.config import ClientConfig

logger = logging.getLogger(__name__)

# Type aliases for handlers
NotificationHandler = Callable[[dict[str, Any]], None]
TransportFactory = Callable[["ClientConfig"], Transport]

# multicall carries a token inside each entry instead of a top-level one.
UNAUTHENTICATED_METHODS = frozenset({"system.multicall"})

AUTH_STATUS_CODES = (401, 403)


@dataclass
class PendingCall:
    """One outstanding request awaiting its response."""

    request_id: int
    method: str
    future: asyncio.Future[Any]
    timer: asyncio.TimerHandle


@dataclass(eq=False)
class _Subscription:
    event: str
    handler: NotificationHandler


class RPCClient:
    """
    Multiplexes concurrent JSON-RPC calls onto a single connection.

    The connection is opened lazily on the first call (or by ``open()``)
    and is never reopened: once closed, by ``close()`` or by the peer,
    every call fails immediately with a connectivity error.
    """

    def __init__(
        self,
        config: ClientConfig,
        transport_factory: TransportFactory | None = None,
    ):
        """
        Initialize the client.

        Args:
            config: Validated client configuration.
            transport_factory: Builds the transport on first use. Defaults
                to ``WebSocketTransport``.
        """
        self.config = config
        self._transport_factory = transport_factory or WebSocketTransport

        self._state = ConnectionStateMachine()
        self._transport: Transport | None = None
        self._open_task: asyncio.Task[None] | None = None
        self._receive_task: asyncio.Task[None] | None = None
        self._last_id = 0
        self._pending: dict[int, PendingCall] = {}
        self._subscriptions: dict[str, list[_Subscription]] = {}

    @property
    def phase(self) -> ConnectionPhase:
        """Current connection phase."""
        return self._state.state

    @property
    def is_open(self) -> bool:
        return self._state.is_open

    @property
    def is_closed(self) -> bool:
        return self._state.is_closed

    @property
    def pending_count(self) -> int:
        """Number of calls awaiting a response."""
        return len(self._pending)

    def on_state_change(self, callback: StateTransitionCallback) -> None:
        """Register callback for phase transitions."""
        self._state.on_transition(callback)

    async def open(self) -> None:
        """
        Open the connection ahead of the first call.

        Raises:
            Aria2Error: CONNECTIVITY (or AUTHENTICATION for a 401/403
                handshake) if the connection cannot be opened.
        """
        await self._ensure_open()

    async def call(self, method: str, params: list[Any] | None = None) -> Any:
        """
        Send a request and wait for its result.

        Args:
            method: Full aria2 method name, e.g. ``aria2.tellStatus``.
            params: Positional arguments, without the secret token.

        Returns:
            The raw ``result`` of the response.

        Raises:
            Aria2Error: Exactly one classified error on failure.
        """
        if self._state.is_closed:
            raise Aria2Error.connectivity("Connection is closed")

        await self._ensure_open()

        transport = self._transport
        if transport is None or not self._state.is_open:
            raise Aria2Error.connectivity("Connection closed while opening")

        self._last_id += 1
        request_id = self._last_id
        secret = None if method in UNAUTHENTICATED_METHODS else self.config.secret
        request = encode_request(method, params or [], request_id, secret)

        try:
            payload = request.to_json()
        except TypeError as e:
            raise Aria2Error.validation(
                f"Parameters for {method} are not JSON serializable: {e}"
            ) from e

        loop = asyncio.get_running_loop()
        future: asyncio.Future[Any] = loop.create_future()
        timer = loop.call_later(
            self.config.timeout_seconds, self._expire, request_id
        )
        self._pending[request_id] = PendingCall(
            request_id=request_id,
            method=method,
            future=future,
            timer=timer,
        )

        try:
            try:
                await transport.send(payload)
            except TransportError as e:
                error = Aria2Error.connectivity(f"WebSocket send failed: {e}")
                error.__cause__ = e
                self._settle(request_id, error=error)

            return await future
        finally:
            # Only does anything when the caller's task was cancelled.
            self._discard(request_id)

    async def close(self) -> None:
        """
        Close the connection and reject every pending call.

        Idempotent; the client cannot be used afterwards.
        """
        self._teardown("Connection closed by client")

        task = self._receive_task
        self._receive_task = None
        if (
            task is not None
            and not task.done()
            and task is not asyncio.current_task()
        ):
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        await self._release_transport()

    def on_notification(
        self,
        event: str,
        handler: NotificationHandler,
    ) -> Callable[[], None]:
        """
        Subscribe to a push event.

        Args:
            event: Short name (``onDownloadStart``) or full method name
                (``aria2.onDownloadStart``).
            handler: Called synchronously with the event payload.

        Returns:
            A callable that removes exactly this subscription.

        Raises:
            Aria2Error: VALIDATION kind for unknown event names.
        """
        name = NOTIFICATION_METHODS.get(event, event)
        if name not in NOTIFICATION_EVENTS:
            raise Aria2Error.validation(
                f"Unknown notification {event!r}; expected one of: "
                f"{', '.join(NOTIFICATION_EVENTS)}"
            )

        subscription = _Subscription(event=name, handler=handler)
        self._subscriptions.setdefault(name, []).append(subscription)

        def unsubscribe() -> None:
            subscribers = self._subscriptions.get(name, [])
            if subscription in subscribers:
                subscribers.remove(subscription)

        return unsubscribe

    async def _ensure_open(self) -> None:
        if self._state.is_open:
            return
        if self._state.is_closed:
            raise Aria2Error.connectivity("Connection is closed")

        if self._open_task is None:
            self._open_task = asyncio.create_task(
                self._open(), name="aria2rpc-open"
            )
            self._open_task.add_done_callback(self._open_finished)

        try:
            await asyncio.shield(self._open_task)
        except Aria2Error as e:
            # Every awaiter of a failed attempt gets its own error.
            raise e.clone() from e.__cause__

    @staticmethod
    def _open_finished(task: asyncio.Task[None]) -> None:
        # Marks the exception retrieved even if every awaiter was cancelled.
        if not task.cancelled() and task.exception() is not None:
            logger.debug(f"Open attempt failed: {task.exception()}")

    async def _open(self) -> None:
        if self._state.is_closed:
            self._open_task = None
            raise Aria2Error.connectivity("Connection closed while opening")

        try:
            transport = self._transport_factory(self.config)
        except Exception as e:
            self._fail_open()
            raise Aria2Error.connectivity(
                f"Failed to construct transport: {e}"
            ) from e

        self._transport = transport
        self._state.transition(ConnectionPhase.OPENING)
        logger.debug(f"Opening connection to {self.config.endpoint}")

        try:
            await transport.connect()
        except HandshakeRejected as e:
            self._fail_open()
            await self._release_transport()
            if e.status_code in AUTH_STATUS_CODES:
                error = Aria2Error.authentication(
                    f"Authentication failed: HTTP {e.status_code}",
                    code=e.status_code,
                )
            else:
                error = Aria2Error.connectivity(str(e), data={"status": e.status_code})
            raise error from e
        except Exception as e:
            self._fail_open()
            await self._release_transport()
            raise Aria2Error.connectivity(f"Failed to open connection: {e}") from e

        if self._state.is_closed:
            # close() ran while the handshake was in flight.
            self._open_task = None
            await transport.disconnect()
            raise Aria2Error.connectivity("Connection closed while opening")

        self._state.transition(ConnectionPhase.OPEN)
        self._open_task = None
        self._receive_task = asyncio.create_task(
            self._receive_loop(transport),
            name="aria2rpc-receive-loop",
        )
        logger.debug(f"Connected to {self.config.endpoint}")

    def _fail_open(self) -> None:
        self._open_task = None
        if not self._state.is_closed:
            self._state.transition(ConnectionPhase.CLOSED)

    async def _receive_loop(self, transport: Transport) -> None:
        """Background task dispatching inbound messages."""
        try:
            async for raw in transport.receive():
                self._dispatch(raw)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Receive loop error: {e}")
            self._teardown(f"WebSocket error: {e}", cause=e)
        else:
            code = transport.close_code
            reason = transport.close_reason
            logger.debug(f"Connection closed by server: code={code}, reason={reason}")
            self._teardown(
                f"WebSocket closed: code={code}, reason={reason}",
                data={"code": code, "reason": reason},
            )

        self._receive_task = None
        await self._release_transport()

    def _dispatch(self, raw: str) -> None:
        """Route one inbound message."""
        message = decode_inbound(raw)

        if isinstance(message, CorrelatedResponse):
            self._handle_response(message)
        elif isinstance(message, Notification):
            self._handle_notification(message)
        elif isinstance(message, Unrecognized):
            logger.debug(f"Dropping unrecognized message: {message.reason}")

    def _handle_response(self, response: CorrelatedResponse) -> None:
        if response.id not in self._pending:
            logger.debug(f"No pending request for id: {response.id}")
            return

        if response.is_error:
            self._settle(
                response.id,
                error=Aria2Error.from_fault(response.error.to_dict()),
            )
        else:
            self._settle(response.id, result=response.result)

    def _handle_notification(self, notification: Notification) -> None:
        for subscription in list(self._subscriptions.get(notification.event, [])):
            try:
                subscription.handler(notification.payload)
            except Exception:
                logger.exception(
                    f"Notification handler error for {notification.method}"
                )

    def _settle(
        self,
        request_id: Any,
        result: Any = None,
        error: Aria2Error | None = None,
    ) -> bool:
        """Resolve or reject one pending call. Returns False if unknown."""
        pending = self._pending.pop(request_id, None)
        if pending is None:
            return False

        pending.timer.cancel()
        if not pending.future.done():
            if error is not None:
                pending.future.set_exception(error)
            else:
                pending.future.set_result(result)
        return True

    def _discard(self, request_id: int) -> None:
        pending = self._pending.pop(request_id, None)
        if pending is not None:
            pending.timer.cancel()

    def _expire(self, request_id: int) -> None:
        pending = self._pending.get(request_id)
        if pending is None:
            return
        logger.debug(f"Request {request_id} ({pending.method}) timed out")
        self._settle(request_id, error=Aria2Error.timeout(self.config.timeout))

    def _teardown(
        self,
        reason: str,
        data: Any = None,
        cause: Exception | None = None,
    ) -> None:
        """Close the phase and reject every pending call with its own error."""
        if not self._state.is_closed:
            self._state.transition(ConnectionPhase.CLOSED)

        pending, self._pending = self._pending, {}
        for call in pending.values():
            call.timer.cancel()
            if not call.future.done():
                error = Aria2Error.connectivity(reason, data=data)
                error.__cause__ = cause
                call.future.set_exception(error)

    async def _release_transport(self) -> None:
        transport, self._transport = self._transport, None
        if transport is None:
            return
        try:
            await transport.disconnect()
        except (TransportError, OSError) as e:
            logger.debug(f"Error while releasing transport: {e}")

    async def __aenter__(self) -> "RPCClient":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
