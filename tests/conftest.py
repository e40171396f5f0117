"""Pytest configuration and fixtures."""

from __future__ import annotations

import asyncio
from typing import Any, AsyncIterator

import orjson
import pytest
import pytest_asyncio

from aria2rpc import Aria2Client, ClientConfig, RPCClient
from aria2rpc.transport import Transport, TransportError

# Async test support
pytest_plugins = ["pytest_asyncio"]

ENDPOINT = "ws://localhost:6800/jsonrpc"
SECRET = "s3cr3t"


class _Close:
    def __init__(self, code: int | None, reason: str | None):
        self.code = code
        self.reason = reason


class FakeTransport(Transport):
    """In-memory transport; tests push inbound frames and read what was sent."""

    def __init__(
        self,
        config: ClientConfig,
        connect_error: Exception | None = None,
        connect_gate: asyncio.Event | None = None,
    ):
        super().__init__(config)
        self.connect_error = connect_error
        self.connect_gate = connect_gate
        self.fail_sends = False
        self.connected = False
        self.connect_calls = 0
        self.disconnect_calls = 0
        self.sent: list[str] = []
        self._read = 0
        self._inbound: asyncio.Queue | None = None
        self._close_code: int | None = None
        self._close_reason: str | None = None

    @property
    def inbound(self) -> asyncio.Queue:
        if self._inbound is None:
            self._inbound = asyncio.Queue()
        return self._inbound

    async def connect(self) -> None:
        self.connect_calls += 1
        if self.connect_gate is not None:
            await self.connect_gate.wait()
        if self.connect_error is not None:
            raise self.connect_error
        self.connected = True

    async def disconnect(self) -> None:
        self.disconnect_calls += 1
        self.connected = False

    async def send(self, message: str) -> None:
        if self.fail_sends:
            raise TransportError("socket is gone")
        self.sent.append(message)

    async def receive(self) -> AsyncIterator[str]:
        while True:
            item = await self.inbound.get()
            if isinstance(item, _Close):
                self._close_code = item.code
                self._close_reason = item.reason
                return
            if isinstance(item, Exception):
                raise item
            yield item

    def is_connected(self) -> bool:
        return self.connected

    @property
    def close_code(self) -> int | None:
        return self._close_code

    @property
    def close_reason(self) -> str | None:
        return self._close_reason

    # Test helpers

    def push(self, message: Any) -> None:
        """Queue an inbound frame; non-strings are JSON encoded."""
        if not isinstance(message, str):
            message = orjson.dumps(message).decode()
        self.inbound.put_nowait(message)

    def push_close(self, code: int | None = 1000, reason: str | None = "") -> None:
        self.inbound.put_nowait(_Close(code, reason))

    def push_error(self, error: Exception) -> None:
        self.inbound.put_nowait(error)

    def reply(self, request: dict[str, Any], result: Any = None) -> None:
        self.push({"jsonrpc": "2.0", "id": request["id"], "result": result})

    def fault(self, request: dict[str, Any], code: int, message: str) -> None:
        self.push(
            {
                "jsonrpc": "2.0",
                "id": request["id"],
                "error": {"code": code, "message": message},
            }
        )

    @property
    def requests(self) -> list[dict[str, Any]]:
        return [orjson.loads(message) for message in self.sent]

    async def next_request(self, timeout: float = 1.0) -> dict[str, Any]:
        """Wait for the next outbound request not yet returned."""

        async def wait() -> None:
            while len(self.sent) <= self._read:
                await asyncio.sleep(0)

        await asyncio.wait_for(wait(), timeout)
        request = orjson.loads(self.sent[self._read])
        self._read += 1
        return request


class FakeTransportFactory:
    """Transport factory recording every transport it builds."""

    def __init__(self, **kwargs: Any):
        self.kwargs = kwargs
        self.instances: list[FakeTransport] = []

    def __call__(self, config: ClientConfig) -> FakeTransport:
        transport = FakeTransport(config, **self.kwargs)
        self.instances.append(transport)
        return transport

    @property
    def transport(self) -> FakeTransport:
        return self.instances[-1]

    async def wait_for_transport(self, timeout: float = 1.0) -> FakeTransport:
        async def wait() -> None:
            while not self.instances:
                await asyncio.sleep(0)

        await asyncio.wait_for(wait(), timeout)
        return self.transport


async def drain(rounds: int = 10) -> None:
    """Let the receive loop process everything queued so far."""
    for _ in range(rounds):
        await asyncio.sleep(0)


async def answer(transport: FakeTransport, result: Any) -> dict[str, Any]:
    """Reply to the next request with ``result`` and return the request."""
    request = await transport.next_request()
    transport.reply(request, result)
    return request


@pytest.fixture
def config():
    return ClientConfig(endpoint=ENDPOINT, secret=SECRET, timeout=1000)


@pytest.fixture
def factory():
    return FakeTransportFactory()


@pytest_asyncio.fixture
async def rpc(config, factory):
    client = RPCClient(config, transport_factory=factory)
    yield client
    await client.close()


@pytest_asyncio.fixture
async def aria2(factory):
    client = Aria2Client(
        ENDPOINT,
        secret=SECRET,
        timeout=1000,
        transport_factory=factory,
    )
    await client.open()
    yield client
    await client.close()


@pytest.fixture
def status_payload():
    """A complete tellStatus result as aria2 sends it."""
    return {
        "gid": "2089b05ecca3d829",
        "status": "active",
        "totalLength": "34896138",
        "completedLength": "34896138",
        "uploadLength": "0",
        "bitfield": "ffff",
        "downloadSpeed": "1024",
        "uploadSpeed": "0",
        "connections": "1",
        "dir": "/downloads",
        "files": [
            {
                "index": "1",
                "path": "/downloads/file.zip",
                "length": "34896138",
                "completedLength": "34896138",
                "selected": "true",
                "uris": [
                    {"uri": "https://x/file.zip", "status": "used"},
                    {"uri": "https://x/file.zip", "status": "waiting"},
                ],
            }
        ],
    }
