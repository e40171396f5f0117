"""Tests for the WebSocket transport against a local server."""

import asyncio
from http import HTTPStatus

import orjson
import pytest
from websockets.asyncio.server import serve

from aria2rpc import Aria2Error, ClientConfig, ErrorKind, RPCClient
from aria2rpc.transport import (
    ConnectError,
    HandshakeRejected,
    NotConnectedError,
    TransportError,
    TransportEventType,
    WebSocketTransport,
)


def endpoint_of(server) -> str:
    host, port = server.sockets[0].getsockname()[:2]
    return f"ws://{host}:{port}/jsonrpc"


async def echo(ws):
    async for message in ws:
        await ws.send(message)


class TestWebSocketTransport:
    """Tests for WebSocketTransport."""

    @pytest.mark.asyncio
    async def test_round_trip(self):
        async with serve(echo, "127.0.0.1", 0) as server:
            config = ClientConfig(endpoint=endpoint_of(server))
            async with WebSocketTransport(config) as transport:
                assert transport.is_connected()
                await transport.send('{"hello": "aria2"}')
                frames = transport.receive()
                assert await frames.__anext__() == '{"hello": "aria2"}'
            assert not transport.is_connected()

    @pytest.mark.asyncio
    async def test_event_emission(self):
        async with serve(echo, "127.0.0.1", 0) as server:
            transport = WebSocketTransport(ClientConfig(endpoint=endpoint_of(server)))
            events = []
            transport.on_event(lambda e: events.append(e))

            await transport.connect()
            await transport.send("ping")
            await transport.receive().__anext__()
            await transport.disconnect()

        event_types = [e.type for e in events]
        assert event_types == [
            TransportEventType.CONNECTING,
            TransportEventType.CONNECTED,
            TransportEventType.MESSAGE_SENT,
            TransportEventType.MESSAGE_RECEIVED,
            TransportEventType.DISCONNECTING,
            TransportEventType.DISCONNECTED,
        ]
        sent = events[2]
        assert sent.size == len("ping")
        assert events[0].endpoint == transport.config.endpoint

    @pytest.mark.asyncio
    async def test_handshake_headers(self):
        seen = {}

        def process_request(connection, request):
            seen["x-client"] = request.headers.get("X-Client")
            return None

        async with serve(
            echo, "127.0.0.1", 0, process_request=process_request
        ) as server:
            config = ClientConfig(
                endpoint=endpoint_of(server),
                headers={"X-Client": "aria2rpc-tests"},
            )
            async with WebSocketTransport(config):
                pass

        assert seen["x-client"] == "aria2rpc-tests"

    @pytest.mark.asyncio
    async def test_rejected_handshake(self):
        def process_request(connection, request):
            return connection.respond(HTTPStatus.UNAUTHORIZED, "Unauthorized\n")

        async with serve(
            echo, "127.0.0.1", 0, process_request=process_request
        ) as server:
            transport = WebSocketTransport(ClientConfig(endpoint=endpoint_of(server)))
            with pytest.raises(HandshakeRejected) as exc_info:
                await transport.connect()

        assert exc_info.value.status_code == 401
        assert not transport.is_connected()

    @pytest.mark.asyncio
    async def test_connection_refused(self):
        async with serve(echo, "127.0.0.1", 0) as server:
            endpoint = endpoint_of(server)

        transport = WebSocketTransport(ClientConfig(endpoint=endpoint, timeout=1000))
        with pytest.raises(ConnectError):
            await transport.connect()

    @pytest.mark.asyncio
    async def test_clean_close_ends_receive(self):
        async def goodbye(ws):
            await ws.close(1001, "going away")

        async with serve(goodbye, "127.0.0.1", 0) as server:
            transport = WebSocketTransport(ClientConfig(endpoint=endpoint_of(server)))
            events = []
            transport.on_event(events.append)
            await transport.connect()
            frames = [frame async for frame in transport.receive()]
            await transport.disconnect()

        assert frames == []
        assert transport.close_code == 1001
        assert transport.close_reason == "going away"

        (disconnected,) = [
            e for e in events if e.type is TransportEventType.DISCONNECTED
        ]
        assert disconnected.close_code == 1001
        assert disconnected.close_reason == "going away"
        assert "code=1001" in str(disconnected)

    @pytest.mark.asyncio
    async def test_abnormal_close_raises(self):
        async def abort(ws):
            ws.transport.abort()
            await asyncio.sleep(0)

        async with serve(abort, "127.0.0.1", 0) as server:
            transport = WebSocketTransport(ClientConfig(endpoint=endpoint_of(server)))
            await transport.connect()
            with pytest.raises(TransportError, match="closed abnormally"):
                async for _ in transport.receive():
                    pass
            await transport.disconnect()

    @pytest.mark.asyncio
    async def test_send_requires_connection(self):
        transport = WebSocketTransport(ClientConfig(endpoint="ws://127.0.0.1:1/jsonrpc"))
        with pytest.raises(NotConnectedError):
            await transport.send("{}")

    @pytest.mark.asyncio
    async def test_disconnect_is_idempotent(self):
        async with serve(echo, "127.0.0.1", 0) as server:
            transport = WebSocketTransport(ClientConfig(endpoint=endpoint_of(server)))
            await transport.connect()
            await transport.disconnect()
            await transport.disconnect()
        assert not transport.is_connected()


def fake_aria2(secret):
    """A tiny aria2 stand-in answering getVersion and announcing a download."""

    async def handler(ws):
        async for message in ws:
            request = orjson.loads(message)
            params = request["params"]
            if not params or params[0] != f"token:{secret}":
                reply = {
                    "jsonrpc": "2.0",
                    "id": request["id"],
                    "error": {"code": 1, "message": "Unauthorized"},
                }
            elif request["method"] == "aria2.getVersion":
                reply = {
                    "jsonrpc": "2.0",
                    "id": request["id"],
                    "result": {"version": "1.37.0", "enabledFeatures": []},
                }
            else:
                await ws.send(
                    orjson.dumps(
                        {
                            "jsonrpc": "2.0",
                            "method": "aria2.onDownloadStart",
                            "params": [{"gid": "2089b05ecca3d829"}],
                        }
                    ).decode()
                )
                reply = {
                    "jsonrpc": "2.0",
                    "id": request["id"],
                    "result": "2089b05ecca3d829",
                }
            await ws.send(orjson.dumps(reply).decode())

    return handler


class TestEndToEnd:
    """RPCClient over a real socket."""

    @pytest.mark.asyncio
    async def test_call_and_notification(self):
        async with serve(fake_aria2("s3cr3t"), "127.0.0.1", 0) as server:
            config = ClientConfig(endpoint=endpoint_of(server), secret="s3cr3t")
            async with RPCClient(config) as rpc:
                started = []
                rpc.on_notification("onDownloadStart", started.append)

                version = await rpc.call("aria2.getVersion")
                gid = await rpc.call("aria2.addUri", [["https://x/file.zip"]])

        assert version["version"] == "1.37.0"
        assert gid == "2089b05ecca3d829"
        assert started == [{"gid": "2089b05ecca3d829"}]

    @pytest.mark.asyncio
    async def test_wrong_secret(self):
        async with serve(fake_aria2("s3cr3t"), "127.0.0.1", 0) as server:
            config = ClientConfig(endpoint=endpoint_of(server), secret="wrong")
            async with RPCClient(config) as rpc:
                with pytest.raises(Aria2Error) as exc_info:
                    await rpc.call("aria2.getVersion")

        assert exc_info.value.kind is ErrorKind.AUTHENTICATION

    @pytest.mark.asyncio
    async def test_server_shutdown_fails_pending_calls(self):
        async def silent_then_close(ws):
            await ws.recv()
            await ws.close(1001, "shutting down")

        async with serve(silent_then_close, "127.0.0.1", 0) as server:
            config = ClientConfig(endpoint=endpoint_of(server))
            rpc = RPCClient(config)
            with pytest.raises(Aria2Error) as exc_info:
                await rpc.call("aria2.getVersion")
            await rpc.close()

        assert exc_info.value.kind is ErrorKind.CONNECTIVITY
        assert exc_info.value.data == {"code": 1001, "reason": "shutting down"}
