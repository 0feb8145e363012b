"""Integration tests for NimiqRPC against a local JSON-RPC server."""

import pytest
from aiohttp import web
from aiohttp import test_utils

from cartridge.services.nimiq_rpc import (
    NimiqRPC,
    RpcNotFoundError,
    RpcProtocolError,
    RpcTransportError,
)


def _node_app(replies: dict, received: list) -> web.Application:
    """Fake node answering each method with a canned reply."""

    async def handler(request: web.Request) -> web.Response:
        body = await request.json()
        received.append(body)
        reply = replies[body["method"]]
        if isinstance(reply, web.Response):
            return reply
        return web.json_response({"jsonrpc": "2.0", "id": body["id"], **reply})

    app = web.Application()
    app.router.add_post("/", handler)
    return app


class TestNimiqRPCHttp:
    """Tests for NimiqRPC.call over HTTP."""

    @pytest.mark.asyncio
    async def test_envelope_and_result(self):
        received = []
        app = _node_app({"getBlockNumber": {"result": {"data": 1234}}}, received)

        async with test_utils.TestServer(app) as server:
            async with NimiqRPC(str(server.make_url("/"))) as rpc:
                assert await rpc.head_height() == 1234
                assert await rpc.head_height() == 1234

        assert received[0]["jsonrpc"] == "2.0"
        assert received[0]["method"] == "getBlockNumber"
        assert received[0]["params"] == {}
        assert received[1]["id"] == received[0]["id"] + 1

    @pytest.mark.asyncio
    async def test_rpc_error_object(self):
        app = _node_app(
            {"getBlockByNumber": {"error": {"code": -32602, "message": "Invalid params"}}}, []
        )

        async with test_utils.TestServer(app) as server:
            async with NimiqRPC(str(server.make_url("/"))) as rpc:
                with pytest.raises(RpcProtocolError) as exc_info:
                    await rpc.call("getBlockByNumber", [1, True])

        assert exc_info.value.code == -32602

    @pytest.mark.asyncio
    async def test_not_found_error_message(self):
        app = _node_app(
            {"getTransactionByHash": {"error": {"code": -32000, "message": "Transaction not found"}}}, []
        )

        async with test_utils.TestServer(app) as server:
            async with NimiqRPC(str(server.make_url("/"))) as rpc:
                with pytest.raises(RpcNotFoundError):
                    await rpc.transaction_by_hash("h1")

    @pytest.mark.asyncio
    async def test_method_not_found_is_protocol_error(self):
        app = _node_app(
            {"getTransactionByHash": {"error": {"code": -32601, "message": "Method not found"}}}, []
        )

        async with test_utils.TestServer(app) as server:
            async with NimiqRPC(str(server.make_url("/"))) as rpc:
                with pytest.raises(RpcProtocolError) as exc_info:
                    await rpc.transaction_by_hash("h1")

        assert not isinstance(exc_info.value, RpcNotFoundError)
        assert exc_info.value.code == -32601

    @pytest.mark.asyncio
    async def test_block_not_found_message(self):
        app = _node_app(
            {"getBlockByNumber": {"error": {"code": -32000, "message": "Block not found"}}}, []
        )

        async with test_utils.TestServer(app) as server:
            async with NimiqRPC(str(server.make_url("/"))) as rpc:
                with pytest.raises(RpcNotFoundError):
                    await rpc.call("getBlockByNumber", [5, True])

    @pytest.mark.asyncio
    async def test_http_status_is_transport_error(self):
        app = _node_app({"getBlockNumber": web.Response(status=502, text="bad gateway")}, [])

        async with test_utils.TestServer(app) as server:
            async with NimiqRPC(str(server.make_url("/"))) as rpc:
                with pytest.raises(RpcTransportError) as exc_info:
                    await rpc.head_height()

        assert exc_info.value.code == 502

    @pytest.mark.asyncio
    async def test_non_json_body_is_transport_error(self):
        app = _node_app({"getBlockNumber": web.Response(text="<html>oops</html>")}, [])

        async with test_utils.TestServer(app) as server:
            async with NimiqRPC(str(server.make_url("/"))) as rpc:
                with pytest.raises(RpcTransportError):
                    await rpc.head_height()

    @pytest.mark.asyncio
    async def test_unreachable_node(self, unused_tcp_port):
        async with NimiqRPC(f"http://127.0.0.1:{unused_tcp_port}/", timeout=2) as rpc:
            with pytest.raises(RpcTransportError):
                await rpc.head_height()
