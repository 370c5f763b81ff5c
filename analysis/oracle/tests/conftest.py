"""Fixtures for oracle tests: in-memory feed clients and a loopback JSON-RPC node."""

import asyncio
import socket
import time
from contextlib import asynccontextmanager
from decimal import Decimal

import pytest
from aiohttp import web

from oracle.registry import EndpointRegistry, NetworkEndpoint
from oracle.service import OracleService


class Delayed:
    """Feed behaviour that answers after a delay."""

    def __init__(self, seconds, response):
        self.seconds = seconds
        self.response = response


class FakeFeedClient:
    """FeedClient answering from a per-network behaviour table.

    A behaviour is a response tuple, an exception to raise, a Delayed, or a
    callable taking the call count and returning one of those.
    """

    def __init__(self, endpoint, behaviours):
        self.network = endpoint.network
        self.behaviours = behaviours
        self.calls = 0

    async def latest_round_data(self, address):
        self.calls += 1
        behaviour = self.behaviours.get(self.network)
        if callable(behaviour):
            behaviour = behaviour(self.calls)
        if isinstance(behaviour, Delayed):
            await asyncio.sleep(behaviour.seconds)
            behaviour = behaviour.response
        if isinstance(behaviour, BaseException):
            raise behaviour
        return behaviour


LATEST_ROUND_DATA = "0xfeaf968c"
DECIMALS = "0x313ce567"


class JsonRpcNode:
    """Loopback JSON-RPC node serving canned answers.

    `answers` maps a method name, or "eth_call:<selector>", to the result. An
    int answer is sent back as that HTTP status with no body.
    """

    def __init__(self, answers):
        self.answers = {"eth_chainId": "0x1", **answers}
        self.methods = []

    async def handle(self, request):
        payload = await request.json()
        method = payload["method"]
        if method == "eth_call":
            call = payload["params"][0]
            data = call.get("data") or call.get("input")
            method = f"eth_call:{data[:10]}"
        self.methods.append(method)

        if method not in self.answers:
            return web.json_response({
                "jsonrpc": "2.0",
                "id": payload["id"],
                "error": {"code": -32601, "message": f"unsupported {method}"},
            })
        answer = self.answers[method]
        if isinstance(answer, int):
            return web.Response(status=answer)
        return web.json_response({"jsonrpc": "2.0", "id": payload["id"], "result": answer})


def abi_words(*values):
    """ABI-encode unsigned ints as 32-byte words."""
    return "0x" + "".join(f"{v:064x}" for v in values)


def make_quote(price, decimals=8, updated_at=None):
    """Raw (answer, updatedAt, decimals) for a human-readable price."""
    raw = int(Decimal(str(price)).scaleb(decimals))
    return raw, updated_at if updated_at is not None else int(time.time()), decimals


@pytest.fixture
def quote():
    return make_quote


@pytest.fixture
def registry():
    return EndpointRegistry([
        NetworkEndpoint("A", "http://a.invalid", {"ETH_USD": "0x000000000000000000000000000000000000000a"}),
        NetworkEndpoint("B", "http://b.invalid", {"ETH_USD": "0x000000000000000000000000000000000000000b"}),
        NetworkEndpoint("C", "http://c.invalid", {"ETH_USD": "0x000000000000000000000000000000000000000c"}),
    ])


@pytest.fixture
def fake_factory():
    """Build a client factory over a behaviour table; records created clients."""

    def build(behaviours):
        created = []

        def factory(endpoint):
            client = FakeFeedClient(endpoint, behaviours)
            created.append(client)
            return client

        factory.created = created
        return factory

    return build


@pytest.fixture
def make_service(registry, fake_factory):
    """OracleService over the A/B/C registry answering from a behaviour table."""

    def build(behaviours, **kwargs):
        kwargs.setdefault("call_timeout_ms", 200)
        return OracleService(registry, client_factory=fake_factory(behaviours), **kwargs)

    return build


@pytest.fixture
def delayed():
    return Delayed


@pytest.fixture
def rpc_node():
    """Start a JsonRpcNode on 127.0.0.1; yields (url, node) inside the running loop."""

    @asynccontextmanager
    async def serve(answers):
        node = JsonRpcNode(answers)
        app = web.Application()
        app.router.add_post("/", node.handle)
        runner = web.AppRunner(app)
        await runner.setup()
        site = web.TCPSite(runner, "127.0.0.1", 0)
        await site.start()
        host, port = runner.addresses[0][:2]
        try:
            yield f"http://{host}:{port}/", node
        finally:
            await runner.cleanup()

    return serve


@pytest.fixture
def closed_port_url():
    """URL of a loopback port nothing listens on."""
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    return f"http://127.0.0.1:{port}/"


@pytest.fixture
def chainlink_answers():
    """Node answers for an aggregator reporting `answer` at `updated_at`."""

    def build(answer, updated_at, decimals=8):
        return {
            f"eth_call:{LATEST_ROUND_DATA}": abi_words(7, answer, updated_at, updated_at, 7),
            f"eth_call:{DECIMALS}": abi_words(decimals),
        }

    return build
