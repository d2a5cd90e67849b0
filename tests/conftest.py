"""Shared pytest fixtures and configuration for pytest."""

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from rpcpipe.core.types import Request

MOCK_URL = "http://rpc.test"

BALANCE_RESULT = {"context": {"slot": 100}, "value": 50}
VERSION_RESULT = {"solana-core": "1.18.0", "feature-set": 4215500110}
BLOCKHASH_RESULT = {
    "context": {"slot": 100},
    "value": {
        "blockhash": "EkSnNWid2cvwEVnVx9aBqawnmiCNiDgp3gUdkDPTKN1N",
        "lastValidBlockHeight": 3090,
    },
}


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: mark test that sleeps in real time")


def node_result(method: str) -> Any:
    """Answer of the mock node for ``method``, or None if it does not know it."""
    return {
        "getBalance": BALANCE_RESULT,
        "getVersion": VERSION_RESULT,
        "getLatestBlockhash": BLOCKHASH_RESULT,
    }.get(method)


def mock_node_handler(request: httpx.Request) -> httpx.Response:
    """An httpx.MockTransport handler behaving like a tiny JSON-RPC node."""
    body = json.loads(request.content)
    result = node_result(body["method"])
    if result is None:
        payload = {
            "jsonrpc": "2.0",
            "id": body["id"],
            "error": {"code": -32601, "message": "Method not found"},
        }
    else:
        payload = {"jsonrpc": "2.0", "id": body["id"], "result": result}
    return httpx.Response(200, json=payload)


class CountingTransport(httpx.MockTransport):
    """MockTransport that records every request it receives."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def bodies(self) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]


@pytest.fixture
def node_transport() -> CountingTransport:
    """A counting transport in front of the mock node."""
    return CountingTransport(mock_node_handler)


@pytest.fixture
def node_client(node_transport: CountingTransport) -> httpx.AsyncClient:
    """An httpx client wired to the mock node."""
    return httpx.AsyncClient(transport=node_transport)


@pytest.fixture
def fn_node() -> Callable[[Request], Any]:
    """An async terminal function answering like the mock node, with a call log."""
    calls: list[Request] = []

    async def node(request: Request) -> Any:
        calls.append(request)
        result = node_result(request.name)
        if result is None:
            raise ValueError(f"unknown method: {request.name}")
        return result

    node.calls = calls  # type: ignore[attr-defined]
    return node


@pytest.fixture
def counting_transport() -> type[CountingTransport]:
    """The CountingTransport class, for tests with their own handlers."""
    return CountingTransport
