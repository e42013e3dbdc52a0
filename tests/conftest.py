"""
Pytest configuration and fixtures for gremlin-do tests.

This module provides fixtures for:
- A fake transport that records sent frames and injects responses
- Clients wired to the fake transport or to the mock server
- Loading the YAML dispatch conformance cases
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, AsyncGenerator

import pytest
import yaml

from gremlin_do import GremlinClient
from gremlin_do.config import reset_config
from gremlin_do.protocol import unpack_binary
from gremlin_do.transport import Transport, TransportHandler

from .mock_server import MockGremlinServer

CONFORMANCE_DIR = Path(__file__).parent / "conformance"


class FakeTransport(Transport):
    """Transport that records frames instead of sending them.

    Events are injected by the test with ``reply()``, ``drop()`` and
    ``error()``.
    """

    def __init__(self) -> None:
        self.sent: list[str | bytes] = []
        self.handler: TransportHandler | None = None
        self.url: str | None = None
        self.ssl: Any = None
        self.closed = False

    async def open(self, url: str, handler: TransportHandler, *, ssl: Any = None) -> None:
        self.url = url
        self.ssl = ssl
        self.handler = handler
        handler.on_open()

    def send(self, data: str | bytes) -> None:
        self.sent.append(data)

    async def close(self) -> None:
        if self.closed or self.handler is None:
            return
        self.closed = True
        self.handler.on_close({"code": 1000, "reason": ""})

    @property
    def messages(self) -> list[dict[str, Any]]:
        """Sent frames decoded back into request messages."""
        decoded = []
        for data in self.sent:
            if isinstance(data, bytes):
                decoded.append(unpack_binary(data)[1])
            else:
                decoded.append(json.loads(data))
        return decoded

    def reply(
        self,
        request_id: str | None,
        code: int,
        data: Any = None,
        message: str = "",
    ) -> None:
        """Deliver a response frame to the client."""
        assert self.handler is not None
        frame = {
            "requestId": request_id,
            "status": {"code": code, "message": message, "attributes": {}},
            "result": {"data": data, "meta": {}},
        }
        self.handler.on_message(json.dumps(frame))

    def drop(self, code: int = 1006, reason: str = "going away") -> None:
        """Simulate the connection closing."""
        assert self.handler is not None
        self.closed = True
        self.handler.on_close({"code": code, "reason": reason})

    def error(self, error: Exception) -> None:
        assert self.handler is not None
        self.handler.on_error(error)


# ============================================================================
# Unit Test Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def default_config():
    """Start every test from the built-in configuration."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def client(transport: FakeTransport) -> GremlinClient:
    """A client that has not connected yet."""
    return GremlinClient(transport=transport)


@pytest.fixture
async def connected_client(client: GremlinClient) -> AsyncGenerator[GremlinClient, None]:
    """A client whose connection is open."""
    await client.open()
    yield client
    await client.close()


@pytest.fixture
def server() -> MockGremlinServer:
    """Mock server with a few canned scripts."""
    return MockGremlinServer(
        scripts={
            "1+1": [2],
            "g.V().count()": [6],
            "g.V().values('name')": ["marko", "vadas", "lop", "josh", "ripple", "peter"],
            "g.V().drop()": [],
            "x": lambda scope: [scope.get("x")],
            "x + y": lambda scope: [scope["x"] + scope["y"]],
        },
        batch_size=2,
    )


@pytest.fixture
async def server_client(server: MockGremlinServer) -> AsyncGenerator[GremlinClient, None]:
    """A client connected to the mock server."""
    client = GremlinClient(transport=server)
    await client.open()
    yield client
    await client.close()


# ============================================================================
# Conformance Cases
# ============================================================================


def load_dispatch_cases(spec_dir: Path) -> list[dict[str, Any]]:
    """Load all dispatch conformance cases from YAML files."""
    cases = []
    if not spec_dir.exists():
        return cases

    for spec_file in sorted(spec_dir.glob("*.yaml")):
        with open(spec_file) as f:
            spec = yaml.safe_load(f)
            if spec and "tests" in spec:
                for case in spec["tests"]:
                    case["_file"] = spec_file.name
                    case["_category"] = spec.get("name", spec_file.stem)
                    cases.append(case)
    return cases


def pytest_generate_tests(metafunc):
    """Generate test cases from the conformance YAML files."""
    if "dispatch_case" in metafunc.fixturenames:
        cases = load_dispatch_cases(CONFORMANCE_DIR)
        metafunc.parametrize(
            "dispatch_case",
            cases,
            ids=[f"{c.get('_category', 'case')}::{c['name']}" for c in cases],
        )
