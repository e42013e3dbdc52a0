"""
gremlin-do - asyncio WebSocket client for Gremlin Server.

This package sends Gremlin scripts to a Gremlin Server and routes the
responses back to the requests that produced them, with support for:
- Requests queued until the connection opens
- Multi-frame (partial content) responses
- Collected, incremental, and raw-frame result styles
- Session mode and binary request framing

Example usage:
    from gremlin_do import connect

    async def main():
        client = await connect("localhost", 8182)

        # All results at once
        count = await client.execute("g.V().count()")
        print(count)  # [6]

        # One result at a time, with bound parameters
        async for name in client.stream(
            "g.V().hasLabel(label).values('name')", {"label": "person"}
        ):
            print(name)

        await client.close()

    import asyncio
    asyncio.run(main())
"""

from __future__ import annotations

__version__ = "0.1.0"

from .client import GremlinClient, connect
from .command import Command, build_command, extract_function_body
from .config import configure, configure_from_env, get_config
from .errors import (
    ErrorCode,
    GremlinError,
    TransportError,
    ConnectionClosedError,
    ServerError,
    StreamError,
    SerializationError,
    ScriptError,
    is_error_code,
)
from .protocol import pack_binary, unpack_binary
from .stream import MessageStream
from .transport import Transport, WebSocketTransport
from .types import ClientOptions, ConnectionState, GremlinConfig, ResponseStatus

__all__ = [
    # Main API
    "connect",
    "GremlinClient",
    "MessageStream",
    "Command",
    "build_command",
    "extract_function_body",
    # Transports
    "Transport",
    "WebSocketTransport",
    # Wire format
    "pack_binary",
    "unpack_binary",
    # Configuration
    "configure",
    "configure_from_env",
    "get_config",
    "ClientOptions",
    "GremlinConfig",
    "ConnectionState",
    "ResponseStatus",
    # Errors
    "ErrorCode",
    "GremlinError",
    "TransportError",
    "ConnectionClosedError",
    "ServerError",
    "StreamError",
    "SerializationError",
    "ScriptError",
    "is_error_code",
    # Version
    "__version__",
]
