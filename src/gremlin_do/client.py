"""
GremlinClient - WebSocket client for Gremlin Server.

The client turns scripts into request messages, sends them (or queues them
until the connection is open), and routes every response frame back to the
MessageStream of the request it answers.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections import deque
from dataclasses import replace
from types import TracebackType
from typing import Any, AsyncIterator, Callable

from .command import AUTHENTICATION_OP, Command, build_authentication, build_command
from .config import get_config
from .errors import ConnectionClosedError, GremlinError, SerializationError, ServerError
from .protocol import decode_frame, format_message
from .stream import MessageStream, collect, execute_handler, iterate_results
from .transport import Transport, WebSocketTransport, build_ws_url, create_ssl_context
from .types import (
    ClientEvent,
    ClientOptions,
    ConnectionState,
    ResponseStatus,
    ResultCallback,
    Script,
)

__all__ = ["GremlinClient", "connect"]

logger = logging.getLogger(__name__)

_EVENTS = ("connect", "disconnect", "error")


class GremlinClient:
    """
    WebSocket client for Gremlin Server.

    Scripts submitted before the connection is open are queued and sent in
    submission order once it opens. Closing the connection fails every
    pending request with ConnectionClosedError. A closed client is not
    reconnected; create a new one instead.

    Example:
        async with GremlinClient(8182, "localhost") as client:
            # All results at once
            count = await client.execute("g.V().count()")

            # One value at a time
            async for vertex in client.stream("g.V().limit(n)", {"n": 10}):
                print(vertex)
    """

    __slots__ = (
        "port",
        "host",
        "options",
        "session_id",
        "_state",
        "_queue",
        "_commands",
        "_last_authentication_request_id",
        "_transport",
        "_listeners",
    )

    def __init__(
        self,
        port: int | None = None,
        host: str | None = None,
        *,
        transport: Transport | None = None,
        **options: Any,
    ) -> None:
        """
        Initialize the client. No connection is made until ``open()``.

        Args:
            port: Server port (default from configuration, 8182)
            host: Server host (default from configuration, "localhost")
            transport: Transport to use (default: WebSocketTransport)
            **options: ClientOptions fields overriding the configuration,
                e.g. ``session=True`` or ``language="gremlin-groovy"``

        Raises:
            TypeError: If an unknown option is given
        """
        config = get_config()
        self.port = port or config.port
        self.host = host or config.host
        self.options: ClientOptions = replace(config.options, **options)

        self.session_id: str | None = (
            str(uuid.uuid1()) if self.options.session else None
        )

        self._state = ConnectionState.DISCONNECTED
        self._queue: deque[Command] = deque()
        self._commands: dict[str, Command] = {}
        self._last_authentication_request_id: str | None = None
        self._transport = transport or WebSocketTransport()
        self._listeners: dict[str, list[Callable[..., Any]]] = {
            event: [] for event in _EVENTS
        }

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def url(self) -> str:
        """The WebSocket URL of the server."""
        return build_ws_url(self.host, self.port, self.options.path, self.options.ssl)

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def pending_count(self) -> int:
        """Number of requests still waiting for a terminal response."""
        return len(self._commands)

    @property
    def queued_count(self) -> int:
        """Number of requests waiting for the connection to open."""
        return len(self._queue)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, event: ClientEvent, listener: Callable[..., Any]) -> None:
        """
        Register a listener for a client event.

        Events:
            connect: the connection opened and queued requests were sent
            disconnect: the connection closed; called with the close detail
            error: the transport reported an error; called with the error
        """
        if event not in self._listeners:
            raise ValueError(f"Unknown event: {event!r}")
        self._listeners[event].append(listener)

    def off(self, event: ClientEvent, listener: Callable[..., Any]) -> None:
        """Remove a listener registered with ``on()``."""
        if event not in self._listeners:
            raise ValueError(f"Unknown event: {event!r}")
        if listener in self._listeners[event]:
            self._listeners[event].remove(listener)

    def _emit(self, event: str, *args: Any) -> None:
        for listener in list(self._listeners[event]):
            listener(*args)

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def open(self) -> None:
        """
        Open the connection to the server.

        Raises:
            TransportError: If the connection cannot be established. Any
                queued requests have already been failed at that point.
        """
        ssl = None
        if self.options.ssl:
            ssl = create_ssl_context(self.options.reject_unauthorized)
        await self._transport.open(self.url, self, ssl=ssl)

    async def close(self) -> None:
        """Close the connection, failing every pending request.

        Also fails queued requests on a client that was never opened.
        """
        await self._transport.close()
        if self._state is not ConnectionState.CLOSED:
            # The transport had no connection to report closed
            self.on_close({"code": 1000, "reason": ""})

    def on_open(self) -> None:
        """Flag the client as connected and send queued requests in order."""
        self._state = ConnectionState.CONNECTED

        queued = list(self._queue)
        self._queue.clear()
        if queued:
            logger.debug("Sending %d queued requests", len(queued))
        for command in queued:
            self._transmit(command)

        self._emit("connect")

    def on_close(self, detail: dict[str, Any]) -> None:
        """Fail every pending request with ConnectionClosedError."""
        self._state = ConnectionState.CLOSED
        self._cancel_pending_commands(
            ConnectionClosedError("Connection closed", details=detail)
        )
        self._emit("disconnect", detail)

    def on_error(self, error: Exception) -> None:
        """Report a transport error. Pending requests are not affected."""
        logger.warning("Transport error: %s", error)
        self._emit("error", error)

    def _cancel_pending_commands(self, error: GremlinError) -> None:
        commands = self._commands
        self._queue.clear()
        self._commands = {}
        self._last_authentication_request_id = None

        if commands:
            logger.debug("Cancelling %d pending requests: %s", len(commands), error)
        for command in commands.values():
            command.stream.fail(error)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def on_message(self, frame: str | bytes) -> None:
        """
        Route one response frame to the request it answers.

        Frames for unknown or already completed requests are ignored.
        """
        try:
            envelope, payload = decode_frame(frame)
        except SerializationError as e:
            logger.warning("Dropping malformed frame: %s", e)
            return

        if self._last_authentication_request_id is not None:
            # Authentication challenges do not always echo the request id
            request_id = self._last_authentication_request_id
            self._last_authentication_request_id = None
        else:
            request_id = envelope.request_id

        command = self._commands.get(request_id) if request_id else None
        if command is None:
            logger.debug("No pending request for response %s", request_id)
            return

        status_code = envelope.status.code
        stream = command.stream

        if status_code == ResponseStatus.SUCCESS:
            del self._commands[request_id]
            stream.push(payload)
            stream.push(None)
        elif status_code == ResponseStatus.NO_CONTENT:
            del self._commands[request_id]
            stream.push(None)
        elif status_code == ResponseStatus.PARTIAL_CONTENT:
            stream.push(payload)
        else:
            del self._commands[request_id]
            stream.fail(ServerError(envelope.status.message or "", status_code))

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    def build_command(
        self,
        script: Script,
        bindings: dict[str, Any] | None = None,
        message: dict[str, Any] | None = None,
    ) -> Command:
        """Build a Command using this client's options and session."""
        return build_command(
            script,
            bindings,
            message,
            options=self.options,
            session_id=self.session_id,
        )

    def send_command(self, command: Command) -> None:
        """
        Send a command, or queue it until the connection opens.

        The command is registered for response routing in both cases.
        """
        self._commands[command.request_id] = command

        if command.op == AUTHENTICATION_OP:
            self._last_authentication_request_id = command.request_id

        if self._state is ConnectionState.CONNECTED:
            self._transmit(command)
            return

        if self._state is ConnectionState.CLOSED:
            logger.warning(
                "Request %s queued on a closed client; it will not be sent",
                command.request_id,
            )
        self._queue.append(command)

    def _transmit(self, command: Command) -> None:
        try:
            data = format_message(command.message)
        except SerializationError as e:
            logger.warning("Cannot send request %s: %s", command.request_id, e)
            self._commands.pop(command.request_id, None)
            command.stream.fail(e)
            return

        logger.debug("Sending request %s (op=%s)", command.request_id, command.op)
        self._transport.send(data)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def message_stream(
        self,
        script: Script,
        bindings: dict[str, Any] | None = None,
        message: dict[str, Any] | None = None,
    ) -> MessageStream:
        """
        Execute a script and return the raw response frames.

        Each item is a whole response frame, including its status and
        metadata. Intended for advanced usage; see ``stream()`` for
        individual results.
        """
        command = self.build_command(script, bindings, message)
        self.send_command(command)
        return command.stream

    def stream(
        self,
        script: Script,
        bindings: dict[str, Any] | None = None,
        message: dict[str, Any] | None = None,
    ) -> AsyncIterator[Any]:
        """
        Execute a script and yield its results one by one.

        A response frame carrying a batch of results produces one item per
        result. Errors are raised as StreamError.

        Example:
            async for name in client.stream("g.V().values('name')"):
                print(name)
        """
        return iterate_results(self.message_stream(script, bindings, message))

    def execute(
        self,
        script: Script,
        bindings: dict[str, Any] | None = None,
        message: dict[str, Any] | None = None,
        callback: ResultCallback | None = None,
    ) -> asyncio.Task[Any]:
        """
        Execute a script and gather all of its results.

        Without a callback, await the returned task to get the list of
        results; errors are raised. With a callback, the client's
        ``execute_handler`` calls ``callback(error, results)`` exactly once.

        Example:
            results = await client.execute("g.V().count()")

            client.execute("g.V().count()", callback=lambda err, res: ...)
        """
        stream = self.message_stream(script, bindings, message)
        if callback is None:
            return asyncio.ensure_future(collect(stream))
        handler = self.options.execute_handler or execute_handler
        return asyncio.ensure_future(handler(stream, callback))

    def authenticate(self, username: str, password: str) -> asyncio.Task[Any]:
        """
        Send SASL PLAIN credentials to the server.

        The response to the next frame received is routed to this request,
        whatever request id the server puts on it.
        """
        command = build_authentication(
            username,
            password,
            options=self.options,
            session_id=self.session_id,
        )
        self.send_command(command)
        return asyncio.ensure_future(collect(command.stream))

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    async def __aenter__(self) -> GremlinClient:
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"GremlinClient({self.url}, {self._state.value})"


async def connect(
    host: str | None = None,
    port: int | None = None,
    **options: Any,
) -> GremlinClient:
    """
    Connect to a Gremlin Server.

    Args:
        host: Server host (default from configuration)
        port: Server port (default from configuration)
        **options: Client options, see GremlinClient

    Returns:
        Connected GremlinClient instance

    Example:
        client = await connect("localhost", 8182, session=True)
        results = await client.execute("x = 1")
        results = await client.execute("x + 1")  # [2]
        await client.close()
    """
    client = GremlinClient(port, host, **options)
    await client.open()
    return client
