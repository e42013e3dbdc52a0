"""
Transports deliver raw frames between a GremlinClient and the server.

A transport opens the socket, sends frames, and reports open, message,
close and error events to a handler. Events are delivered one at a time
from a single reader task, so the handler never runs concurrently with
itself.
"""

from __future__ import annotations

import asyncio
import logging
import ssl as ssl_module
from abc import ABC, abstractmethod
from typing import Any, Protocol

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI

from .errors import wrap_error

__all__ = [
    "Transport",
    "TransportHandler",
    "WebSocketTransport",
    "build_ws_url",
    "create_ssl_context",
]

logger = logging.getLogger(__name__)

# Close code used when no close frame was received
ABNORMAL_CLOSURE = 1006


def build_ws_url(host: str, port: int, path: str = "", ssl: bool = False) -> str:
    """
    Build the WebSocket URL for a Gremlin Server.

    Args:
        host: Server host name or address
        port: Server port
        path: URL path, e.g. "/gremlin"
        ssl: Use the secure ``wss://`` scheme

    Returns:
        WebSocket URL for the server
    """
    scheme = "wss://" if ssl else "ws://"
    return f"{scheme}{host}:{port}{path}"


def create_ssl_context(reject_unauthorized: bool = False) -> ssl_module.SSLContext:
    """TLS context for ``wss://`` connections.

    Certificate and host name checks are disabled unless
    ``reject_unauthorized`` is set.
    """
    context = ssl_module.create_default_context()
    if not reject_unauthorized:
        context.check_hostname = False
        context.verify_mode = ssl_module.CERT_NONE
    return context


class TransportHandler(Protocol):
    """Receiver of transport events."""

    def on_open(self) -> None:
        ...

    def on_message(self, frame: str | bytes) -> None:
        ...

    def on_close(self, detail: dict[str, Any]) -> None:
        ...

    def on_error(self, error: Exception) -> None:
        ...


class Transport(ABC):
    """Abstract base class for transports."""

    @abstractmethod
    async def open(
        self,
        url: str,
        handler: TransportHandler,
        *,
        ssl: ssl_module.SSLContext | None = None,
    ) -> None:
        """Open the connection and start delivering events to ``handler``."""
        ...

    @abstractmethod
    def send(self, data: str | bytes) -> None:
        """Queue one frame for sending. Frames are sent in call order."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close the connection. ``handler.on_close`` is called once."""
        ...


class WebSocketTransport(Transport):
    """
    Transport over a WebSocket connection, using the ``websockets`` library.

    Outbound frames go through a FIFO outbox drained by a single writer
    task, so ``send()`` can be called from synchronous code and frames are
    written in the order they were queued.
    """

    __slots__ = (
        "_ws",
        "_handler",
        "_outbox",
        "_reader",
        "_writer",
        "_open_timeout",
        "_max_size",
    )

    def __init__(
        self,
        *,
        open_timeout: float | None = 10.0,
        max_size: int | None = 2**24,
    ) -> None:
        """
        Args:
            open_timeout: Seconds to wait for the opening handshake
            max_size: Largest inbound frame accepted, in bytes
        """
        self._ws: ClientConnection | None = None
        self._handler: TransportHandler | None = None
        self._outbox: asyncio.Queue[str | bytes] = asyncio.Queue()
        self._reader: asyncio.Task[None] | None = None
        self._writer: asyncio.Task[None] | None = None
        self._open_timeout = open_timeout
        self._max_size = max_size

    @property
    def is_open(self) -> bool:
        return self._ws is not None

    async def open(
        self,
        url: str,
        handler: TransportHandler,
        *,
        ssl: ssl_module.SSLContext | None = None,
    ) -> None:
        if self._ws is not None:
            raise RuntimeError("Transport is already open")

        self._handler = handler
        kwargs: dict[str, Any] = {}
        if url.startswith("wss://") and ssl is not None:
            kwargs["ssl"] = ssl

        try:
            self._ws = await connect(
                url,
                open_timeout=self._open_timeout,
                max_size=self._max_size,
                **kwargs,
            )
        except (OSError, InvalidURI, InvalidHandshake, asyncio.TimeoutError) as e:
            logger.warning("Could not connect to %s: %s", url, e)
            error = wrap_error(e)
            handler.on_error(error)
            handler.on_close({"code": ABNORMAL_CLOSURE, "reason": str(e)})
            raise error from e

        logger.debug("Connected to %s", url)
        self._reader = asyncio.create_task(self._read_loop())
        self._writer = asyncio.create_task(self._write_loop())
        handler.on_open()

    def send(self, data: str | bytes) -> None:
        self._outbox.put_nowait(data)

    async def close(self) -> None:
        if self._ws is None:
            return
        await self._ws.close()
        if self._reader is not None:
            await self._reader
            self._reader = None
        self._ws = None

    async def _read_loop(self) -> None:
        """Deliver inbound frames until the connection closes."""
        assert self._ws is not None and self._handler is not None
        ws = self._ws
        try:
            async for frame in ws:
                self._handler.on_message(frame)
        except ConnectionClosed as e:
            logger.debug("Connection closed: %s", e)
        finally:
            if self._writer is not None:
                self._writer.cancel()
                self._writer = None
            if self._ws is ws:
                self._ws = None
            self._handler.on_close(
                {"code": ws.close_code or ABNORMAL_CLOSURE, "reason": ws.close_reason or ""}
            )

    async def _write_loop(self) -> None:
        """Send queued frames in order."""
        assert self._ws is not None and self._handler is not None
        while True:
            data = await self._outbox.get()
            try:
                await self._ws.send(data)
            except ConnectionClosed:
                # The reader reports the close
                return
            except (OSError, TypeError) as e:
                logger.warning("Failed to send frame: %s", e)
                self._handler.on_error(wrap_error(e))
