"""
MessageStream - push-based result sequence for a single command.

The dispatcher pushes response frames into a MessageStream as they arrive
and terminates it with either ``push(None)`` or ``fail(error)``. Callers
consume the same stream in one of three ways:

- raw: iterate the MessageStream itself, one frame dict per item
- incremental: ``iterate_results()`` yields each value of ``result.data``
- collected: ``collect()`` / ``execute_handler()`` gather everything
"""

from __future__ import annotations

import asyncio
from typing import Any, AsyncIterator

from .errors import StreamError
from .types import ResultCallback

__all__ = ["MessageStream", "collect", "iterate_results", "execute_handler"]

_END = object()


class _Failure:
    __slots__ = ("error",)

    def __init__(self, error: BaseException) -> None:
        self.error = error


class MessageStream:
    """
    Ordered, append-only sequence of response frames.

    A stream receives at most one terminal event. Pushing after the
    terminal event is a programming error and raises RuntimeError.

    Example:
        stream = client.message_stream("g.V().limit(100)")
        async for frame in stream:
            print(frame["status"]["code"], len(frame["result"]["data"]))
    """

    __slots__ = ("_queue", "_ended", "_done", "_count")

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._ended = False  # terminal event pushed
        self._done = False  # terminal event consumed
        self._count = 0

    @property
    def ended(self) -> bool:
        """Whether the stream has received its terminal event."""
        return self._ended

    @property
    def count(self) -> int:
        """Number of frames pushed so far."""
        return self._count

    def push(self, frame: dict[str, Any] | None) -> None:
        """
        Push a frame, or ``None`` to end the stream successfully.

        Raises:
            RuntimeError: If the stream has already ended
        """
        if self._ended:
            raise RuntimeError("push() after end of stream")
        if frame is None:
            self._ended = True
            self._queue.put_nowait(_END)
            return
        self._count += 1
        self._queue.put_nowait(frame)

    def fail(self, error: BaseException) -> None:
        """
        End the stream with an error.

        Raises:
            RuntimeError: If the stream has already ended
        """
        if self._ended:
            raise RuntimeError("fail() after end of stream")
        self._ended = True
        self._queue.put_nowait(_Failure(error))

    def __aiter__(self) -> MessageStream:
        return self

    async def __anext__(self) -> dict[str, Any]:
        if self._done:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _END:
            self._done = True
            raise StopAsyncIteration
        if isinstance(item, _Failure):
            self._done = True
            raise item.error
        return item

    def __repr__(self) -> str:
        status = "ended" if self._ended else "open"
        return f"MessageStream({self._count} frames, {status})"


def _frame_values(frame: dict[str, Any]) -> list[Any]:
    """Logical values carried by one frame's ``result.data``."""
    result = frame.get("result")
    if not isinstance(result, dict):
        return []
    data = result.get("data")
    if data is None:
        return []
    if isinstance(data, list):
        return data
    return [data]


async def collect(stream: MessageStream) -> list[Any]:
    """
    Drain a stream and return every value of every frame, in order.

    Raises:
        GremlinError: Whatever error terminated the stream
    """
    results: list[Any] = []
    async for frame in stream:
        results.extend(_frame_values(frame))
    return results


async def iterate_results(stream: MessageStream) -> AsyncIterator[Any]:
    """
    Yield one item per logical value instead of one per frame.

    A frame whose ``result.data`` holds three values produces three items.
    An error on the underlying stream is re-raised as StreamError.
    """
    try:
        async for frame in stream:
            for value in _frame_values(frame):
                yield value
    except Exception as e:
        raise StreamError(str(e), cause=e) from e


async def execute_handler(
    stream: MessageStream, callback: ResultCallback
) -> list[Any] | None:
    """
    Default handler for ``GremlinClient.execute(..., callback=...)``.

    Calls ``callback(None, results)`` once the stream ends, or
    ``callback(error, None)`` if it fails. The callback is invoked exactly
    once, including when no data was received.
    """
    try:
        results = await collect(stream)
    except Exception as e:
        callback(e, None)
        return None
    callback(None, results)
    return results
