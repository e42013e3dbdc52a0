"""
Error types for gremlin-do.

Every error delivered through a result stream is a GremlinError, so
callers can catch the whole family with a single except clause.

Error Code Ranges:
- 1xxx: Connection and transport errors
- 2xxx: Server and stream errors
- 5xxx: Serialization and script errors
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any


# ============================================================================
# Error Codes
# ============================================================================


class ErrorCode(IntEnum):
    """Numeric codes attached to every GremlinError."""

    TRANSPORT_ERROR = 1001
    CONNECTION_CLOSED = 1002

    SERVER_ERROR = 2001
    STREAM_ERROR = 2002

    SERIALIZATION_ERROR = 5001
    SCRIPT_ERROR = 5002


# ============================================================================
# Base Error Class
# ============================================================================


class GremlinError(Exception):
    """
    Base class for all gremlin-do errors.

    Error Hierarchy:
    - GremlinError (base)
      - TransportError: socket-level failure
      - ConnectionClosedError: connection went away with commands pending
      - ServerError: server answered with an error status code
      - StreamError: error re-raised by an incremental result stream
      - SerializationError: message could not be encoded or decoded
      - ScriptError: a callable script has no retrievable source

    Example:
        ```python
        try:
            results = await client.execute("g.V().count()")
        except GremlinError as error:
            print(f"Query failed [{error.code_name}]: {error.message}")
        ```

    Attributes:
        message: Human-readable error message.
        code: Numeric error code.
        code_name: Name of the error code (e.g. 'SERVER_ERROR').
    """

    def __init__(self, message: str, code: ErrorCode) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.code_name = code.name

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, code={int(self.code)})"

    def to_dict(self) -> dict[str, Any]:
        """Return a dictionary representation of the error."""
        return {
            "name": self.__class__.__name__,
            "message": self.message,
            "code": int(self.code),
            "code_name": self.code_name,
        }


# ============================================================================
# Specific Error Types
# ============================================================================


class TransportError(GremlinError):
    """
    Socket-level failure reported by the transport.

    Error Code: 1001 (TRANSPORT_ERROR)

    A transport error is informational: it is emitted as the client's
    "error" event and does not by itself fail pending commands. Commands
    are only failed when the connection actually closes.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, ErrorCode.TRANSPORT_ERROR)


class ConnectionClosedError(GremlinError):
    """
    Raised on every pending command when the connection closes.

    Error Code: 1002 (CONNECTION_CLOSED)

    Attributes:
        details: Close detail reported by the transport (close code and
            reason for WebSocket transports).
    """

    def __init__(
        self,
        message: str = "Connection closed",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.CONNECTION_CLOSED)
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["details"] = self.details
        return result


class ServerError(GremlinError):
    """
    The server terminated a request with a non-success status code.

    Error Code: 2001 (SERVER_ERROR)

    Example:
        ```python
        try:
            await client.execute("g.V().foo()")
        except ServerError as error:
            print(error.status_code)     # 597
            print(error.status_message)  # No signature of method: ...
        ```

    Attributes:
        status_code: Status code of the response frame.
        status_message: Message supplied by the server.
    """

    def __init__(self, status_message: str, status_code: int) -> None:
        super().__init__(
            f"{status_message} (Error {status_code})", ErrorCode.SERVER_ERROR
        )
        self.status_code = status_code
        self.status_message = status_message

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["status_code"] = self.status_code
        return result


class StreamError(GremlinError):
    """
    Error raised while iterating an incremental result stream.

    Error Code: 2002 (STREAM_ERROR)

    The error that terminated the underlying message stream is available
    as ``__cause__``.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message, ErrorCode.STREAM_ERROR)
        self.__cause__ = cause


class SerializationError(GremlinError):
    """
    A message could not be encoded for the wire, or a frame could not be
    decoded.

    Error Code: 5001 (SERIALIZATION_ERROR)

    Attributes:
        is_deserialize: Whether this was a decoding (vs encoding) error.
    """

    def __init__(self, message: str, is_deserialize: bool = False) -> None:
        super().__init__(message, ErrorCode.SERIALIZATION_ERROR)
        self.is_deserialize = is_deserialize


class ScriptError(GremlinError):
    """
    A callable passed as a script has no source text to extract.

    Error Code: 5002 (SCRIPT_ERROR)
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, ErrorCode.SCRIPT_ERROR)


# ============================================================================
# Error Utilities
# ============================================================================


def is_error_code(error: BaseException, code: ErrorCode) -> bool:
    """
    Check if an error is a GremlinError with a specific error code.

    Example:
        ```python
        except Exception as error:
            if is_error_code(error, ErrorCode.CONNECTION_CLOSED):
                client = await connect(host, port)
        ```
    """
    return isinstance(error, GremlinError) and error.code == code


def wrap_error(
    error: BaseException,
    default_code: ErrorCode = ErrorCode.TRANSPORT_ERROR,
) -> GremlinError:
    """
    Wrap an arbitrary exception into a GremlinError.

    GremlinError instances are returned unchanged.
    """
    if isinstance(error, GremlinError):
        return error
    if default_code == ErrorCode.TRANSPORT_ERROR:
        wrapped: GremlinError = TransportError(str(error) or type(error).__name__)
    elif default_code == ErrorCode.SERIALIZATION_ERROR:
        wrapped = SerializationError(str(error))
    else:
        wrapped = GremlinError(str(error), default_code)
    wrapped.__cause__ = error
    return wrapped
