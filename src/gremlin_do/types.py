"""
Type definitions for gremlin-do

This module contains the enums and option types shared across the package.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Literal,
    Optional,
    TypeAlias,
    Union,
)

if TYPE_CHECKING:
    from .stream import MessageStream


class ResponseStatus(IntEnum):
    """Response status codes with special meaning to the client.

    Any other code terminates the request with a ServerError.
    """
    SUCCESS = 200
    NO_CONTENT = 204
    PARTIAL_CONTENT = 206


class ConnectionState(str, Enum):
    """Lifecycle of a client connection. No reconnection is attempted."""
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    CLOSED = "closed"


# Type aliases
ClientEvent: TypeAlias = Literal["connect", "disconnect", "error"]
Script: TypeAlias = Union[str, Callable[..., Any]]
ResultCallback: TypeAlias = Callable[[Optional[Exception], Optional[list]], Any]
ExecuteHandler: TypeAlias = Callable[["MessageStream", ResultCallback], Awaitable[Any]]


@dataclass
class ClientOptions:
    """Per-client options. Every field can be overridden as a keyword
    argument of GremlinClient."""
    path: str = ""
    language: str = "gremlin-groovy"
    session: bool = False
    op: str = "eval"
    processor: str = ""
    accept: str = "application/json"
    ssl: bool = False
    reject_unauthorized: bool = False
    execute_handler: ExecuteHandler | None = None


@dataclass
class GremlinConfig:
    """Global configuration: default server address plus client options."""
    host: str = "localhost"
    port: int = 8182
    options: ClientOptions = field(default_factory=ClientOptions)
