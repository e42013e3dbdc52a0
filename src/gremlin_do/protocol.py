"""
Wire format for Gremlin Server requests and responses.

Outbound requests are sent either as compact JSON text frames or, when the
request's ``args.binary`` flag is set, as binary frames prefixed with the
mime type::

    [1 byte: len(mime)][mime bytes][UTF-8 JSON bytes]

Inbound frames are JSON envelopes validated with pydantic::

    {"requestId": "...", "status": {"code": 200, "message": ""},
     "result": {"data": [...], "meta": {}}}
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import SerializationError

__all__ = [
    "ResponseFrame",
    "decode_frame",
    "serialize_message",
    "pack_binary",
    "unpack_binary",
    "format_message",
]


class StatusModel(BaseModel):
    """The ``status`` object of a response frame.

    Only ``code`` and ``message`` are read; ``attributes`` is kept as sent.
    """

    code: int
    message: str | None = None
    attributes: Any = None

    model_config = {"extra": "ignore"}

    @field_validator("message", mode="before")
    @classmethod
    def coerce_message(cls, v: Any) -> str | None:
        """Servers may send a non-string status message."""
        if v is None or isinstance(v, str):
            return v
        return str(v)


class ResultModel(BaseModel):
    """The ``result`` object of a response frame."""

    data: Any = None
    meta: Any = None

    model_config = {"extra": "ignore"}


class ResponseFrame(BaseModel):
    """Pydantic model for validating response envelopes.

    ``requestId`` may be missing or null: some servers do not echo the
    request id on authentication challenges.
    """

    request_id: str | None = Field(default=None, alias="requestId")
    status: StatusModel
    result: ResultModel | None = None

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
    }


def decode_frame(frame: str | bytes) -> tuple[ResponseFrame, dict[str, Any]]:
    """
    Parse and validate one inbound frame.

    Args:
        frame: Text or binary WebSocket frame

    Returns:
        The validated envelope and the raw decoded payload. The raw payload
        is what result streams expose to callers.

    Raises:
        SerializationError: If the frame is not a JSON object with a status
    """
    if isinstance(frame, (bytes, bytearray, memoryview)):
        try:
            frame = bytes(frame).decode("utf-8")
        except UnicodeDecodeError as e:
            raise SerializationError(f"Invalid frame encoding: {e}", is_deserialize=True) from e

    try:
        payload = json.loads(frame)
    except json.JSONDecodeError as e:
        raise SerializationError(f"Invalid JSON frame: {e}", is_deserialize=True) from e

    if not isinstance(payload, dict):
        raise SerializationError(
            f"Invalid frame: expected JSON object, got {type(payload).__name__}",
            is_deserialize=True,
        )

    try:
        envelope = ResponseFrame.model_validate(payload)
    except ValidationError as e:
        errors = e.errors()
        if errors:
            first_error = errors[0]
            field = ".".join(str(loc) for loc in first_error.get("loc", []))
            msg = first_error.get("msg", "validation error")
            raise SerializationError(
                f"Invalid frame: {field} - {msg}", is_deserialize=True
            ) from e
        raise SerializationError(f"Invalid frame: {e}", is_deserialize=True) from e

    return envelope, payload


def serialize_message(message: dict[str, Any]) -> str:
    """
    Serialize a request message as compact JSON.

    Raises:
        SerializationError: If the message (usually its bindings) holds a
            value that is not JSON-serializable
    """
    try:
        return json.dumps(message, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Cannot serialize request: {e}") from e


def pack_binary(message: dict[str, Any]) -> bytes:
    """
    Pack a request message into a binary frame.

    The mime type is taken from ``message["args"]["accept"]``.

    Raises:
        SerializationError: If the mime type is longer than 255 bytes or the
            message is not JSON-serializable
    """
    mime = message["args"]["accept"].encode("utf-8")
    if len(mime) > 0xFF:
        raise SerializationError(
            f"Mime type too long for binary framing: {len(mime)} bytes"
        )
    body = serialize_message(message).encode("utf-8")
    return bytes([len(mime)]) + mime + body


def unpack_binary(data: bytes) -> tuple[str, dict[str, Any]]:
    """
    Split a binary frame back into its mime type and message.

    Raises:
        SerializationError: If the frame is truncated or not valid JSON
    """
    if not data:
        raise SerializationError("Empty binary frame", is_deserialize=True)
    length = data[0]
    if len(data) < 1 + length:
        raise SerializationError(
            f"Truncated binary frame: mime length {length}, frame {len(data)} bytes",
            is_deserialize=True,
        )
    try:
        mime = data[1:1 + length].decode("utf-8")
        message = json.loads(data[1 + length:].decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise SerializationError(f"Invalid binary frame: {e}", is_deserialize=True) from e
    return mime, message


def format_message(message: dict[str, Any]) -> str | bytes:
    """Encode a request as a text or binary frame according to ``args.binary``."""
    if message.get("args", {}).get("binary"):
        return pack_binary(message)
    return serialize_message(message)
