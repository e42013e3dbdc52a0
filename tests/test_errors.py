"""Tests for error types and helpers."""

from __future__ import annotations

import pytest

from gremlin_do import (
    ConnectionClosedError,
    GremlinError,
    ScriptError,
    SerializationError,
    ServerError,
    StreamError,
    TransportError,
    is_error_code,
)
from gremlin_do.errors import ErrorCode, wrap_error


class TestErrorTypes:
    """Tests for the error hierarchy."""

    @pytest.mark.parametrize(
        "error, code",
        [
            (TransportError("reset"), ErrorCode.TRANSPORT_ERROR),
            (ConnectionClosedError(), ErrorCode.CONNECTION_CLOSED),
            (ServerError("boom", 500), ErrorCode.SERVER_ERROR),
            (StreamError("boom"), ErrorCode.STREAM_ERROR),
            (SerializationError("bad"), ErrorCode.SERIALIZATION_ERROR),
            (ScriptError("no source"), ErrorCode.SCRIPT_ERROR),
        ],
    )
    def test_codes(self, error, code):
        assert isinstance(error, GremlinError)
        assert error.code == code
        assert error.code_name == code.name

    def test_server_error_message(self):
        error = ServerError("No such property: foo", 597)

        assert str(error) == "No such property: foo (Error 597)"
        assert error.status_code == 597
        assert error.status_message == "No such property: foo"

    def test_server_error_to_dict(self):
        assert ServerError("boom", 500).to_dict() == {
            "name": "ServerError",
            "message": "boom (Error 500)",
            "code": 2001,
            "code_name": "SERVER_ERROR",
            "status_code": 500,
        }

    def test_connection_closed_details(self):
        error = ConnectionClosedError(details={"code": 1006, "reason": ""})

        assert str(error) == "Connection closed"
        assert error.to_dict()["details"] == {"code": 1006, "reason": ""}

    def test_stream_error_cause(self):
        cause = ServerError("boom", 500)
        assert StreamError("boom", cause=cause).__cause__ is cause

    def test_repr(self):
        assert repr(TransportError("reset")) == "TransportError('reset', code=1001)"


class TestErrorHelpers:
    """Tests for is_error_code() and wrap_error()."""

    def test_is_error_code(self):
        error = ConnectionClosedError()

        assert is_error_code(error, ErrorCode.CONNECTION_CLOSED)
        assert not is_error_code(error, ErrorCode.SERVER_ERROR)
        assert not is_error_code(ValueError("x"), ErrorCode.CONNECTION_CLOSED)

    def test_wrap_keeps_gremlin_errors(self):
        error = ServerError("boom", 500)
        assert wrap_error(error) is error

    def test_wrap_os_error(self):
        original = OSError("Connection refused")

        wrapped = wrap_error(original)

        assert isinstance(wrapped, TransportError)
        assert wrapped.message == "Connection refused"
        assert wrapped.__cause__ is original

    def test_wrap_without_message(self):
        assert wrap_error(TimeoutError()).message == "TimeoutError"

    def test_wrap_as_serialization_error(self):
        wrapped = wrap_error(TypeError("bad"), ErrorCode.SERIALIZATION_ERROR)
        assert isinstance(wrapped, SerializationError)

    def test_wrap_other_code(self):
        wrapped = wrap_error(ValueError("bad"), ErrorCode.STREAM_ERROR)

        assert type(wrapped) is GremlinError
        assert wrapped.code == ErrorCode.STREAM_ERROR
