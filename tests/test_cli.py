"""Tests for the gremlin-do command line interface."""

from __future__ import annotations

import json
from unittest.mock import patch

import click
import pytest
from click.testing import CliRunner

from gremlin_do import GremlinClient
from gremlin_do.cli import cli, parse_bindings

from .mock_server import MockGremlinServer


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def cli_server(server: MockGremlinServer):
    """Route CLI clients to the mock server."""
    created: list[GremlinClient] = []

    def factory(port, host, **options):
        client = GremlinClient(port, host, transport=server, **options)
        created.append(client)
        return client

    with patch("gremlin_do.cli.GremlinClient", side_effect=factory):
        yield server, created


class TestParseBindings:
    def test_empty(self):
        assert parse_bindings(None) == {}
        assert parse_bindings("") == {}

    def test_object(self):
        assert parse_bindings('{"x": 1}') == {"x": 1}

    @pytest.mark.parametrize("value", ["{", "[1, 2]"])
    def test_invalid(self, value):
        with pytest.raises(click.BadParameter):
            parse_bindings(value)


class TestExecuteCommand:
    def test_prints_results(self, runner, cli_server):
        result = runner.invoke(cli, ["execute", "g.V().values('name')"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == ["marko", "vadas", "lop", "josh", "ripple", "peter"]

    def test_bindings(self, runner, cli_server):
        result = runner.invoke(cli, ["execute", "x", "-b", '{"x": 7}'])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == [7]

    def test_invalid_bindings(self, runner, cli_server):
        result = runner.invoke(cli, ["execute", "x", "--bindings", "nope"])

        assert result.exit_code == 2
        assert "--bindings" in result.output

    def test_server_error(self, runner, cli_server):
        result = runner.invoke(cli, ["execute", "g.nope()"])

        assert result.exit_code == 1
        assert "Script failed" in result.output
        assert "597" in result.output

    def test_host_and_options(self, runner, cli_server):
        server, created = cli_server

        result = runner.invoke(
            cli,
            ["--host", "graph", "--port", "9000", "--path", "/gremlin", "--session", "execute", "1+1"],
        )

        assert result.exit_code == 0, result.output
        assert created[0].url == "ws://graph:9000/gremlin"
        assert server.requests[0].message["args"]["session"] == created[0].session_id


class TestStreamCommand:
    def test_one_result_per_line(self, runner, cli_server):
        result = runner.invoke(cli, ["stream", "g.V().values('name')"])

        assert result.exit_code == 0, result.output
        lines = result.stdout.strip().splitlines()
        assert [json.loads(line) for line in lines] == [
            "marko", "vadas", "lop", "josh", "ripple", "peter",
        ]

    def test_server_error(self, runner, cli_server):
        result = runner.invoke(cli, ["stream", "g.nope()"])
        assert result.exit_code == 1


class TestPingCommand:
    def test_up(self, runner, cli_server):
        result = runner.invoke(cli, ["ping"])

        assert result.exit_code == 0, result.output
        assert "is up" in result.output

    def test_unexpected_answer(self, runner, cli_server):
        server, _ = cli_server
        server.scripts["1+1"] = [3]

        result = runner.invoke(cli, ["ping"])

        assert result.exit_code == 1
        assert "Unexpected answer" in result.output

    def test_env_configuration(self, runner, cli_server):
        _, created = cli_server

        result = runner.invoke(cli, ["ping"], env={"GREMLIN_HOST": "envhost", "GREMLIN_PORT": "8184"})

        assert result.exit_code == 0, result.output
        assert created[0].url == "ws://envhost:8184"
