#!/usr/bin/env python3
"""
gremlin-do CLI

Run Gremlin scripts against a Gremlin Server from the command line.

Usage:
    gremlin-do execute SCRIPT   - Print all results as a JSON array
    gremlin-do stream SCRIPT    - Print one JSON result per line
    gremlin-do ping             - Check that the server answers
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any

import click

from .client import GremlinClient
from .config import configure_from_env, get_config
from .errors import GremlinError


# Color codes for terminal output
class Colors:
    RESET = "\x1b[0m"
    BRIGHT = "\x1b[1m"
    DIM = "\x1b[2m"
    GREEN = "\x1b[32m"
    RED = "\x1b[31m"
    CYAN = "\x1b[36m"


def print_error(message: str, error: Exception | None = None) -> None:
    """Print error message."""
    click.echo(f"{Colors.RED}Error:{Colors.RESET} {message}", err=True)
    if error and str(error):
        click.echo(str(error), err=True)


def print_success(message: str) -> None:
    """Print success message."""
    click.echo(f"{Colors.GREEN}[ok]{Colors.RESET} {message}")


def run_async(coro: Any) -> Any:
    """Run an async function synchronously."""
    return asyncio.run(coro)


def parse_bindings(value: str | None) -> dict[str, Any]:
    """Parse the --bindings option, a JSON object."""
    if not value:
        return {}
    try:
        bindings = json.loads(value)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"invalid JSON: {e}", param_hint="--bindings")
    if not isinstance(bindings, dict):
        raise click.BadParameter("must be a JSON object", param_hint="--bindings")
    return bindings


@click.group()
@click.option("--host", default=None, help="Server host (env: GREMLIN_HOST)")
@click.option("--port", type=int, default=None, help="Server port (env: GREMLIN_PORT)")
@click.option("--path", default=None, help="WebSocket path, e.g. /gremlin")
@click.option("--ssl/--no-ssl", default=None, help="Use wss://")
@click.option("--session", is_flag=True, default=False, help="Run in session mode")
@click.option("--debug", is_flag=True, help="Show debug information")
@click.pass_context
def cli(
    ctx: click.Context,
    host: str | None,
    port: int | None,
    path: str | None,
    ssl: bool | None,
    session: bool,
    debug: bool,
) -> None:
    """
    gremlin-do CLI - Run scripts on a Gremlin Server
    """
    if debug:
        logging.basicConfig(level=logging.DEBUG)

    configure_from_env()
    config = get_config()

    options: dict[str, Any] = {}
    if path is not None:
        options["path"] = path
    if ssl is not None:
        options["ssl"] = ssl
    if session:
        options["session"] = True

    ctx.obj = {
        "host": host or config.host,
        "port": port or config.port,
        "options": options,
    }


def _client(ctx: click.Context) -> GremlinClient:
    obj = ctx.obj
    return GremlinClient(obj["port"], obj["host"], **obj["options"])


@cli.command()
@click.argument("script")
@click.option("--bindings", "-b", default=None, help="Bound parameters as a JSON object")
@click.pass_context
def execute(ctx: click.Context, script: str, bindings: str | None) -> None:
    """Execute SCRIPT and print all results."""
    run_async(execute_command(_client(ctx), script, parse_bindings(bindings)))


@cli.command()
@click.argument("script")
@click.option("--bindings", "-b", default=None, help="Bound parameters as a JSON object")
@click.pass_context
def stream(ctx: click.Context, script: str, bindings: str | None) -> None:
    """Execute SCRIPT and print results as they arrive."""
    run_async(stream_command(_client(ctx), script, parse_bindings(bindings)))


@cli.command()
@click.pass_context
def ping(ctx: click.Context) -> None:
    """Check that the server executes scripts."""
    run_async(ping_command(_client(ctx)))


async def execute_command(
    client: GremlinClient, script: str, bindings: dict[str, Any]
) -> None:
    """Execute command - print collected results as JSON."""
    try:
        async with client:
            results = await client.execute(script, bindings)
        click.echo(json.dumps(results, indent=2, default=str))
    except GremlinError as e:
        print_error("Script failed", e)
        sys.exit(1)


async def stream_command(
    client: GremlinClient, script: str, bindings: dict[str, Any]
) -> None:
    """Stream command - print one result per line."""
    try:
        async with client:
            async for value in client.stream(script, bindings):
                click.echo(json.dumps(value, default=str))
    except GremlinError as e:
        print_error("Script failed", e)
        sys.exit(1)


async def ping_command(client: GremlinClient) -> None:
    """Ping command - run a trivial script."""
    try:
        async with client:
            results = await client.execute("1+1")
    except GremlinError as e:
        print_error(f"No answer from {client.url}", e)
        sys.exit(1)

    if results != [2]:
        print_error(f"Unexpected answer from {client.url}: {results!r}")
        sys.exit(1)
    print_success(f"{client.url} is up")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
