"""
Configuration management for gremlin-do

This module holds the global defaults used by every new GremlinClient.
"""

from __future__ import annotations

import os
from dataclasses import replace
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .types import GremlinConfig

_TRUTHY = {"1", "true", "yes", "on"}


def _get_env(key: str) -> str | None:
    """Get environment variable value."""
    return os.environ.get(key)


def _get_env_bool(key: str) -> bool | None:
    value = _get_env(key)
    if value is None:
        return None
    return value.strip().lower() in _TRUTHY


def _get_env_int(key: str) -> int | None:
    value = _get_env(key)
    if value is None or not value.strip():
        return None
    return int(value)


def _defaults() -> dict[str, Any]:
    return {
        "host": "localhost",
        "port": 8182,
        "path": "",
        "ssl": False,
        "reject_unauthorized": False,
        "session": False,
        "language": "gremlin-groovy",
        "op": "eval",
        "processor": "",
        "accept": "application/json",
    }


# Global configuration
_global_config: dict[str, Any] = _defaults()


def configure(
    *,
    host: str | None = None,
    port: int | None = None,
    path: str | None = None,
    ssl: bool | None = None,
    reject_unauthorized: bool | None = None,
    session: bool | None = None,
    language: str | None = None,
    op: str | None = None,
    processor: str | None = None,
    accept: str | None = None,
) -> None:
    """
    Configure defaults for new clients.

    Only the arguments that are given are changed.

    Example::

        from gremlin_do import configure

        configure(host="graph.internal", port=8182, ssl=True)
    """
    values = {
        "host": host,
        "port": port,
        "path": path,
        "ssl": ssl,
        "reject_unauthorized": reject_unauthorized,
        "session": session,
        "language": language,
        "op": op,
        "processor": processor,
        "accept": accept,
    }
    for key, value in values.items():
        if value is not None:
            _global_config[key] = value


def reset_config() -> None:
    """Restore the built-in defaults."""
    _global_config.clear()
    _global_config.update(_defaults())


def get_config() -> "GremlinConfig":
    """
    Get current configuration.

    Example::

        from gremlin_do import get_config

        config = get_config()
        print(f"Server: {config.host}:{config.port}")
    """
    from .types import ClientOptions, GremlinConfig

    options = replace(
        ClientOptions(),
        path=_global_config["path"],
        ssl=_global_config["ssl"],
        reject_unauthorized=_global_config["reject_unauthorized"],
        session=_global_config["session"],
        language=_global_config["language"],
        op=_global_config["op"],
        processor=_global_config["processor"],
        accept=_global_config["accept"],
    )
    return GremlinConfig(
        host=_global_config["host"],
        port=_global_config["port"],
        options=options,
    )


def configure_from_env() -> None:
    """
    Configure defaults from environment variables.

    Reads from:
        - GREMLIN_HOST, GREMLIN_PORT, GREMLIN_PATH
        - GREMLIN_SSL, GREMLIN_REJECT_UNAUTHORIZED
        - GREMLIN_SESSION
        - GREMLIN_LANGUAGE, GREMLIN_OP, GREMLIN_PROCESSOR, GREMLIN_ACCEPT
    """
    configure(
        host=_get_env("GREMLIN_HOST"),
        port=_get_env_int("GREMLIN_PORT"),
        path=_get_env("GREMLIN_PATH"),
        ssl=_get_env_bool("GREMLIN_SSL"),
        reject_unauthorized=_get_env_bool("GREMLIN_REJECT_UNAUTHORIZED"),
        session=_get_env_bool("GREMLIN_SESSION"),
        language=_get_env("GREMLIN_LANGUAGE"),
        op=_get_env("GREMLIN_OP"),
        processor=_get_env("GREMLIN_PROCESSOR"),
        accept=_get_env("GREMLIN_ACCEPT"),
    )
