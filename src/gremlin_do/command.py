"""
Command building for Gremlin Server requests.

A Command pairs an outbound request message with the MessageStream that
will receive its responses. Scripts may be given as source text or as a
Python callable whose body is used verbatim as the script::

    def script():
        g.V().has('name', name).out('knows')

    results = await client.execute(script, {"name": "marko"})
"""

from __future__ import annotations

import ast
import base64
import inspect
import textwrap
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from .errors import ScriptError
from .stream import MessageStream

if TYPE_CHECKING:
    from .types import ClientOptions, Script

__all__ = [
    "Command",
    "build_command",
    "build_authentication",
    "extract_function_body",
    "SESSION_PROCESSOR",
    "AUTHENTICATION_OP",
]

SESSION_PROCESSOR = "session"
AUTHENTICATION_OP = "authentication"


@dataclass(frozen=True)
class Command:
    """
    One request sent or queued for the server.

    Attributes:
        message: The request envelope (requestId, processor, op, args)
        stream: Stream receiving the response frames for this request
    """

    message: dict[str, Any]
    stream: MessageStream = field(default_factory=MessageStream)

    @property
    def request_id(self) -> str:
        return self.message["requestId"]

    @property
    def op(self) -> str:
        return self.message.get("op", "")


def _parse_source(source: str) -> tuple[ast.AST, str]:
    """Parse a source fragment, wrapping it in parentheses if needed.

    ``inspect.getsource`` on a lambda returns the whole line it sits on,
    which is not always a complete statement.
    """
    try:
        return ast.parse(source), source
    except SyntaxError:
        wrapped = f"({source.strip()})"
        try:
            return ast.parse(wrapped), wrapped
        except SyntaxError as e:
            raise ScriptError(f"Cannot parse script source: {e}") from e


def extract_function_body(fn: Callable[..., Any]) -> str:
    """
    Get the body of a function as script text.

    For a ``def``, the dedented source of its body statements is returned.
    For a ``lambda``, the source of its body expression. The text is not
    validated; the server reports any syntax errors.

    Args:
        fn: A function or lambda defined in a source file

    Returns:
        The body source text

    Raises:
        ScriptError: If the source of ``fn`` cannot be retrieved

    Example:
        >>> extract_function_body(lambda: g.V().count())
        'g.V().count()'
    """
    try:
        source = inspect.getsource(fn)
    except (OSError, TypeError) as e:
        raise ScriptError(f"Cannot read source of {fn!r}: {e}") from e

    source = textwrap.dedent(source)
    tree, source = _parse_source(source)

    for node in ast.walk(tree):
        if isinstance(node, ast.Lambda):
            return ast.get_source_segment(source, node.body) or ""
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            return _statements_source(source, node)

    raise ScriptError(f"No function found in source of {fn!r}")


def _statements_source(
    source: str, node: ast.FunctionDef | ast.AsyncFunctionDef
) -> str:
    body = node.body
    first, last = body[0], body[-1]

    # def f(): return x
    if first.lineno == node.lineno:
        segments = [ast.get_source_segment(source, stmt) or "" for stmt in body]
        return "\n".join(segments)

    lines = source.splitlines()[first.lineno - 1:last.end_lineno]
    return textwrap.dedent("\n".join(lines)).strip()


def build_command(
    script: Script,
    bindings: dict[str, Any] | None = None,
    message: dict[str, Any] | None = None,
    *,
    options: ClientOptions,
    session_id: str | None = None,
) -> Command:
    """
    Build a Command for a script and optional bound parameters.

    Fields of ``message`` and ``message["args"]`` override the client
    defaults one by one (shallow defaults, not a deep merge). The given
    dicts are copied, never modified.

    Args:
        script: Script text, or a callable whose body is the script
        bindings: Parameters bound to variables in the script
        message: Request fields overriding the client defaults
        options: Client options supplying the defaults
        session_id: Session id when the client runs in session mode

    Returns:
        A new Command with a fresh requestId and an open MessageStream
    """
    if callable(script):
        script = extract_function_body(script)

    message = dict(message or {})

    args: dict[str, Any] = {
        "gremlin": script,
        "bindings": bindings or {},
        "accept": options.accept,
        "language": options.language,
        "binary": False,
    }
    args.update(message.get("args") or {})

    envelope: dict[str, Any] = {
        "requestId": str(uuid.uuid1()),
        "processor": options.processor,
        "op": options.op,
    }
    envelope.update(message)
    envelope["args"] = args

    if session_id is not None:
        # Assume the session processor unless one was given
        envelope["processor"] = envelope["processor"] or SESSION_PROCESSOR
        args["session"] = session_id

    return Command(message=envelope)


def build_authentication(
    username: str,
    password: str,
    *,
    options: ClientOptions,
    session_id: str | None = None,
) -> Command:
    """
    Build a SASL PLAIN authentication command.

    The credentials are sent as base64 of ``\\0username\\0password``.
    """
    token = f"\0{username}\0{password}".encode("utf-8")
    return build_command(
        "",
        None,
        {
            "op": AUTHENTICATION_OP,
            "args": {
                "sasl": base64.b64encode(token).decode("ascii"),
                "saslMechanism": "PLAIN",
            },
        },
        options=options,
        session_id=session_id,
    )
