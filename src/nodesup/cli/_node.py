# pyright: reportUnusedCallResult=false
"""One-shot node commands run against a private control actor."""

from typing import Annotated

import orjson
from cyclopts import Parameter
from pydantic import JsonValue
from rich.console import Console

from nodesup.exceptions import NodesupError
from nodesup.supervisor import start_control_thread

from ._context import CLIContext
from ._shared import exit_code_for, exit_with_error, format_json


def _parse_argument(token: str) -> JsonValue:
    """Parse a command-line token as JSON, falling back to a plain string."""
    try:
        return orjson.loads(token)  # pyright: ignore[reportAny]
    except orjson.JSONDecodeError:
        return token


def log() -> None:
    """Print the captured node log."""
    ctx = CLIContext.get_current()
    config = ctx.settings.to_supervisor_config()

    try:
        with start_control_thread(config, logger=ctx.get_logger("cli")) as client:
            content = client.get_log()
    except NodesupError as e:
        exit_with_error(str(e), exit_code_for(e))

    Console().out(content, end="", highlight=False)


def rpc(
    method: str,
    *arguments: Annotated[str, Parameter(help="Positional argument (JSON or text)")],
    compact: Annotated[bool, Parameter(help="Print JSON on a single line")] = False,
) -> None:
    """Forward a JSON-RPC call to the node and print the response.

    Args:
        method: JSON-RPC method name.
        arguments: Positional parameters. Tokens that parse as JSON are sent
            as JSON values; others are sent as strings.
        compact: Print JSON on a single line.
    """
    ctx = CLIContext.get_current()
    config = ctx.settings.to_supervisor_config()
    params = tuple(_parse_argument(token) for token in arguments)

    try:
        with start_control_thread(config, logger=ctx.get_logger("cli")) as client:
            response = client.call_rpc(method, params)
    except NodesupError as e:
        exit_with_error(str(e), exit_code_for(e))

    Console().out(format_json(response, indent=not compact), highlight=False)
