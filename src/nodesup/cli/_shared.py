# pyright: reportExplicitAny=false
"""Exit codes and output helpers shared by the nodesup commands."""

from enum import IntEnum
from typing import Any, Never

import orjson
from rich.console import Console
from rich.markup import escape

from nodesup.exceptions import (
    ConfigError,
    LogReadError,
    NodesupError,
    RpcError,
)

__all__ = [
    "ExitCode",
    "exit_code_for",
    "exit_with_error",
    "format_json",
]


class ExitCode(IntEnum):
    """Process exit status of a nodesup command."""

    SUCCESS = 0
    LOAD_ERROR = 1
    VALIDATION_ERROR = 2
    NOT_FOUND = 3
    IO_ERROR = 4
    INTERNAL_ERROR = 5
    RPC_ERROR = 6


def exit_code_for(error: NodesupError) -> ExitCode:
    """Pick the exit status that reports a command failure."""
    if isinstance(error, ConfigError):
        return ExitCode.VALIDATION_ERROR
    if isinstance(error, LogReadError):
        return ExitCode.IO_ERROR
    if isinstance(error, RpcError):
        return ExitCode.RPC_ERROR
    return ExitCode.INTERNAL_ERROR


def format_json(data: Any, *, indent: bool = True) -> str:  # pyright: ignore[reportAny]
    """Serialize a JSON value, indented by two spaces unless indent is False."""
    return orjson.dumps(data, option=orjson.OPT_INDENT_2 if indent else None).decode()


def exit_with_error(
    message: str,
    code: ExitCode = ExitCode.INTERNAL_ERROR,
    *,
    console: Console | None = None,
) -> Never:
    """Report message on stderr and terminate with code.

    Raises:
        SystemExit: Always.
    """
    console = console or Console(stderr=True)
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
    raise SystemExit(code)
