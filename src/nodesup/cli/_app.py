"""The command-line interface for nodesup."""
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing

from pathlib import Path
from typing import Annotated

import anyio
from cyclopts import App, Parameter
from rich.console import Console

from nodesup.config import NodesupSettings
from nodesup.exceptions import ConfigLoadError
from nodesup.utils import create_supervisor_logger

from ._context import CLIContext
from ._node import log, rpc
from ._serve import run_serve
from ._shared import ExitCode, exit_with_error


def _load_settings(config: Path | None) -> NodesupSettings:
    try:
        return NodesupSettings.load(config)
    except FileNotFoundError:
        exit_with_error(f"Settings file not found: {config}", ExitCode.NOT_FOUND)
    except ConfigLoadError as e:
        exit_with_error(str(e), ExitCode.LOAD_ERROR)


def serve() -> None:
    """Run the control API until interrupted.

    Node commands are accepted over HTTP under /node. A node still running
    at shutdown is stopped.
    """
    ctx = CLIContext.get_current()
    anyio.run(run_serve, ctx.settings, ctx.get_logger("supervisor"))


def register_commands(app: App) -> None:
    """Register all nodesup commands on an App."""
    app.command(serve)
    app.command(log)
    app.command(rpc)


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    """Create the nodesup App with its global options.

    Args:
        console: Console for regular output.
        error_console: Console for parse errors.
        exit_on_error: Exit on parse errors instead of raising.
    """
    app = App(
        name="nodesup",
        help="Supervise a single blockchain node process.",
        help_on_error=True,
        console=console or Console(),
        error_console=error_console or Console(stderr=True),
        exit_on_error=exit_on_error,
    )

    @app.meta.default
    def _default(  # pyright: ignore[reportUnusedFunction]
        *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
        config: Annotated[
            Path | None, Parameter(name="--config", help="Path to settings file")
        ] = None,
    ) -> None:
        """Launch nodesup with global options.

        Args:
            tokens: Command tokens to pass to subcommands.
            config: Explicit path to a TOML settings file.
        """
        settings = _load_settings(config)
        logging = settings.logging
        logger = create_supervisor_logger(
            level=logging.level.value,
            log_format=logging.format.value,  # type: ignore[arg-type]
            log_file=logging.file,
            max_bytes=logging.max_bytes,
            backup_count=logging.backup_count,
        )

        CLIContext.set_current(
            CLIContext(settings=settings, config_path=config, logger=logger)
        )
        try:
            app(tokens)
        finally:
            CLIContext.reset()

    register_commands(app)
    return app


def main() -> None:
    """Default entrypoint for the `nodesup` CLI."""
    app = create_app()
    app.meta()
