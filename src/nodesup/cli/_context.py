# ruff: noqa: TC003  # Path needed at runtime for dataclass field
"""CLI context for global state management.

The CLIContext is set once at CLI startup and made available to all
commands via contextvars.
"""

import contextvars
from dataclasses import dataclass, field
from pathlib import Path

from structlog.typing import FilteringBoundLogger

from nodesup.config import NodesupSettings
from nodesup.utils import create_supervisor_logger


@dataclass(frozen=True, slots=True)
class CLIContext:
    """Global CLI context with settings and options.

    Attributes:
        settings: Loaded settings.
        config_path: Settings file given on the command line, if any.
        logger: Structured logger for commands and the actor.
    """

    settings: NodesupSettings = field(repr=False)
    config_path: Path | None = None
    logger: FilteringBoundLogger | None = field(default=None, repr=False)

    @classmethod
    def get_current(cls) -> "CLIContext":
        """Get the active CLIContext, or one built from default settings."""
        ctx = _current_cli_context.get()
        if ctx is not None:
            return ctx
        return cls(settings=NodesupSettings.load())

    @classmethod
    def set_current(cls, ctx: "CLIContext") -> None:
        """Set the active CLIContext."""
        _ = _current_cli_context.set(ctx)

    @classmethod
    def reset(cls) -> None:
        """Clear the active CLIContext."""
        _ = _current_cli_context.set(None)

    def get_logger(self, component: str) -> FilteringBoundLogger:
        """Return the context logger bound to a component name."""
        if self.logger is not None:
            return self.logger.bind(component=component)
        logging = self.settings.logging
        return create_supervisor_logger(
            level=logging.level.value,
            log_format=logging.format.value,  # type: ignore[arg-type]
            log_file=logging.file,
            component=component,
            max_bytes=logging.max_bytes,
            backup_count=logging.backup_count,
        )


_current_cli_context: contextvars.ContextVar[CLIContext | None] = (
    contextvars.ContextVar("cli_context", default=None)
)
