"""Structured logging for nodesup.

Every logger built here is standalone: it owns its processor chain and its
output, and structlog's global configuration is never touched. Output is one
JSON object per line, or a plain ``key=value`` text line.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from os import getenv
from pathlib import Path
from typing import Any, Literal, cast

import structlog
from structlog.typing import FilteringBoundLogger, Processor

LogFormatType = Literal["json", "text"]

DEBUG_ENV_VAR = "NODESUP_DEBUG"
LEVEL_ENV_VAR = "NODESUP_LOG_LEVEL"


def _resolve_level(level: str | None = None) -> int:
    """Translate a level name into a ``logging`` constant.

    NODESUP_DEBUG forces DEBUG whatever was asked for. When no name is given
    NODESUP_LOG_LEVEL is consulted. Unknown names mean INFO.
    """
    if getenv(DEBUG_ENV_VAR):
        return logging.DEBUG
    name = level if level is not None else getenv(LEVEL_ENV_VAR, "info")
    return logging.getLevelNamesMapping().get(name.upper(), logging.INFO)


def _render_processors(log_format: LogFormatType) -> list[Processor]:
    if log_format == "json":
        return [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    return [structlog.dev.ConsoleRenderer(colors=False)]


def _rotating_file_logger(
    path: Path, level: int, max_bytes: int, backup_count: int
) -> logging.Logger:
    """Return a private stdlib logger that only writes to a rotating file."""
    file_logger = logging.getLogger(f"nodesup.file.{path.resolve()}")
    for old in list(file_logger.handlers):
        file_logger.removeHandler(old)
        old.close()
    file_logger.propagate = False
    file_logger.setLevel(level)

    handler = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count)
    # Entries arrive already rendered by structlog
    handler.setFormatter(logging.Formatter("%(message)s"))
    file_logger.addHandler(handler)
    return file_logger


def _create_logger(
    log_file_path: str,
    *,
    log_level: int | None = None,
    log_format: LogFormatType = "json",
    max_bytes: int | None = None,
    backup_count: int | None = None,
) -> FilteringBoundLogger:
    """Build a logger writing to stderr, a file, or a rotating file.

    Args:
        log_file_path: Target file, appended to and created with its parent
            directories. Empty means stderr.
        log_level: Threshold; resolved from the environment when omitted.
        log_format: "json" or "text".
        max_bytes: Rotation size. Rotation needs backup_count as well.
        backup_count: Rotated files to keep.
    """
    level = log_level if log_level is not None else _resolve_level()

    sink: Any  # pyright: ignore[reportExplicitAny]
    if not log_file_path:
        sink = structlog.WriteLogger(sys.stderr)
    else:
        path = Path(log_file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        if max_bytes is not None and backup_count is not None:
            sink = _rotating_file_logger(path, level, max_bytes, backup_count)
        else:
            sink = structlog.WriteLogger(path.open("a", encoding="utf-8"))

    processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        *_render_processors(log_format),
    ]
    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            sink,
            processors=processors,
            wrapper_class=structlog.make_filtering_bound_logger(level),
            context_class=dict,
        ),
    )


def create_supervisor_logger(
    *,
    level: str = "info",
    log_format: LogFormatType = "json",
    log_file: str = "",
    component: str = "",
    max_bytes: int | None = None,
    backup_count: int | None = None,
) -> FilteringBoundLogger:
    """Create the logger shared by the actor, the control API and the CLI.

    Args:
        level: Threshold name. NODESUP_DEBUG overrides it with DEBUG.
        log_format: "json" or "text".
        log_file: Target file; empty means stderr.
        component: Bound to every entry when given, e.g. "supervisor".
        max_bytes: Rotation size for log_file.
        backup_count: Rotated files to keep.
    """
    logger = _create_logger(
        log_file,
        log_level=_resolve_level(level),
        log_format=log_format,
        max_bytes=max_bytes,
        backup_count=backup_count,
    )
    return logger.bind(component=component) if component else logger


def get_default_logger() -> FilteringBoundLogger:
    """Text logger on stderr for collaborators constructed without one."""
    return _create_logger("", log_format="text")
