"""nodesup exceptions."""

from pathlib import Path
from typing import Self

import httpx


class NodesupError(Exception):
    """Base exception for nodesup errors."""


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigError(NodesupError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when a settings file cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigParseError(ConfigError, ValueError):
    """Raised when an environment spec contains a malformed token.

    Attributes:
        token: The offending ``KEY=VALUE`` token.
    """

    def __init__(self, message: str, *, token: str | None = None) -> None:
        """Initialize with error message and token context.

        Args:
            message: Human-readable error message.
            token: The token that failed to parse.
        """
        super().__init__(message)
        self.token: str | None = token


# =============================================================================
# Supervisor Exceptions
# =============================================================================


class SupervisorError(NodesupError):
    """Base exception for node lifecycle errors."""


class AlreadyRunningError(SupervisorError):
    """Raised when starting a node that is already running."""


class NotRunningError(SupervisorError):
    """Raised when stopping a node that is not running."""


class ProcessSpawnError(SupervisorError):
    """Raised when the operating system fails to launch or signal a process.

    Attributes:
        command: The command line that was being executed, if known.
        cause: The underlying exception that caused the failure.
    """

    def __init__(
        self,
        message: str,
        *,
        command: tuple[str, ...] | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and process context.

        Args:
            message: Human-readable error message.
            command: The command line that was being executed.
            cause: The underlying exception that caused the failure.
        """
        super().__init__(message)
        self.command: tuple[str, ...] | None = command
        self.cause: Exception | None = cause

    @classmethod
    def from_launch_error(
        cls, error: OSError | ValueError, *, command: tuple[str, ...] | None = None
    ) -> Self:
        """Convert an error raised while creating a process.

        ValueError covers arguments the OS cannot accept, such as a NUL byte.
        """
        program = command[0] if command else "process"
        msg = f"Failed to launch {program}: {error}"
        return cls(msg, command=command, cause=error)


class LogReadError(SupervisorError):
    """Raised when the captured log file cannot be read.

    Attributes:
        path: The log file path.
        cause: The underlying exception that caused the failure.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and file context."""
        super().__init__(message)
        self.path: Path | None = path
        self.cause: Exception | None = cause

    @classmethod
    def from_os_error(cls, error: OSError, *, path: Path) -> Self:
        """Convert an OSError raised while opening or reading the log file."""
        msg = f"Failed to read log file {path}: {error}"
        return cls(msg, path=path, cause=error)


class ActorStoppedError(SupervisorError):
    """Raised when a command is submitted after the control actor has quit."""


# =============================================================================
# RPC Exceptions
# =============================================================================


class RpcError(NodesupError):
    """Base exception for JSON-RPC forwarding errors."""


class RpcTransportError(RpcError):
    """Raised when the HTTP request to the node fails.

    Attributes:
        url: The endpoint that was called.
    """

    def __init__(self, message: str, *, url: str | None = None) -> None:
        """Initialize with error message and endpoint context."""
        super().__init__(message)
        self.url: str | None = url

    @classmethod
    def from_http_error(cls, error: httpx.HTTPError, *, url: str) -> Self:
        """Convert an httpx transport failure, keeping its description."""
        return cls(str(error) or type(error).__name__, url=url)


class RpcParseError(RpcError):
    """Raised when the node's HTTP body is not a JSON-RPC response."""

    @classmethod
    def from_decode_error(cls, error: Exception) -> Self:
        """Convert a JSON decode or envelope validation failure."""
        return cls(f"JSON parse failed {error}")
