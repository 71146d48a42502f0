"""Data models for the node supervisor.

This module defines the core data types for node management:
- SupervisorConfig: Immutable launch and endpoint configuration
- NodeStatus: Observed status reported to callers
- NotStarted / Running: The two process states held by the control actor
"""

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

import anyio.abc


class NodeStatus(StrEnum):
    """Observed node status.

    Derived by polling the primary process; never stored.
    """

    RUNNING = "running"
    STOPPED = "stopped"


@dataclass(frozen=True, slots=True)
class SupervisorConfig:
    """Configuration for the supervised node.

    Set once when the control actor is created and never changed.

    Attributes:
        working_dir: Working directory the node is launched in.
        log_file: File the log sink writes the node's combined output to.
        command: Fixed invocation; the run arguments are appended to it.
        log_sink_command: Log sink invocation; the log file path is appended.
        shutdown_timeout: Seconds to wait after SIGTERM before SIGKILL.
        rpc_host: Host of the node's JSON-RPC endpoint.
        rpc_port: Port of the node's JSON-RPC endpoint.
        rpc_timeout: Seconds before an RPC request is abandoned.
    """

    working_dir: Path
    log_file: Path
    command: tuple[str, ...] = ("cargo", "run", "--")
    log_sink_command: tuple[str, ...] = ("tee",)
    shutdown_timeout: float = 10.0
    rpc_host: str = "127.0.0.1"
    rpc_port: int = 8080
    rpc_timeout: float = 30.0

    @property
    def rpc_url(self) -> str:
        """Return the URL JSON-RPC requests are sent to."""
        return f"http://{self.rpc_host}:{self.rpc_port}/"


@dataclass(frozen=True, slots=True)
class NotStarted:
    """No node process is owned."""


@dataclass(frozen=True, slots=True)
class Running:
    """A node process and its log sink, created and owned together.

    Attributes:
        primary: The node process.
        log_sink: The process copying the node's output into the log file.
        started_at: ISO 8601 timestamp of the launch.
    """

    primary: anyio.abc.Process
    log_sink: anyio.abc.Process
    started_at: str


ProcessState = NotStarted | Running
