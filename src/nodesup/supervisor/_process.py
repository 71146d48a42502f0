"""Lifecycle management for the supervised node process.

This module provides the ProcessSupervisor class that spawns the node
together with its log sink, polls it, and stops it with a SIGTERM then
SIGKILL escalation.
"""

import os
import shlex
import signal
import subprocess
from typing import final

import anyio
import pendulum
from structlog.typing import FilteringBoundLogger

from nodesup.exceptions import (
    AlreadyRunningError,
    ConfigParseError,
    NotRunningError,
    ProcessSpawnError,
)
from nodesup.utils import get_default_logger

from ._models import NotStarted, ProcessState, Running, SupervisorConfig


def _get_timestamp() -> str:
    """Get current timestamp in ISO 8601 format."""
    return pendulum.now("UTC").to_iso8601_string()


def parse_env_spec(spec: str) -> dict[str, str]:
    """Parse a whitespace-separated ``KEY=VALUE`` environment spec.

    Parsing is all-or-nothing: one malformed token rejects the whole spec.

    Args:
        spec: The environment spec, e.g. ``"FOO=1 BAR=2"``.

    Returns:
        The environment overrides in the order they were given.

    Raises:
        ConfigParseError: If a token does not contain exactly one ``=`` or
            has an empty key.
    """
    overrides: dict[str, str] = {}
    for token in spec.split():
        parts = token.split("=")
        if len(parts) != 2 or not parts[0]:  # noqa: PLR2004
            msg = f"Invalid environment entry {token!r}: expected KEY=VALUE"
            raise ConfigParseError(msg, token=token)
        overrides[parts[0]] = parts[1]
    return overrides


def parse_arg_spec(spec: str) -> list[str]:
    """Split a whitespace-separated argument spec into an argument vector."""
    return spec.split()


@final
class ProcessSupervisor:
    """Owns the node process and its log sink.

    The node's stdout and stderr are merged into one OS pipe whose read end
    is handed to the log sink, so the sink exits on its own once the node
    (and everything holding the pipe) is gone.

    Not safe for concurrent use: the control actor is its only caller.
    """

    __slots__ = ("_config", "_logger", "_state")

    def __init__(
        self,
        config: SupervisorConfig,
        *,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the supervisor in the NotStarted state.

        Args:
            config: Launch configuration for the node.
            logger: Logger for lifecycle events.
        """
        self._config = config
        self._logger = logger or get_default_logger()
        self._state: ProcessState = NotStarted()

    @property
    def state(self) -> ProcessState:
        """Return the current process state."""
        return self._state

    def is_running(self) -> bool:
        """Poll the node without blocking.

        A node that exited on its own is reported as not running, but the
        stale state is kept until the next run or stop.
        """
        if isinstance(self._state, NotStarted):
            return False
        return self._state.primary.returncode is None

    async def run(self, env_spec: str, arg_spec: str) -> None:
        """Launch the node and its log sink.

        Args:
            env_spec: Whitespace-separated ``KEY=VALUE`` overrides merged onto
                the ambient environment.
            arg_spec: Whitespace-separated arguments appended to the command.

        Raises:
            AlreadyRunningError: If the node is already running.
            ConfigParseError: If env_spec is malformed. Nothing is spawned.
            ProcessSpawnError: If either process fails to launch.
        """
        if self.is_running():
            msg = "Node is already running"
            raise AlreadyRunningError(msg)

        overrides = parse_env_spec(env_spec)
        command = (*self._config.command, *parse_arg_spec(arg_spec))
        sink_command = (*self._config.log_sink_command, str(self._config.log_file))
        env = {**os.environ, **overrides}

        read_fd, write_fd = os.pipe()
        try:
            try:
                primary = await anyio.open_process(
                    command,
                    cwd=self._config.working_dir,
                    env=env,
                    stdin=subprocess.DEVNULL,
                    stdout=write_fd,
                    stderr=subprocess.STDOUT,
                )
            except (OSError, ValueError) as e:
                raise ProcessSpawnError.from_launch_error(e, command=command) from e

            try:
                log_sink = await anyio.open_process(
                    sink_command,
                    stdin=read_fd,
                    stdout=None,
                    stderr=None,
                )
            except (OSError, ValueError) as e:
                primary.kill()
                _ = await primary.wait()
                raise ProcessSpawnError.from_launch_error(
                    e, command=sink_command
                ) from e
        finally:
            os.close(read_fd)
            os.close(write_fd)

        self._state = Running(
            primary=primary,
            log_sink=log_sink,
            started_at=_get_timestamp(),
        )
        self._logger.info(
            "node_started",
            pid=primary.pid,
            log_sink_pid=log_sink.pid,
            command=shlex.join(command),
            env_overrides=sorted(overrides),
        )

    async def stop(self) -> None:
        """Stop the node gracefully.

        Sends SIGTERM and waits up to the shutdown timeout. If the node is
        still alive after that, sends SIGKILL. Succeeds either way. The log
        sink is not signalled.

        Raises:
            NotRunningError: If the node is not running.
            ProcessSpawnError: If the node cannot be signalled.
        """
        if not self.is_running() or not isinstance(self._state, Running):
            msg = "Node is not running"
            raise NotRunningError(msg)

        primary = self._state.primary
        timeout = self._config.shutdown_timeout

        try:
            self._logger.debug("sigterm_sent", pid=primary.pid)
            primary.send_signal(signal.SIGTERM)

            with anyio.move_on_after(timeout):
                _ = await primary.wait()

            if primary.returncode is None:
                self._logger.info(
                    "node_stop_timeout", pid=primary.pid, timeout=timeout
                )
                primary.kill()
                _ = await primary.wait()
            else:
                self._logger.debug(
                    "node_exited", pid=primary.pid, exit_code=primary.returncode
                )
        except ProcessLookupError:
            # Exited between the poll and the signal
            self._logger.debug("node_already_exited", pid=primary.pid)
        except OSError as e:
            msg = f"Failed to stop node (pid {primary.pid}): {e}"
            raise ProcessSpawnError(msg, cause=e) from e

        self._logger.info(
            "node_stopped",
            pid=primary.pid,
            exit_code=primary.returncode,
            started_at=self._state.started_at,
        )
        self._state = NotStarted()
