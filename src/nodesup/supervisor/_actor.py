"""The control actor: the single serialization point for node operations.

All commands flow through one inbound queue and are executed strictly one
at a time by a single task that exclusively owns the process state. Callers
use ControlClient, which submits a command with its own reply channel and
waits for the one outcome it receives.
"""

import math
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager, suppress
from typing import Any, final

import anyio
from anyio import to_thread
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from pydantic import JsonValue
from structlog.typing import FilteringBoundLogger

from nodesup.exceptions import ActorStoppedError, NodesupError
from nodesup.utils import get_default_logger

from ._commands import (
    CallRpcCommand,
    Command,
    GetLogCommand,
    GetStatusCommand,
    Outcome,
    QuitCommand,
    ReplyReceiver,
    RunCommand,
    StopCommand,
    create_reply_channel,
)
from ._log_reader import LogReader
from ._models import NodeStatus, SupervisorConfig
from ._process import ProcessSupervisor
from ._rpc import RpcForwarder


@final
class ControlClient:
    """Caller-side handle for submitting commands to a ControlActor.

    Each method enqueues one command and waits for its reply. Errors raised
    by the command are re-raised here. Safe to share between tasks; commands
    from all callers are executed in a single total order.
    """

    __slots__ = ("_inbox",)

    def __init__(self, inbox: MemoryObjectSendStream[Command]) -> None:
        self._inbox = inbox

    async def _submit(self, command: Command, receiver: ReplyReceiver) -> Any:  # pyright: ignore[reportExplicitAny]
        """Enqueue a command and wait for its outcome.

        Raises:
            ActorStoppedError: If the actor has quit or quits before replying.
        """
        with receiver:
            try:
                await self._inbox.send(command)
            except (anyio.BrokenResourceError, anyio.ClosedResourceError) as e:
                command.reply.close()
                msg = "Control actor has stopped"
                raise ActorStoppedError(msg) from e

            try:
                outcome = await receiver.receive()
            except anyio.EndOfStream as e:
                msg = "Control actor stopped before replying"
                raise ActorStoppedError(msg) from e

        return outcome.unwrap()

    async def run(self, env: str = "", args: str = "") -> None:
        """Launch the node.

        Args:
            env: Whitespace-separated ``KEY=VALUE`` environment overrides.
            args: Whitespace-separated arguments for the node.

        Raises:
            AlreadyRunningError: If the node is already running.
            ConfigParseError: If env is malformed.
            ProcessSpawnError: If the node or its log sink fails to launch.
        """
        reply, receiver = create_reply_channel()
        await self._submit(RunCommand(env=env, args=args, reply=reply), receiver)

    async def stop(self) -> None:
        """Stop the node.

        Raises:
            NotRunningError: If the node is not running.
        """
        reply, receiver = create_reply_channel()
        await self._submit(StopCommand(reply=reply), receiver)

    async def quit(self) -> None:
        """Stop the actor after the commands queued ahead of this one."""
        reply, receiver = create_reply_channel()
        await self._submit(QuitCommand(reply=reply), receiver)

    async def status(self) -> NodeStatus:
        """Return whether the node is running."""
        reply, receiver = create_reply_channel()
        status: NodeStatus = await self._submit(
            GetStatusCommand(reply=reply), receiver
        )
        return status

    async def get_log(self) -> str:
        """Return the full contents of the node's log file.

        Raises:
            LogReadError: If the log file is missing or unreadable.
        """
        reply, receiver = create_reply_channel()
        log: str = await self._submit(GetLogCommand(reply=reply), receiver)
        return log

    async def call_rpc(
        self, method: str, arguments: Sequence[JsonValue] = ()
    ) -> JsonValue:
        """Forward a JSON-RPC call to the node.

        Raises:
            RpcTransportError: If the node cannot be reached.
            RpcParseError: If the node's reply is not a JSON-RPC response.
        """
        reply, receiver = create_reply_channel()
        command = CallRpcCommand(
            method=method, arguments=tuple(arguments), reply=reply
        )
        response: JsonValue = await self._submit(command, receiver)
        return response


@final
class ControlActor:
    """Executes node commands one at a time in arrival order.

    The actor owns a ProcessSupervisor, a LogReader and an RpcForwarder, and
    is the only code that touches them. A command runs to completion before
    the next one is taken from the queue. Command errors never stop the
    loop; they are delivered to the caller as part of the reply.

    Example:
        >>> async with open_control_actor(config) as client:
        ...     await client.run("RUST_LOG=info", "--port 3485")
        ...     await client.status()
        <NodeStatus.RUNNING: 'running'>
    """

    __slots__ = (
        "_forwarder",
        "_inbox_receive",
        "_inbox_send",
        "_log_reader",
        "_logger",
        "_process",
    )

    def __init__(
        self,
        config: SupervisorConfig,
        *,
        forwarder: RpcForwarder | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the actor and its collaborators.

        Args:
            config: Configuration shared by all collaborators.
            forwarder: RPC forwarder to use instead of the default one.
            logger: Logger for the actor and its collaborators.
        """
        self._logger = logger or get_default_logger()
        self._process = ProcessSupervisor(config, logger=self._logger)
        self._log_reader = LogReader(config.log_file)
        self._forwarder = forwarder or RpcForwarder(config, logger=self._logger)
        self._inbox_send: MemoryObjectSendStream[Command]
        self._inbox_receive: MemoryObjectReceiveStream[Command]
        self._inbox_send, self._inbox_receive = anyio.create_memory_object_stream[
            Command
        ](math.inf)

    def client(self) -> ControlClient:
        """Return a client that submits commands to this actor."""
        return ControlClient(self._inbox_send)

    async def run(self) -> None:
        """Process commands until a quit command is received."""
        self._logger.debug("actor_started")

        async with self._inbox_receive:
            async for command in self._inbox_receive:
                if isinstance(command, QuitCommand):
                    self._reply(command, Outcome())
                    break
                self._reply(command, await self._dispatch(command))

            self._abandon_pending()

        self._logger.debug("actor_stopped")

    async def _dispatch(self, command: Command) -> Outcome[Any]:  # pyright: ignore[reportExplicitAny]
        """Execute one command and capture its result."""
        name = type(command).__name__
        value: object = None
        try:
            if isinstance(command, RunCommand):
                await self._process.run(command.env, command.args)
            elif isinstance(command, StopCommand):
                await self._process.stop()
            elif isinstance(command, GetStatusCommand):
                value = (
                    NodeStatus.RUNNING
                    if self._process.is_running()
                    else NodeStatus.STOPPED
                )
            elif isinstance(command, GetLogCommand):
                value = await to_thread.run_sync(self._log_reader.get_log)
            elif isinstance(command, CallRpcCommand):
                value = await self._forwarder.call_rpc(
                    command.method, command.arguments
                )
            else:
                msg = f"Unsupported command: {name}"
                raise TypeError(msg)  # noqa: TRY301
        except NodesupError as e:
            self._logger.debug("command_failed", command=name, error=str(e))
            return Outcome(error=e)
        except Exception as e:
            self._logger.exception("command_crashed", command=name)
            return Outcome(error=e)

        return Outcome(value=value)

    def _reply(self, command: Command, outcome: Outcome[Any]) -> None:  # pyright: ignore[reportExplicitAny]
        """Deliver an outcome and close the command's reply channel."""
        with command.reply:
            try:
                command.reply.send_nowait(outcome)
            except anyio.BrokenResourceError:
                self._logger.warning("reply_abandoned", command=type(command).__name__)

    def _abandon_pending(self) -> None:
        """Close the reply channels of commands queued behind a quit."""
        while True:
            try:
                command = self._inbox_receive.receive_nowait()
            except (anyio.WouldBlock, anyio.EndOfStream):
                break
            command.reply.close()


@asynccontextmanager
async def open_control_actor(
    config: SupervisorConfig,
    *,
    forwarder: RpcForwarder | None = None,
    logger: FilteringBoundLogger | None = None,
) -> AsyncIterator[ControlClient]:
    """Run a control actor for the duration of the context.

    On exit the actor is sent a quit command, unless it already quit. The
    node itself is left as it is. An error raised inside the context, or by
    the actor, propagates as itself rather than inside an exception group.

    Args:
        config: Configuration for the actor.
        forwarder: RPC forwarder to use instead of the default one.
        logger: Logger for the actor and its collaborators.

    Yields:
        A client bound to the running actor.
    """
    actor = ControlActor(config, forwarder=forwarder, logger=logger)
    try:
        async with anyio.create_task_group() as tg:
            tg.start_soon(actor.run)
            client = actor.client()
            try:
                yield client
            finally:
                with anyio.CancelScope(shield=True), suppress(ActorStoppedError):
                    await client.quit()
    except BaseExceptionGroup as eg:
        if len(eg.exceptions) == 1:
            raise eg.exceptions[0] from eg.exceptions[0].__cause__
        raise
