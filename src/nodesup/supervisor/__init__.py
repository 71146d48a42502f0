"""Supervisor package for managing a single node process.

All node operations are serialized through one control actor that owns
the process state. Callers talk to it through a client and receive exactly
one reply per command.

Key Components:
    - SupervisorConfig: Immutable launch and endpoint configuration
    - NodeStatus: Running/stopped status reported to callers
    - ProcessSupervisor: Node + log sink lifecycle (run, stop, poll)
    - LogReader: Reads the captured log file on demand
    - RpcForwarder: Forwards JSON-RPC calls over local HTTP
    - ControlActor: The single serialization point for all commands
    - ControlClient: Async caller-side handle for the actor
    - BlockingControlClient: Thread-safe blocking handle for the actor
    - create_control_router: FastAPI endpoint factory

Example:
    >>> from nodesup.supervisor import SupervisorConfig, open_control_actor
    >>> config = SupervisorConfig(Path("node"), Path("node.log"))
    >>> async with open_control_actor(config) as client:
    ...     await client.run("RUST_LOG=info", "--port 3485")
"""

from ._actor import ControlActor, ControlClient, open_control_actor
from ._api import create_control_router
from ._blocking import BlockingControlClient, start_control_thread
from ._commands import (
    CallRpcCommand,
    Command,
    GetLogCommand,
    GetStatusCommand,
    Outcome,
    QuitCommand,
    RunCommand,
    StopCommand,
    create_reply_channel,
)
from ._log_reader import LogReader
from ._models import NodeStatus, NotStarted, ProcessState, Running, SupervisorConfig
from ._process import ProcessSupervisor, parse_arg_spec, parse_env_spec
from ._rpc import RpcForwarder, RpcRequestEnvelope, decode_response

__all__ = [
    "BlockingControlClient",
    "CallRpcCommand",
    "Command",
    "ControlActor",
    "ControlClient",
    "GetLogCommand",
    "GetStatusCommand",
    "LogReader",
    "NodeStatus",
    "NotStarted",
    "Outcome",
    "ProcessState",
    "ProcessSupervisor",
    "QuitCommand",
    "RpcForwarder",
    "RpcRequestEnvelope",
    "RunCommand",
    "Running",
    "StopCommand",
    "SupervisorConfig",
    "create_control_router",
    "create_reply_channel",
    "decode_response",
    "open_control_actor",
    "parse_arg_spec",
    "parse_env_spec",
    "start_control_thread",
]
