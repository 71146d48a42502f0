"""Commands accepted by the control actor and the replies they produce.

Commands are plain data. Each one carries a single-use reply channel on which
the actor delivers exactly one Outcome.
"""

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar, cast

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from pydantic import JsonValue

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Outcome(Generic[T]):
    """Result of one command: a value or the error that replaced it.

    Attributes:
        value: The command's return value on success.
        error: The exception raised while executing the command.
    """

    value: T | None = None
    error: Exception | None = None

    def unwrap(self) -> T:
        """Return the value, or raise the error the command failed with."""
        if self.error is not None:
            raise self.error
        return cast("T", self.value)


ReplyChannel = MemoryObjectSendStream[Outcome[Any]]  # pyright: ignore[reportExplicitAny]
ReplyReceiver = MemoryObjectReceiveStream[Outcome[Any]]  # pyright: ignore[reportExplicitAny]


def create_reply_channel() -> tuple[ReplyChannel, ReplyReceiver]:
    """Create a reply channel with room for exactly one outcome."""
    return anyio.create_memory_object_stream[Outcome[Any]](1)  # pyright: ignore[reportExplicitAny]


@dataclass(frozen=True, slots=True)
class RunCommand:
    """Launch the node with environment overrides and arguments."""

    env: str
    args: str
    reply: ReplyChannel = field(repr=False)


@dataclass(frozen=True, slots=True)
class StopCommand:
    """Stop the node, escalating to SIGKILL after the shutdown timeout."""

    reply: ReplyChannel = field(repr=False)


@dataclass(frozen=True, slots=True)
class QuitCommand:
    """Reply with success, then stop processing commands for good."""

    reply: ReplyChannel = field(repr=False)


@dataclass(frozen=True, slots=True)
class GetStatusCommand:
    """Report whether the node is running."""

    reply: ReplyChannel = field(repr=False)


@dataclass(frozen=True, slots=True)
class GetLogCommand:
    """Return the full contents of the captured log file."""

    reply: ReplyChannel = field(repr=False)


@dataclass(frozen=True, slots=True)
class CallRpcCommand:
    """Forward a JSON-RPC call to the node."""

    method: str
    arguments: tuple[JsonValue, ...]
    reply: ReplyChannel = field(repr=False)


Command = (
    RunCommand
    | StopCommand
    | QuitCommand
    | GetStatusCommand
    | GetLogCommand
    | CallRpcCommand
)
