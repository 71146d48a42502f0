"""Synchronous access to a control actor running on its own worker thread."""

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import final

from anyio.from_thread import BlockingPortal, start_blocking_portal
from pydantic import JsonValue
from structlog.typing import FilteringBoundLogger

from ._actor import ControlClient, open_control_actor
from ._models import NodeStatus, SupervisorConfig
from ._rpc import RpcForwarder


@final
class BlockingControlClient:
    """Thread-safe blocking wrapper around a ControlClient.

    Any number of threads may call these methods at once; the calls are
    queued to the actor and executed one at a time.
    """

    __slots__ = ("_client", "_portal")

    def __init__(self, portal: BlockingPortal, client: ControlClient) -> None:
        self._portal = portal
        self._client = client

    def run(self, env: str = "", args: str = "") -> None:
        """Launch the node. See ControlClient.run."""
        self._portal.call(self._client.run, env, args)

    def stop(self) -> None:
        """Stop the node. See ControlClient.stop."""
        self._portal.call(self._client.stop)

    def quit(self) -> None:
        """Stop the actor. See ControlClient.quit."""
        self._portal.call(self._client.quit)

    def status(self) -> NodeStatus:
        """Return whether the node is running."""
        return self._portal.call(self._client.status)

    def get_log(self) -> str:
        """Return the full contents of the node's log file."""
        return self._portal.call(self._client.get_log)

    def call_rpc(self, method: str, arguments: Sequence[JsonValue] = ()) -> JsonValue:
        """Forward a JSON-RPC call to the node."""
        return self._portal.call(self._client.call_rpc, method, arguments)


@contextmanager
def start_control_thread(
    config: SupervisorConfig,
    *,
    forwarder: RpcForwarder | None = None,
    logger: FilteringBoundLogger | None = None,
) -> Iterator[BlockingControlClient]:
    """Run a control actor on a dedicated worker thread.

    The thread runs its own event loop hosting the actor. It is shut down
    when the context exits.

    Args:
        config: Configuration for the actor.
        forwarder: RPC forwarder to use instead of the default one.
        logger: Logger for the actor and its collaborators.

    Yields:
        A blocking client bound to the running actor.
    """
    with start_blocking_portal() as portal:
        actor_context = portal.wrap_async_context_manager(
            open_control_actor(config, forwarder=forwarder, logger=logger)
        )
        with actor_context as client:
            yield BlockingControlClient(portal, client)
