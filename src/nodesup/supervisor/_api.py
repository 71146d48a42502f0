"""FastAPI control endpoints for the node supervisor.

Each endpoint submits exactly one command to the control actor and maps
the typed errors it may raise onto HTTP status codes.
"""

# pyright: reportUnusedFunction=false
# FastAPI route handlers are registered via decorators, not direct calls

from typing import Never

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, JsonValue

from nodesup.exceptions import (
    ActorStoppedError,
    AlreadyRunningError,
    ConfigParseError,
    LogReadError,
    NotRunningError,
    ProcessSpawnError,
    RpcParseError,
    RpcTransportError,
)

from ._actor import ControlClient


class RunRequest(BaseModel):
    """Request body for launching the node."""

    env: str = ""
    args: str = ""


class RpcRequest(BaseModel):
    """Request body for forwarding a JSON-RPC call."""

    method: str
    arguments: list[JsonValue] = []


class StatusResponse(BaseModel):
    """Response model for node status."""

    status: str


class MessageResponse(BaseModel):
    """Response model for simple message responses."""

    message: str


def _raise(code: int, cause: Exception) -> Never:
    """Raise an HTTPException carrying the error message.

    Args:
        code: HTTP status code.
        cause: The original exception.

    Raises:
        HTTPException: Always.
    """
    raise HTTPException(status_code=code, detail=str(cause)) from cause


def create_control_router(client: ControlClient) -> APIRouter:
    """Create a FastAPI router for node control endpoints.

    Args:
        client: Client bound to the control actor.

    Returns:
        A FastAPI APIRouter with control endpoints.
    """
    router = APIRouter(prefix="/node", tags=["node"])

    @router.post("/run", response_model=MessageResponse)
    async def run_node(request: RunRequest) -> MessageResponse:
        """Launch the node."""
        try:
            await client.run(request.env, request.args)
        except ConfigParseError as e:
            _raise(status.HTTP_400_BAD_REQUEST, e)
        except AlreadyRunningError as e:
            _raise(status.HTTP_409_CONFLICT, e)
        except (ProcessSpawnError, ActorStoppedError) as e:
            _raise(status.HTTP_500_INTERNAL_SERVER_ERROR, e)

        return MessageResponse(message="Node started")

    @router.post("/stop", response_model=MessageResponse)
    async def stop_node() -> MessageResponse:
        """Stop the node."""
        try:
            await client.stop()
        except NotRunningError as e:
            _raise(status.HTTP_409_CONFLICT, e)
        except (ProcessSpawnError, ActorStoppedError) as e:
            _raise(status.HTTP_500_INTERNAL_SERVER_ERROR, e)

        return MessageResponse(message="Node stopped")

    @router.get("/status", response_model=StatusResponse)
    async def get_status() -> StatusResponse:
        """Report whether the node is running."""
        try:
            node_status = await client.status()
        except ActorStoppedError as e:
            _raise(status.HTTP_500_INTERNAL_SERVER_ERROR, e)

        return StatusResponse(status=node_status.value)

    @router.get("/log", response_class=PlainTextResponse)
    async def get_log() -> str:
        """Return the node's captured log."""
        try:
            return await client.get_log()
        except LogReadError as e:
            if isinstance(e.cause, FileNotFoundError):
                _raise(status.HTTP_404_NOT_FOUND, e)
            _raise(status.HTTP_500_INTERNAL_SERVER_ERROR, e)
        except ActorStoppedError as e:
            _raise(status.HTTP_500_INTERNAL_SERVER_ERROR, e)

    @router.post("/rpc", response_model=None)
    async def call_rpc(request: RpcRequest) -> JsonValue:
        """Forward a JSON-RPC call to the node."""
        try:
            return await client.call_rpc(request.method, request.arguments)
        except (RpcTransportError, RpcParseError) as e:
            _raise(status.HTTP_502_BAD_GATEWAY, e)
        except ActorStoppedError as e:
            _raise(status.HTTP_500_INTERNAL_SERVER_ERROR, e)

    return router
