"""Long-running control server.

Hosts the control actor and an in-process FastAPI application that exposes
it over HTTP until the server is interrupted.
"""

import anyio
import uvicorn
from fastapi import FastAPI
from structlog.typing import FilteringBoundLogger

from nodesup.config import NodesupSettings
from nodesup.supervisor import (
    ControlClient,
    NodeStatus,
    create_control_router,
    open_control_actor,
)


def create_control_app(client: ControlClient) -> FastAPI:
    """Create the FastAPI control application.

    Args:
        client: Client bound to a running control actor.

    Returns:
        A FastAPI application with node control endpoints.
    """
    app = FastAPI(
        title="nodesup control",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.include_router(create_control_router(client))
    return app


async def run_serve(settings: NodesupSettings, logger: FilteringBoundLogger) -> None:
    """Run the control actor behind the HTTP control API.

    Blocks until uvicorn shuts down. A node still running at that point is
    stopped before the actor quits.

    Args:
        settings: Loaded settings.
        logger: Logger for the actor and its collaborators.
    """
    config = settings.to_supervisor_config()

    async with open_control_actor(config, logger=logger) as client:
        uvicorn_config = uvicorn.Config(
            app=create_control_app(client),
            host=settings.control.host,
            port=settings.control.port,
            log_level="warning",
            access_log=False,
        )
        server = uvicorn.Server(uvicorn_config)

        logger.info(
            "control_server_starting",
            host=settings.control.host,
            port=settings.control.port,
        )
        try:
            await server.serve()
        finally:
            with anyio.CancelScope(shield=True):
                if await client.status() is NodeStatus.RUNNING:
                    logger.info("stopping_node_on_shutdown")
                    await client.stop()
