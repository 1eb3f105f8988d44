"""Starlette application for the workflow server."""

import contextlib
import logging

from starlette.applications import Starlette

from server.api import api_routes
from server.startup_tracer import log_startup_summary
from server.workflow_server import WorkflowServer

logger = logging.getLogger(__name__)


def create_app(server: WorkflowServer) -> Starlette:
    """Create the application serving ``/workflowapi`` and ``/designerapi``.

    The server is started in the lifespan, so requests are only accepted
    once the runtime is wired and running.
    """

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette):
        try:
            await server.start()
            log_startup_summary()
            yield
        finally:
            await server.stop()

    app = Starlette(routes=api_routes, lifespan=lifespan)
    app.state.workflow_server = server
    return app
