"""
Typed workflow API endpoint.

Every response is a JSON envelope ``{data, success, error}`` with HTTP
status 200; failures are reported inside the envelope.
"""

import logging
from typing import Dict

from starlette.requests import Request
from starlette.responses import JSONResponse

from server.dispatcher import OperationResult

logger = logging.getLogger(__name__)


def envelope_response(result: OperationResult) -> JSONResponse:
    return JSONResponse(result.to_envelope().model_dump(mode="json"))


async def read_form_parameters(request: Request) -> Dict[str, str]:
    """Read the text fields of a POST form. Uploaded files are ignored."""
    async with request.form() as form:
        return {key: value for key, value in form.items() if isinstance(value, str)}


async def api_workflow(request: Request):
    """Handle a typed workflow API request (GET or POST)."""
    server = request.app.state.workflow_server

    form = None
    if request.method == "POST":
        try:
            form = await read_form_parameters(request)
        except Exception as e:
            logger.warning(f"Failed to read workflow API form: {e}")
            return envelope_response(OperationResult.failure(e))

    result = await server.dispatcher.dispatch(request.query_params, form)
    return envelope_response(result)
