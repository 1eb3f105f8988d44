"""
Scheme designer pass-through endpoint.

Query and form parameters are merged into one flat bag and handed to the
runtime's designer API together with the first uploaded file, if any.
"""

import logging
from typing import BinaryIO, Dict, Optional

from starlette.datastructures import UploadFile
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from workflow_core.constants import (
    DESIGNER_DOWNLOAD_SCHEME,
    DESIGNER_SCHEME_FILENAME,
    DESIGNER_SCHEME_MEDIA_TYPE,
)

logger = logging.getLogger(__name__)


def designer_response(parameters: Dict[str, str], result) -> Response:
    # Matched exactly, other spellings are plain text
    if parameters.get("operation") == DESIGNER_DOWNLOAD_SCHEME:
        return Response(
            content=result,
            media_type=DESIGNER_SCHEME_MEDIA_TYPE,
            headers={
                "Content-Disposition": f"attachment; filename={DESIGNER_SCHEME_FILENAME}"
            },
        )
    return PlainTextResponse(result)


async def api_designer(request: Request):
    """Handle a designer request (GET or POST). Any failure yields an empty 404."""
    server = request.app.state.workflow_server
    parameters: Dict[str, str] = dict(request.query_params)

    try:
        if request.method != "POST":
            result = await server.designer_api(parameters, None)
            return designer_response(parameters, result)

        async with request.form() as form:
            file_stream: Optional[BinaryIO] = None
            for key, value in form.multi_items():
                if isinstance(value, UploadFile):
                    if file_stream is None:
                        file_stream = value.file
                else:
                    # Form values win over query values
                    parameters[key] = value
            result = await server.designer_api(parameters, file_stream)
        return designer_response(parameters, result)
    except Exception:
        logger.exception("Designer API request failed")
        return Response(status_code=404)
