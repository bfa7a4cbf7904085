from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from .errors import ItemServiceError, MalformedInput

logger = logging.getLogger(__name__)

# Statuses that must not carry a response body.
_BODYLESS = {204, 304}


def error_response(exc: ItemServiceError) -> Response:
    if exc.status_code < 200 or exc.status_code in _BODYLESS:
        return Response(status_code=exc.status_code)
    return JSONResponse(status_code=exc.status_code, content=exc.body())


def install_error_handlers(app: FastAPI) -> None:
    """Map ItemServiceError (and body validation failures) to HTTP responses."""

    @app.exception_handler(ItemServiceError)
    async def _service_error(request: Request, exc: ItemServiceError) -> Response:
        if exc.status_code >= 500:
            logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> Response:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.errors())
        return error_response(MalformedInput("Invalid request payload"))
