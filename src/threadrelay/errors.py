from __future__ import annotations

import logging
from typing import Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

INVALID_REQUEST = "Invalid request"

logger = logging.getLogger("threadrelay.server")


class ErrorResponse(BaseModel):
    """
    Error payload returned by every /api route:
    {"error": "Failed to create thread"}
    """

    error: str = Field(..., description="Human-readable error message")


class RelayHTTPError(Exception):
    """Raised by route handlers; rendered as ``500 {"error": message}``."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


def _error_response(message: str) -> JSONResponse:
    payload = ErrorResponse(error=message)
    return JSONResponse(status_code=RelayHTTPError.status_code, content=payload.model_dump())


async def _relay_error_handler(request: Request, exc: RelayHTTPError) -> JSONResponse:
    return _error_response(exc.message)


def install_error_handlers(
    app: FastAPI,
    failure_messages: Optional[Dict[str, str]] = None,
) -> None:
    """
    Render route failures and malformed request bodies alike as
    ``500 {"error": ...}``. ``failure_messages`` maps endpoint function
    names to the message used when their input fails validation.
    """
    messages = dict(failure_messages or {})

    async def _validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        endpoint = request.scope.get("endpoint")
        message = messages.get(getattr(endpoint, "__name__", ""), INVALID_REQUEST)
        logger.error("%s: invalid request %s", message, exc.errors())
        return _error_response(message)

    app.add_exception_handler(RelayHTTPError, _relay_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)


__all__ = ["ErrorResponse", "RelayHTTPError", "install_error_handlers"]
