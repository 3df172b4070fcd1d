"""Mapping of domain errors onto the ``{status, data, message}`` response envelope."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..domain.errors import (
    AccountNotFoundError,
    AuthenticationError,
    ClientFaultError,
    ForbiddenRoleError,
    RFIDAccountError,
    ServerFaultError,
)

logger = logging.getLogger(__name__)

# Most specific first; the first matching class wins.
_STATUS_CODES: list[tuple[type[RFIDAccountError], int]] = [
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (ForbiddenRoleError, status.HTTP_403_FORBIDDEN),
    (AccountNotFoundError, status.HTTP_404_NOT_FOUND),
    (ClientFaultError, status.HTTP_400_BAD_REQUEST),
    (ServerFaultError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def status_code_for(exc: RFIDAccountError) -> int:
    for error_type, code in _STATUS_CODES:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def envelope(code: int, message: str, data: object = None) -> JSONResponse:
    body = {"status": code, "data": data if data is not None else [], "message": message}
    return JSONResponse(status_code=code, content=jsonable_encoder(body))


async def _handle_domain_error(request: Request, exc: RFIDAccountError) -> JSONResponse:
    code = status_code_for(exc)
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return envelope(code, exc.message, exc.data)


async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return envelope(422, "Unprocessable Entity", exc.errors())


async def _handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        logger.error("api not found: %s", request.url.path)
        return envelope(exc.status_code, "Not Found")
    return envelope(exc.status_code, str(exc.detail))


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("%s %s raised an unhandled error", request.method, request.url.path)
    return envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")


def install_exception_handlers(app: FastAPI) -> None:
    """Register envelope-producing handlers on ``app``."""
    app.add_exception_handler(RFIDAccountError, _handle_domain_error)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, _handle_http_error)
    app.add_exception_handler(Exception, _handle_unexpected_error)
