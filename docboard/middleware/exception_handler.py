"""Exception handlers for structured error responses."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from ..exceptions import DocboardException, ErrorCode, ErrorKind

logger = logging.getLogger(__name__)


async def docboard_exception_handler(request: Request, exc: DocboardException) -> JSONResponse:
    """Render a domain error as its JSON envelope.

    Client mistakes (4xx) are logged as warnings, storage failures as errors.
    """
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "%s %s failed with %s", request.method, request.url.path, exc.error_code.value,
        extra={
            "error_code": exc.error_code.value,
            "kind": exc.kind.value,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
            "status_code": exc.status_code
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: log the traceback, return a generic 500 body."""
    logger.exception(
        "Unhandled exception",
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": ErrorCode.INTERNAL_ERROR.value,
            "kind": ErrorKind.UNEXPECTED.value,
            "message": "Internal server error",
            "details": {},
        },
    )
