"""API error translation

Use cases return ``Result``; routes raise ``ClientError`` from a failed result
and the app renders it as ``{"success": false, "error": {...}}``.
"""

import logging
from typing import Optional
from fastapi import Request, status
from fastapi.responses import JSONResponse
from libs.result import Error
from src.domain.errors import ErrorKind

logger = logging.getLogger(__name__)

KIND_STATUS_CODES = {
    ErrorKind.VALIDATION.value: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT.value: status.HTTP_409_CONFLICT,
    ErrorKind.AUTHORIZATION.value: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND.value: status.HTTP_404_NOT_FOUND,
    ErrorKind.DEPENDENCY.value: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class ClientError(Exception):

    def __init__(self, error: Error, status_code: Optional[int] = None):
        super().__init__(error.message)
        self.error = error
        self.status_code = status_code or KIND_STATUS_CODES.get(
            error.kind, status.HTTP_400_BAD_REQUEST
        )


async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
    if exc.status_code >= 500:
        # reason stays server-side
        logger.error(
            f"{request.method} {request.url.path} failed: {exc.error.code} ({exc.error.reason})"
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": {"code": exc.error.code, "message": exc.error.message},
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": {"code": "INTERNAL_ERROR", "message": "Internal server error"},
        },
    )
