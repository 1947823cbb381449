# backend/classbook/errors.py
"""
Application-wide error handlers.

Domain exceptions render as ``{"detail": {"message", "code", "details"}}``,
the same body FastAPI produces for the HTTPExceptions raised in routes.
Unexpected exceptions are logged with their traceback and answered with a
fixed message so store or driver text never reaches the client.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from .core.exceptions import DomainException

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"Service failure {exc.code} on {request.url.path}", exc_info=exc)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_payload()})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": {
                    "message": "An error occurred processing your request",
                    "code": "INTERNAL_ERROR",
                    "details": {},
                }
            },
        )
