from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from drone_fleet.services.errors import ConflictError, NotFoundError, TransientError, ValidationError

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Operation failed"


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_handler(_, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "error": {"type": "http", "status": exc.status_code, "detail": exc.detail},
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={
                "detail": "Validation error",
                "error": {"type": "validation", "issues": exc.errors()},
            },
        )

    @app.exception_handler(ValidationError)
    async def fleet_validation_handler(_, exc: ValidationError):
        return JSONResponse(
            status_code=400,
            content={"detail": str(exc), "error": {"type": "validation"}},
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(_, exc: NotFoundError):
        return JSONResponse(
            status_code=404,
            content={"detail": str(exc), "error": {"type": "not_found", "resource": exc.resource}},
        )

    @app.exception_handler(ConflictError)
    async def conflict_handler(_, exc: ConflictError):
        logger.warning("Conflict: %s", exc)
        return JSONResponse(
            status_code=409,
            content={"detail": GENERIC_FAILURE, "error": {"type": "conflict"}},
        )

    @app.exception_handler(TransientError)
    async def transient_handler(_, exc: TransientError):
        logger.warning("Transient store failure: %s", exc)
        return JSONResponse(
            status_code=503,
            content={"detail": GENERIC_FAILURE, "error": {"type": "transient"}},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(_, exc: Exception):
        logger.exception("Unhandled error: %s", exc)
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "error": {"type": "internal"},
            },
        )
