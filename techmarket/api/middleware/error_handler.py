"""
Maps domain exceptions to HTTP responses.
"""

import traceback

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from techmarket.config.logging import get_logger
from techmarket.domain.exceptions.job_state_error import (
    ConflictError,
    InvalidTransitionError,
    OtpMismatch,
    RepostLimitExceeded,
)
from techmarket.domain.exceptions.not_found_error import NotFoundError
from techmarket.domain.exceptions.validation_error import (
    ActorMismatchError,
    InvalidAmount,
    ValidationError,
)

logger = get_logger(__name__)


def _error_body(error: str, message: str, error_type: str, **extra) -> dict:
    return {"error": error, "message": message, "type": error_type, **extra}


def add_error_handlers(app: FastAPI) -> None:
    """Add custom error handlers to FastAPI app.

    Starlette resolves handlers along the exception's MRO, so subclasses
    such as ``InvalidAmount`` get their own status over ``ValidationError``.
    """

    @app.exception_handler(InvalidAmount)
    async def invalid_amount_handler(request: Request, exc: InvalidAmount):
        logger.warning("Invalid amount", error=str(exc), path=request.url.path)
        return JSONResponse(
            status_code=422,
            content=_error_body("Invalid Amount", str(exc), "invalid_amount"),
        )

    @app.exception_handler(ActorMismatchError)
    async def actor_mismatch_handler(request: Request, exc: ActorMismatchError):
        logger.warning("Actor mismatch", error=str(exc), path=request.url.path)
        return JSONResponse(
            status_code=403,
            content=_error_body("Forbidden", str(exc), "actor_mismatch"),
        )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        logger.warning("Validation error", error=str(exc), path=request.url.path)
        return JSONResponse(
            status_code=400,
            content=_error_body("Validation Error", str(exc), "validation_error"),
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        logger.info("Not found", error=str(exc), path=request.url.path)
        return JSONResponse(
            status_code=404,
            content=_error_body("Not Found", str(exc), "not_found"),
        )

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError):
        logger.info("Conflict", error=str(exc), path=request.url.path)
        return JSONResponse(
            status_code=409,
            content=_error_body("Conflict", str(exc), "conflict"),
        )

    @app.exception_handler(InvalidTransitionError)
    async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
        logger.info(
            "Invalid transition",
            error=str(exc),
            current_status=exc.current_status,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=409,
            content=_error_body(
                "Invalid Transition",
                str(exc),
                "invalid_transition",
                current_status=exc.current_status,
            ),
        )

    @app.exception_handler(OtpMismatch)
    async def otp_mismatch_handler(request: Request, exc: OtpMismatch):
        logger.info("OTP mismatch", job_id=exc.job_id, reason=exc.reason)
        return JSONResponse(
            status_code=400,
            content=_error_body(
                "OTP Mismatch", str(exc), "otp_mismatch", resend_available=True
            ),
        )

    @app.exception_handler(RepostLimitExceeded)
    async def repost_limit_handler(request: Request, exc: RepostLimitExceeded):
        logger.info("Repost limit exceeded", job_id=exc.job_id, max_reposts=exc.max_reposts)
        return JSONResponse(
            status_code=410,
            content=_error_body(
                "Permanently Rejected",
                str(exc),
                "repost_limit_exceeded",
                permanently_rejected=True,
            ),
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error("Database error", error=str(exc), path=request.url.path)
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "Database Error", "A database error occurred", "database_error"
            ),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body("HTTP Error", exc.detail, "http_error"),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception",
            error=str(exc),
            path=request.url.path,
            traceback=traceback.format_exc(),
        )
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "Internal Server Error", "An unexpected error occurred", "internal_error"
            ),
        )
