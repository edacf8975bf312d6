from __future__ import annotations

import structlog
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from spinwheel.wheel.errors import (
    PrizeTableConfigurationError,
    SpinRateLimitedError,
    TokenAlreadyUsedError,
    TokenConflictError,
    TokenExpiredError,
    TokenGenerationError,
    TokenNotFoundError,
    WheelError,
    WheelValidationError,
)

logger = structlog.get_logger(__name__)

WHEEL_ERROR_RESPONSES: tuple[tuple[type[WheelError], int, str, str], ...] = (
    (WheelValidationError, 422, "E_VALIDATION", "Invalid request."),
    (TokenNotFoundError, 404, "E_TOKEN_NOT_FOUND", "Invalid token code."),
    (TokenAlreadyUsedError, 409, "E_TOKEN_ALREADY_USED", "Token has already been used."),
    (TokenConflictError, 409, "E_TOKEN_ALREADY_USED", "Token has already been used."),
    (TokenExpiredError, 410, "E_TOKEN_EXPIRED", "Token has expired."),
    (
        PrizeTableConfigurationError,
        503,
        "E_PRIZE_TABLE_MISCONFIGURED",
        "Prize configuration is invalid. Please contact administrator.",
    ),
    (
        TokenGenerationError,
        500,
        "E_TOKEN_GENERATION_FAILED",
        "Failed to generate a unique token code.",
    ),
    (
        SpinRateLimitedError,
        429,
        "E_SPIN_RATE_LIMITED",
        "Too many spin attempts. Please wait before trying again.",
    ),
)


def wheel_http_error(exc: WheelError) -> HTTPException:
    for error_type, status_code, code, default_message in WHEEL_ERROR_RESPONSES:
        if isinstance(exc, error_type):
            return HTTPException(
                status_code=status_code,
                detail={"code": code, "message": str(exc) or default_message},
            )
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"code": "E_WHEEL", "message": str(exc) or "Request rejected."},
    )


async def handle_storage_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(
        "storage_error",
        path=request.url.path,
        method=request.method,
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": {"code": "E_INTERNAL", "message": "Internal server error."}},
    )
