from __future__ import annotations

import math

import structlog
from fastapi import HTTPException, Request

from spinwheel.api.routes.wheel_models import PaginationResponse
from spinwheel.core.config import get_settings
from spinwheel.services.internal_auth import (
    extract_client_ip,
    is_client_ip_allowed,
    is_internal_request_authenticated,
)

logger = structlog.get_logger(__name__)


def assert_internal_access(request: Request) -> None:
    settings = get_settings()
    client_ip = extract_client_ip(
        request,
        trusted_proxies=settings.internal_api_trusted_proxies,
    )

    if not is_client_ip_allowed(client_ip=client_ip, allowlist=settings.internal_api_allowlist):
        logger.warning("internal_auth_failed", reason="ip_not_allowed", client_ip=client_ip)
        raise HTTPException(
            status_code=403,
            detail={"code": "E_FORBIDDEN", "message": "Access denied."},
        )

    if not is_internal_request_authenticated(
        request,
        expected_token=settings.internal_api_token,
    ):
        logger.warning(
            "internal_auth_failed",
            reason="invalid_credentials",
            client_ip=client_ip,
        )
        raise HTTPException(
            status_code=403,
            detail={"code": "E_FORBIDDEN", "message": "Access denied."},
        )


def build_pagination(*, page: int, limit: int, total: int) -> PaginationResponse:
    return PaginationResponse(
        page=page,
        limit=limit,
        total=total,
        pages=math.ceil(total / limit) if total else 0,
    )
