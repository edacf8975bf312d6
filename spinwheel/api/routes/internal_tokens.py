from __future__ import annotations

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, HTTPException, Query, Request, status

from spinwheel.api.errors import wheel_http_error
from spinwheel.api.routes.internal_helpers import assert_internal_access, build_pagination
from spinwheel.api.routes.wheel_models import (
    ExpiredTokensPurgeResponse,
    IssuedTokenResponse,
    TokenIssueRequest,
    TokenIssueResponse,
    TokenListItem,
    TokenListResponse,
    TokenStatsResponse,
)
from spinwheel.db.repo.tokens_repo import TOKEN_STATUSES, TokensRepo
from spinwheel.db.session import SessionLocal
from spinwheel.services.internal_auth import resolve_admin_identity
from spinwheel.wheel.errors import WheelError
from spinwheel.wheel.tokens import TokenService, token_status

router = APIRouter(prefix="/internal/tokens", tags=["internal", "tokens"])
logger = structlog.get_logger(__name__)


@router.post("", response_model=TokenIssueResponse, status_code=status.HTTP_201_CREATED)
async def issue_tokens(payload: TokenIssueRequest, request: Request) -> TokenIssueResponse:
    assert_internal_access(request)
    created_by = resolve_admin_identity(request)

    try:
        async with SessionLocal.begin() as session:
            issued = await TokenService.issue(
                session,
                quantity=payload.quantity,
                created_by=created_by,
            )
    except WheelError as exc:
        raise wheel_http_error(exc) from exc

    return TokenIssueResponse(
        requested=payload.quantity,
        created=len(issued),
        tokens=[
            IssuedTokenResponse(
                id=token.id,
                code=token.code,
                expires_at=token.expires_at,
                created_at=token.created_at,
            )
            for token in issued
        ],
    )


@router.get("", response_model=TokenListResponse)
async def list_tokens(
    request: Request,
    status_filter: str | None = Query(default=None, alias="status", min_length=1, max_length=16),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=200),
) -> TokenListResponse:
    assert_internal_access(request)
    normalized_status = status_filter.strip().lower() if status_filter is not None else None
    if normalized_status is not None and normalized_status not in TOKEN_STATUSES:
        raise HTTPException(
            status_code=422,
            detail={
                "code": "E_VALIDATION",
                "message": f"Status must be one of: {', '.join(TOKEN_STATUSES)}.",
            },
        )

    now_utc = datetime.now(timezone.utc)
    async with SessionLocal.begin() as session:
        total = await TokensRepo.count_tokens(session, now_utc=now_utc, status=normalized_status)
        tokens = await TokensRepo.list_tokens(
            session,
            now_utc=now_utc,
            status=normalized_status,
            offset=(page - 1) * limit,
            limit=limit,
        )

    return TokenListResponse(
        tokens=[
            TokenListItem(
                id=token.id,
                code=token.code,
                status=token_status(token, now_utc=now_utc),
                is_used=token.is_used,
                used_at=token.used_at,
                expires_at=token.expires_at,
                created_at=token.created_at,
                created_by=token.created_by,
                has_result=token.result_id is not None,
            )
            for token in tokens
        ],
        pagination=build_pagination(page=page, limit=limit, total=total),
    )


@router.get("/stats", response_model=TokenStatsResponse)
async def get_token_stats(request: Request) -> TokenStatsResponse:
    assert_internal_access(request)

    now_utc = datetime.now(timezone.utc)
    async with SessionLocal.begin() as session:
        counts = await TokensRepo.count_by_status(session, now_utc=now_utc)

    return TokenStatsResponse(
        total=counts["total"],
        used=counts["used"],
        expired=counts["expired"],
        active=counts["unused"],
    )


@router.delete("/expired", response_model=ExpiredTokensPurgeResponse)
async def delete_expired_tokens(request: Request) -> ExpiredTokensPurgeResponse:
    assert_internal_access(request)

    now_utc = datetime.now(timezone.utc)
    async with SessionLocal.begin() as session:
        deleted = await TokensRepo.delete_expired_unused(session, now_utc=now_utc)

    logger.info(
        "expired_tokens_deleted",
        deleted=deleted,
        deleted_by=resolve_admin_identity(request),
    )
    return ExpiredTokensPurgeResponse(deleted=deleted)
