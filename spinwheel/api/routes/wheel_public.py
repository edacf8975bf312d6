from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Request

from spinwheel.api.errors import wheel_http_error
from spinwheel.api.routes.wheel_models import (
    PrizeListResponse,
    PrizeResponse,
    SpinRequest,
    SpinResponse,
    TokenValidateRequest,
    TokenValidateResponse,
    WonPrizeResponse,
)
from spinwheel.core.config import get_settings
from spinwheel.db.session import SessionLocal
from spinwheel.services.internal_auth import extract_client_ip
from spinwheel.wheel.attempts import attempt_result_for_error, record_failed_attempt
from spinwheel.wheel.errors import WheelError
from spinwheel.wheel.prizes import PrizeTableService
from spinwheel.wheel.service import SpinService
from spinwheel.wheel.tokens import TokenService, normalize_token_code
from spinwheel.wheel.types import ClientInfo

router = APIRouter(prefix="/api", tags=["wheel"])


def _client_info(request: Request) -> ClientInfo:
    return ClientInfo(
        user_agent=request.headers.get("User-Agent", ""),
        source_address=extract_client_ip(
            request,
            trusted_proxies=get_settings().internal_api_trusted_proxies,
        ),
    )


@router.post("/spin", response_model=SpinResponse)
async def spin_wheel(payload: SpinRequest, request: Request) -> SpinResponse:
    client_info = _client_info(request)
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            outcome = await SpinService.spin(
                session,
                code=payload.token_code,
                client_info=client_info,
                now_utc=now_utc,
            )
    except WheelError as exc:
        await record_failed_attempt(
            source_address=client_info.source_address,
            normalized_code=normalize_token_code(payload.token_code),
            result=attempt_result_for_error(exc),
            now_utc=now_utc,
        )
        raise wheel_http_error(exc) from exc

    return SpinResponse(
        prize=WonPrizeResponse(
            position=outcome.prize.position,
            name=outcome.prize.name,
            color=outcome.prize.color,
        ),
        result_id=outcome.result_id,
        spun_at=outcome.spun_at,
    )


@router.post("/tokens/validate", response_model=TokenValidateResponse)
async def validate_token(payload: TokenValidateRequest) -> TokenValidateResponse:
    try:
        async with SessionLocal.begin() as session:
            token = await TokenService.validate(session, code=payload.code)
    except WheelError as exc:
        raise wheel_http_error(exc) from exc

    return TokenValidateResponse(token_id=token.id, code=token.code, expires_at=token.expires_at)


@router.get("/prizes", response_model=PrizeListResponse)
async def list_prizes() -> PrizeListResponse:
    async with SessionLocal.begin() as session:
        prizes = await PrizeTableService.list_prizes(session)
    return PrizeListResponse(
        prizes=[
            PrizeResponse(
                position=prize.position,
                name=prize.name,
                probability=prize.probability,
                color=prize.color,
            )
            for prize in prizes
        ]
    )
