from __future__ import annotations

from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Query, Request

from spinwheel.api.routes.internal_helpers import assert_internal_access, build_pagination
from spinwheel.api.routes.wheel_models import (
    PrizeDistributionItem,
    SpinResultItem,
    SpinResultListResponse,
    SpinStatsResponse,
    WonPrizeResponse,
)
from spinwheel.db.repo.spin_attempts_repo import SpinAttemptsRepo
from spinwheel.db.repo.spin_results_repo import SpinResultsRepo
from spinwheel.db.session import SessionLocal
from spinwheel.wheel.prizes import PrizeTableService

router = APIRouter(prefix="/internal/spins", tags=["internal", "spins"])


def _percentage(count: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round(count / total * 100, 2)


@router.get("/results", response_model=SpinResultListResponse)
async def list_spin_results(
    request: Request,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=200),
) -> SpinResultListResponse:
    assert_internal_access(request)

    async with SessionLocal.begin() as session:
        total = await SpinResultsRepo.count(session)
        rows = await SpinResultsRepo.list_recent_with_tokens(
            session,
            offset=(page - 1) * limit,
            limit=limit,
        )

    return SpinResultListResponse(
        results=[
            SpinResultItem(
                id=spin_result.id,
                token_code=token.code,
                token_created_by=token.created_by,
                prize=WonPrizeResponse(
                    position=spin_result.prize_position,
                    name=spin_result.prize_name,
                    color=spin_result.prize_color,
                ),
                spun_at=spin_result.created_at,
                client_info=dict(spin_result.client_info or {}),
            )
            for spin_result, token in rows
        ],
        pagination=build_pagination(page=page, limit=limit, total=total),
    )


@router.get("/stats", response_model=SpinStatsResponse)
async def get_spin_stats(
    request: Request,
    window_hours: int = Query(default=24, ge=1, le=168),
) -> SpinStatsResponse:
    assert_internal_access(request)

    now_utc = datetime.now(timezone.utc)
    async with SessionLocal.begin() as session:
        total_spins = await SpinResultsRepo.count(session)
        counts_by_position = await SpinResultsRepo.count_by_position(session)
        prizes = await PrizeTableService.list_prizes(session)
        attempts_by_result = await SpinAttemptsRepo.count_attempts_by_result(
            session,
            since_utc=now_utc - timedelta(hours=window_hours),
        )

    return SpinStatsResponse(
        generated_at=now_utc,
        total_spins=total_spins,
        prize_distribution=[
            PrizeDistributionItem(
                position=prize.position,
                prize_name=prize.name,
                count=counts_by_position.get(prize.position, 0),
                expected_probability=prize.probability,
                actual_percentage=_percentage(
                    counts_by_position.get(prize.position, 0),
                    total_spins,
                ),
            )
            for prize in prizes
        ],
        attempts_window_hours=window_hours,
        attempts_by_result=attempts_by_result,
    )
