from __future__ import annotations

from fastapi import APIRouter, Request

from spinwheel.api.errors import wheel_http_error
from spinwheel.api.routes.internal_helpers import assert_internal_access
from spinwheel.api.routes.wheel_models import (
    PrizeListResponse,
    PrizeResponse,
    PrizeTableUpdateRequest,
)
from spinwheel.db.session import SessionLocal
from spinwheel.services.internal_auth import resolve_admin_identity
from spinwheel.wheel.errors import WheelError
from spinwheel.wheel.prizes import PrizeTableService
from spinwheel.wheel.types import PrizeSlotInput

router = APIRouter(prefix="/internal/prizes", tags=["internal", "prizes"])


@router.put("", response_model=PrizeListResponse)
async def replace_prize_table(
    payload: PrizeTableUpdateRequest,
    request: Request,
) -> PrizeListResponse:
    assert_internal_access(request)

    try:
        async with SessionLocal.begin() as session:
            prizes = await PrizeTableService.replace_all(
                session,
                slots=[
                    PrizeSlotInput(
                        name=slot.name,
                        probability=slot.probability,
                        color=slot.color,
                    )
                    for slot in payload.prizes
                ],
                updated_by=resolve_admin_identity(request),
            )
            response = PrizeListResponse(
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
    except WheelError as exc:
        raise wheel_http_error(exc) from exc

    return response
