from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from spinwheel.db.models.spin_attempts import SpinAttempt
from spinwheel.db.repo.spin_attempts_repo import SpinAttemptsRepo
from spinwheel.db.session import SessionLocal
from spinwheel.wheel.errors import (
    PrizeTableConfigurationError,
    SpinRateLimitedError,
    TokenAlreadyUsedError,
    TokenExpiredError,
    WheelError,
)

ATTEMPT_RESULT_BY_ERROR: tuple[tuple[type[WheelError], str], ...] = (
    (TokenAlreadyUsedError, "ALREADY_USED"),
    (TokenExpiredError, "EXPIRED"),
    (SpinRateLimitedError, "RATE_LIMITED"),
    (PrizeTableConfigurationError, "MISCONFIGURED"),
)


def attempt_result_for_error(exc: WheelError) -> str:
    for error_type, result in ATTEMPT_RESULT_BY_ERROR:
        if isinstance(exc, error_type):
            return result
    return "INVALID"


async def record_attempt(
    session: AsyncSession,
    *,
    source_address: str | None,
    normalized_code: str,
    result: str,
    now_utc: datetime,
    metadata: dict[str, object] | None = None,
) -> None:
    await SpinAttemptsRepo.create(
        session,
        attempt=SpinAttempt(
            source_address=source_address,
            normalized_code=normalized_code[:64],
            result=result,
            attempted_at=now_utc,
            metadata_=metadata or {},
        ),
    )


async def record_failed_attempt(
    *,
    source_address: str | None,
    normalized_code: str,
    result: str,
    now_utc: datetime,
    metadata: dict[str, object] | None = None,
) -> None:
    async with SessionLocal.begin() as attempt_session:
        await record_attempt(
            attempt_session,
            source_address=source_address,
            normalized_code=normalized_code,
            result=result,
            now_utc=now_utc,
            metadata=metadata,
        )
