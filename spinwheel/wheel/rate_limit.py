from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from spinwheel.core.config import get_settings
from spinwheel.db.repo.spin_attempts_repo import SpinAttemptsRepo
from spinwheel.wheel.errors import SpinRateLimitedError


async def enforce_spin_rate_limit(
    session: AsyncSession,
    *,
    source_address: str | None,
    now_utc: datetime,
) -> None:
    if not source_address:
        return

    settings = get_settings()
    window_start = now_utc - timedelta(seconds=settings.spin_rate_limit_window_seconds)
    recent_attempts = await SpinAttemptsRepo.count_source_attempts(
        session,
        source_address=source_address,
        since_utc=window_start,
    )
    if recent_attempts >= settings.spin_rate_limit_max_attempts:
        raise SpinRateLimitedError
