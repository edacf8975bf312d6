from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from spinwheel.db.models.spin_attempts import SpinAttempt


class SpinAttemptsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, attempt: SpinAttempt) -> SpinAttempt:
        session.add(attempt)
        await session.flush()
        return attempt

    @staticmethod
    async def count_source_attempts(
        session: AsyncSession,
        *,
        source_address: str,
        since_utc: datetime,
    ) -> int:
        stmt = select(func.count(SpinAttempt.id)).where(
            SpinAttempt.source_address == source_address,
            SpinAttempt.attempted_at > since_utc,
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def count_attempts_by_result(
        session: AsyncSession,
        *,
        since_utc: datetime,
    ) -> dict[str, int]:
        stmt = (
            select(SpinAttempt.result, func.count(SpinAttempt.id))
            .where(SpinAttempt.attempted_at >= since_utc)
            .group_by(SpinAttempt.result)
        )
        result = await session.execute(stmt)
        return {str(status): int(count) for status, count in result.all()}
