from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from spinwheel.db.models.prize_slots import PrizeSlot


class PrizesRepo:
    @staticmethod
    async def list_ordered(session: AsyncSession) -> list[PrizeSlot]:
        stmt = select(PrizeSlot).order_by(PrizeSlot.position.asc())
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_ordered_for_update(session: AsyncSession) -> list[PrizeSlot]:
        stmt = select(PrizeSlot).order_by(PrizeSlot.position.asc()).with_for_update()
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def count(session: AsyncSession) -> int:
        result = await session.execute(select(func.count(PrizeSlot.id)))
        return int(result.scalar_one() or 0)

    @staticmethod
    async def create_many(session: AsyncSession, *, slots: list[PrizeSlot]) -> list[PrizeSlot]:
        session.add_all(slots)
        await session.flush()
        return slots
