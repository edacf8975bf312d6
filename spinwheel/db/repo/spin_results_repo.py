from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from spinwheel.db.models.spin_results import SpinResult
from spinwheel.db.models.tokens import Token


class SpinResultsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, spin_result: SpinResult) -> SpinResult:
        session.add(spin_result)
        await session.flush()
        return spin_result

    @staticmethod
    async def count(session: AsyncSession) -> int:
        result = await session.execute(select(func.count(SpinResult.id)))
        return int(result.scalar_one() or 0)

    @staticmethod
    async def count_for_token(session: AsyncSession, *, token_id: UUID) -> int:
        stmt = select(func.count(SpinResult.id)).where(SpinResult.token_id == token_id)
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def list_recent_with_tokens(
        session: AsyncSession,
        *,
        offset: int = 0,
        limit: int = 50,
    ) -> list[tuple[SpinResult, Token]]:
        stmt = (
            select(SpinResult, Token)
            .join(Token, Token.id == SpinResult.token_id)
            .order_by(SpinResult.created_at.desc(), SpinResult.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await session.execute(stmt)
        return [(spin_result, token) for spin_result, token in result.all()]

    @staticmethod
    async def count_by_position(session: AsyncSession) -> dict[int, int]:
        stmt = (
            select(SpinResult.prize_position, func.count(SpinResult.id))
            .group_by(SpinResult.prize_position)
            .order_by(SpinResult.prize_position.asc())
        )
        result = await session.execute(stmt)
        return {int(position): int(count) for position, count in result.all()}

    @staticmethod
    async def count_unconfirmed(session: AsyncSession) -> int:
        stmt = (
            select(func.count(SpinResult.id))
            .join(Token, Token.id == SpinResult.token_id)
            .where(
                or_(
                    Token.is_used.is_(False),
                    Token.result_id.is_(None),
                    Token.result_id != SpinResult.id,
                )
            )
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)
