from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import ColumnElement, and_, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from spinwheel.db.models.tokens import Token

TOKEN_STATUSES = ("used", "unused", "expired")


def _status_clause(status: str, *, now_utc: datetime) -> ColumnElement[bool]:
    if status == "used":
        return Token.is_used.is_(True)
    if status == "unused":
        return and_(Token.is_used.is_(False), Token.expires_at > now_utc)
    if status == "expired":
        return and_(Token.is_used.is_(False), Token.expires_at <= now_utc)
    raise ValueError(f"unknown token status: {status}")


class TokensRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, token_id: UUID) -> Token | None:
        return await session.get(Token, token_id)

    @staticmethod
    async def get_by_code(session: AsyncSession, code: str) -> Token | None:
        stmt = select(Token).where(Token.code == code)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def code_exists(session: AsyncSession, code: str) -> bool:
        stmt = select(Token.id).where(Token.code == code).limit(1)
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def create(session: AsyncSession, *, token: Token) -> Token:
        session.add(token)
        await session.flush()
        return token

    @staticmethod
    async def mark_used(
        session: AsyncSession,
        *,
        token_id: UUID,
        result_id: UUID,
        now_utc: datetime,
        checked_at: datetime | None = None,
    ) -> bool:
        stmt = (
            update(Token)
            .where(
                Token.id == token_id,
                Token.is_used.is_(False),
                Token.expires_at > (checked_at or now_utc),
            )
            .values(is_used=True, used_at=now_utc, result_id=result_id, updated_at=now_utc)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return int(getattr(result, "rowcount", 0) or 0) == 1

    @staticmethod
    async def list_tokens(
        session: AsyncSession,
        *,
        now_utc: datetime,
        status: str | None = None,
        offset: int = 0,
        limit: int = 50,
    ) -> list[Token]:
        stmt = (
            select(Token)
            .order_by(Token.created_at.desc(), Token.id.desc())
            .offset(offset)
            .limit(limit)
        )
        if status is not None:
            stmt = stmt.where(_status_clause(status, now_utc=now_utc))
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def count_tokens(
        session: AsyncSession,
        *,
        now_utc: datetime,
        status: str | None = None,
    ) -> int:
        stmt = select(func.count(Token.id))
        if status is not None:
            stmt = stmt.where(_status_clause(status, now_utc=now_utc))
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def count_by_status(session: AsyncSession, *, now_utc: datetime) -> dict[str, int]:
        counts = {"total": await TokensRepo.count_tokens(session, now_utc=now_utc)}
        for status in TOKEN_STATUSES:
            counts[status] = await TokensRepo.count_tokens(session, now_utc=now_utc, status=status)
        return counts

    @staticmethod
    async def delete_expired_unused(session: AsyncSession, *, now_utc: datetime) -> int:
        stmt = (
            delete(Token)
            .where(_status_clause("expired", now_utc=now_utc))
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return int(getattr(result, "rowcount", 0) or 0)

    @staticmethod
    async def count_used_without_result(session: AsyncSession) -> int:
        stmt = select(func.count(Token.id)).where(
            Token.is_used.is_(True),
            Token.result_id.is_(None),
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)
