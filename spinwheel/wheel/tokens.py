from __future__ import annotations

import secrets
from collections.abc import Callable
from functools import partial
from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from spinwheel.core.config import get_settings
from spinwheel.db.models.tokens import Token
from spinwheel.db.repo.tokens_repo import TokensRepo
from spinwheel.wheel.constants import (
    TOKEN_CODE_ALPHABET,
    TOKEN_CODE_MAX_ATTEMPTS,
    TOKEN_ISSUE_MAX_QUANTITY,
    TOKEN_ISSUE_MIN_QUANTITY,
)
from spinwheel.wheel.errors import (
    TokenAlreadyUsedError,
    TokenConflictError,
    TokenExpiredError,
    TokenGenerationError,
    TokenNotFoundError,
    WheelValidationError,
)
from spinwheel.wheel.types import IssuedToken, ValidatedToken

logger = structlog.get_logger(__name__)


def normalize_token_code(raw_code: str) -> str:
    return raw_code.strip().upper()


def generate_token_code(*, length: int) -> str:
    if length <= 0:
        raise ValueError("length must be positive")
    return "".join(secrets.choice(TOKEN_CODE_ALPHABET) for _ in range(length))


def is_token_expired(token: Token, *, now_utc: datetime) -> bool:
    return token.expires_at <= now_utc


def token_status(token: Token, *, now_utc: datetime) -> str:
    if token.is_used:
        return "used"
    if is_token_expired(token, now_utc=now_utc):
        return "expired"
    return "active"


class TokenService:
    @staticmethod
    async def _mint_unique_code(
        session: AsyncSession,
        *,
        code_factory: Callable[[], str],
        minted: set[str],
    ) -> str | None:
        for _ in range(TOKEN_CODE_MAX_ATTEMPTS):
            code = normalize_token_code(code_factory())
            if code in minted:
                continue
            if await TokensRepo.code_exists(session, code):
                continue
            return code
        return None

    @staticmethod
    async def issue(
        session: AsyncSession,
        *,
        quantity: int,
        created_by: str,
        now_utc: datetime | None = None,
        code_factory: Callable[[], str] | None = None,
    ) -> list[IssuedToken]:
        if (
            isinstance(quantity, bool)
            or not isinstance(quantity, int)
            or not TOKEN_ISSUE_MIN_QUANTITY <= quantity <= TOKEN_ISSUE_MAX_QUANTITY
        ):
            raise WheelValidationError(
                f"Quantity must be between {TOKEN_ISSUE_MIN_QUANTITY} "
                f"and {TOKEN_ISSUE_MAX_QUANTITY}."
            )

        settings = get_settings()
        now_utc = now_utc or datetime.now(timezone.utc)
        expires_at = now_utc + timedelta(hours=settings.token_validity_hours)
        factory = code_factory or partial(generate_token_code, length=settings.token_code_length)

        minted: set[str] = set()
        issued: list[IssuedToken] = []
        for _ in range(quantity):
            code = await TokenService._mint_unique_code(
                session,
                code_factory=factory,
                minted=minted,
            )
            if code is None:
                logger.error(
                    "token_code_generation_failed",
                    created=len(issued),
                    requested=quantity,
                    created_by=created_by,
                )
                raise TokenGenerationError(created=len(issued), requested=quantity)

            minted.add(code)
            token = await TokensRepo.create(
                session,
                token=Token(
                    id=uuid4(),
                    code=code,
                    is_used=False,
                    used_at=None,
                    expires_at=expires_at,
                    created_by=created_by,
                    result_id=None,
                    created_at=now_utc,
                    updated_at=now_utc,
                ),
            )
            issued.append(
                IssuedToken(
                    id=token.id,
                    code=token.code,
                    expires_at=token.expires_at,
                    created_at=token.created_at,
                )
            )

        logger.info(
            "tokens_issued",
            quantity=quantity,
            created_by=created_by,
            expires_at=expires_at.isoformat(),
        )
        return issued

    @staticmethod
    async def get_redeemable(
        session: AsyncSession,
        *,
        code: str,
        now_utc: datetime,
    ) -> Token:
        normalized_code = normalize_token_code(code)
        if not normalized_code:
            raise TokenNotFoundError

        token = await TokensRepo.get_by_code(session, normalized_code)
        if token is None:
            raise TokenNotFoundError
        if token.is_used:
            raise TokenAlreadyUsedError
        if is_token_expired(token, now_utc=now_utc):
            raise TokenExpiredError
        return token

    @staticmethod
    async def validate(
        session: AsyncSession,
        *,
        code: str,
        now_utc: datetime | None = None,
    ) -> ValidatedToken:
        now_utc = now_utc or datetime.now(timezone.utc)
        token = await TokenService.get_redeemable(session, code=code, now_utc=now_utc)
        return ValidatedToken(id=token.id, code=token.code, expires_at=token.expires_at)

    @staticmethod
    async def mark_used(
        session: AsyncSession,
        *,
        token_id: UUID,
        result_id: UUID,
        now_utc: datetime,
        checked_at: datetime | None = None,
    ) -> None:
        """Consume the token unless it is already used or expired at ``checked_at``.

        ``now_utc`` is stamped as ``used_at``; expiry is compared against
        ``checked_at`` when given, which should be the instant of the write.
        """
        applied = await TokensRepo.mark_used(
            session,
            token_id=token_id,
            result_id=result_id,
            now_utc=now_utc,
            checked_at=checked_at,
        )
        if not applied:
            raise TokenConflictError
