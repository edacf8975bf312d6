from __future__ import annotations

import random
from collections.abc import Callable
from datetime import datetime, timezone
from uuid import uuid4

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from spinwheel.db.models.spin_results import SpinResult
from spinwheel.db.repo.spin_results_repo import SpinResultsRepo
from spinwheel.wheel.attempts import record_attempt
from spinwheel.wheel.constants import ACCEPTED_ATTEMPT_RESULT
from spinwheel.wheel.errors import TokenAlreadyUsedError, TokenConflictError, TokenExpiredError
from spinwheel.wheel.prizes import PrizeTableService, assert_prize_table_spinnable
from spinwheel.wheel.rate_limit import enforce_spin_rate_limit
from spinwheel.wheel.selection import draw_value, select_prize
from spinwheel.wheel.tokens import TokenService, is_token_expired, normalize_token_code
from spinwheel.wheel.types import ClientInfo, SpinOutcome, WonPrize

logger = structlog.get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SpinService:
    @staticmethod
    async def spin(
        session: AsyncSession,
        *,
        code: str,
        client_info: ClientInfo,
        now_utc: datetime | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> SpinOutcome:
        """Redeem a token for one weighted prize draw.

        The result row and the token's used transition are written in the
        caller's transaction. The transition is a conditional update; when a
        concurrent spin got there first the fresh result is removed again and
        ``TokenAlreadyUsedError`` (or ``TokenExpiredError``) is raised, so the
        caller must not retry. Expiry is checked again at the instant of the
        write, so a token that lapses while the request waits is not consumed.
        """
        now_utc = now_utc or clock()

        await enforce_spin_rate_limit(
            session,
            source_address=client_info.source_address,
            now_utc=now_utc,
        )
        token = await TokenService.get_redeemable(session, code=code, now_utc=now_utc)

        prizes = await PrizeTableService.list_prizes(session)
        assert_prize_table_spinnable(prizes)
        draw = draw_value(rng)
        prize = select_prize(prizes, draw)

        spin_result = SpinResult(
            id=uuid4(),
            token_id=token.id,
            prize_slot_id=prize.id,
            prize_position=prize.position,
            prize_name=prize.name,
            prize_color=prize.color,
            client_info=client_info.as_payload(),
            created_at=now_utc,
        )
        try:
            await SpinResultsRepo.create(session, spin_result=spin_result)
        except IntegrityError as exc:
            logger.warning(
                "spin_result_rejected",
                reason="duplicate_token_result",
                token_id=str(token.id),
            )
            raise TokenAlreadyUsedError from exc

        checked_at = max(now_utc, clock())
        try:
            await TokenService.mark_used(
                session,
                token_id=token.id,
                result_id=spin_result.id,
                now_utc=now_utc,
                checked_at=checked_at,
            )
        except TokenConflictError as exc:
            await session.delete(spin_result)
            await session.flush()
            expired = is_token_expired(token, now_utc=checked_at)
            logger.warning(
                "spin_result_discarded",
                token_id=str(token.id),
                result_id=str(spin_result.id),
                reason="token_expired" if expired else "token_already_used",
            )
            if expired:
                raise TokenExpiredError from exc
            raise TokenAlreadyUsedError from exc

        await record_attempt(
            session,
            source_address=client_info.source_address,
            normalized_code=normalize_token_code(code),
            result=ACCEPTED_ATTEMPT_RESULT,
            now_utc=now_utc,
            metadata={"result_id": str(spin_result.id), "prize_position": prize.position},
        )
        logger.info(
            "spin_completed",
            token_id=str(token.id),
            result_id=str(spin_result.id),
            prize_position=prize.position,
            draw=round(draw, 6),
        )
        return SpinOutcome(
            result_id=spin_result.id,
            token_id=token.id,
            prize=WonPrize(position=prize.position, name=prize.name, color=prize.color),
            spun_at=spin_result.created_at,
        )
