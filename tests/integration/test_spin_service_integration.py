from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from sqlalchemy import select, update

from spinwheel.db.models.prize_slots import PrizeSlot
from spinwheel.db.models.spin_results import SpinResult
from spinwheel.db.models.tokens import Token
from spinwheel.db.repo.spin_attempts_repo import SpinAttemptsRepo
from spinwheel.db.repo.spin_results_repo import SpinResultsRepo
from spinwheel.db.repo.tokens_repo import TokensRepo
from spinwheel.db.session import SessionLocal
from spinwheel.wheel.attempts import record_attempt
from spinwheel.wheel.errors import (
    PrizeTableConfigurationError,
    SpinRateLimitedError,
    TokenAlreadyUsedError,
    TokenExpiredError,
    TokenNotFoundError,
)
from spinwheel.wheel.prizes import PrizeTableService
from spinwheel.wheel.service import SpinService
from spinwheel.wheel.tokens import TokenService
from spinwheel.wheel.types import ClientInfo
from tests.integration.wheel_fixtures import UTC, _create_token, _fixed_draw, _seed_default_prizes


@pytest.mark.asyncio
async def test_spin_records_result_and_consumes_token() -> None:
    now_utc = datetime.now(UTC)
    await _seed_default_prizes()
    token_id = await _create_token(code="SPINCODE2345", now_utc=now_utc)

    async with SessionLocal.begin() as session:
        outcome = await SpinService.spin(
            session,
            code="spincode2345",
            client_info=ClientInfo(user_agent="pytest-agent", source_address="203.0.113.7"),
            now_utc=now_utc,
            rng=_fixed_draw(0.125),
        )

    assert outcome.token_id == token_id
    assert outcome.prize.position == 2
    assert outcome.prize.name == "Prize 2"
    assert outcome.spun_at == now_utc

    async with SessionLocal.begin() as session:
        token = await TokensRepo.get_by_id(session, token_id)
        spin_result = await session.get(SpinResult, outcome.result_id)
        attempts = await SpinAttemptsRepo.count_attempts_by_result(
            session,
            since_utc=now_utc - timedelta(minutes=1),
        )

    assert token is not None
    assert token.is_used is True
    assert token.used_at == now_utc
    assert token.result_id == outcome.result_id
    assert spin_result is not None
    assert spin_result.token_id == token_id
    assert spin_result.prize_position == 2
    assert spin_result.client_info == {
        "user_agent": "pytest-agent",
        "source_address": "203.0.113.7",
    }
    assert attempts == {"ACCEPTED": 1}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("draw", "expected_position"),
    [(0.0, 1), (0.125, 2), (0.99999, 8)],
)
async def test_spin_maps_draw_onto_prize_partition(draw: float, expected_position: int) -> None:
    now_utc = datetime.now(UTC)
    await _seed_default_prizes()
    await _create_token(code="DRAWCODE2345", now_utc=now_utc)

    async with SessionLocal.begin() as session:
        outcome = await SpinService.spin(
            session,
            code="DRAWCODE2345",
            client_info=ClientInfo(),
            now_utc=now_utc,
            rng=_fixed_draw(draw),
        )

    assert outcome.prize.position == expected_position


@pytest.mark.asyncio
async def test_three_tokens_each_spin_exactly_once() -> None:
    now_utc = datetime.now(UTC)
    await _seed_default_prizes()

    async with SessionLocal.begin() as session:
        issued = await TokenService.issue(session, quantity=3, created_by="ops", now_utc=now_utc)

    outcomes = []
    for token in issued:
        async with SessionLocal.begin() as session:
            validated = await TokenService.validate(session, code=token.code, now_utc=now_utc)
            assert validated.id == token.id
            outcomes.append(
                await SpinService.spin(
                    session,
                    code=token.code,
                    client_info=ClientInfo(),
                    now_utc=now_utc,
                )
            )

    assert len({outcome.result_id for outcome in outcomes}) == 3
    assert all(1 <= outcome.prize.position <= 8 for outcome in outcomes)

    for token in issued:
        async with SessionLocal.begin() as session:
            with pytest.raises(TokenAlreadyUsedError):
                await SpinService.spin(
                    session,
                    code=token.code,
                    client_info=ClientInfo(),
                    now_utc=now_utc,
                )

    async with SessionLocal.begin() as session:
        assert await SpinResultsRepo.count(session) == 3
        counts = await TokensRepo.count_by_status(session, now_utc=now_utc)
    assert counts == {"total": 3, "used": 3, "unused": 0, "expired": 0}


@pytest.mark.asyncio
async def test_spin_rejects_unknown_and_expired_tokens() -> None:
    now_utc = datetime.now(UTC)
    await _seed_default_prizes()
    await _create_token(code="STALECODE234", now_utc=now_utc, expires_in=timedelta(seconds=-1))

    async with SessionLocal.begin() as session:
        with pytest.raises(TokenNotFoundError):
            await SpinService.spin(
                session,
                code="NOSUCHCODE23",
                client_info=ClientInfo(),
                now_utc=now_utc,
            )
        with pytest.raises(TokenExpiredError):
            await SpinService.spin(
                session,
                code="STALECODE234",
                client_info=ClientInfo(),
                now_utc=now_utc,
            )
        assert await SpinResultsRepo.count(session) == 0


@pytest.mark.asyncio
async def test_spin_discards_result_when_token_was_consumed_concurrently(monkeypatch) -> None:
    now_utc = datetime.now(UTC)
    await _seed_default_prizes()
    token_id = await _create_token(code="RACECODE2345", now_utc=now_utc)
    list_prizes = PrizeTableService.list_prizes

    async def _list_prizes_after_foreign_redeem(session):
        # Another request consumes the token between the read and the update.
        await session.execute(
            update(Token)
            .where(Token.id == token_id)
            .values(is_used=True, used_at=now_utc)
            .execution_options(synchronize_session=False)
        )
        return await list_prizes(session)

    monkeypatch.setattr(PrizeTableService, "list_prizes", _list_prizes_after_foreign_redeem)

    async with SessionLocal.begin() as session:
        with pytest.raises(TokenAlreadyUsedError):
            await SpinService.spin(
                session,
                code="RACECODE2345",
                client_info=ClientInfo(),
                now_utc=now_utc,
            )
        assert await SpinResultsRepo.count(session) == 0
        token = (await session.execute(select(Token).where(Token.id == token_id))).scalar_one()
        assert token.result_id is None


@pytest.mark.asyncio
async def test_spin_fails_when_token_expires_before_write() -> None:
    started_at = datetime.now(UTC)
    await _seed_default_prizes()
    token_id = await _create_token(
        code="LAPSECODE234",
        now_utc=started_at,
        expires_in=timedelta(minutes=1),
    )
    # Validation sees the first instant, the conditional update the second.
    instants = iter([started_at, started_at + timedelta(minutes=2)])

    async with SessionLocal.begin() as session:
        with pytest.raises(TokenExpiredError):
            await SpinService.spin(
                session,
                code="LAPSECODE234",
                client_info=ClientInfo(),
                clock=lambda: next(instants),
            )
        assert await SpinResultsRepo.count(session) == 0

    async with SessionLocal.begin() as session:
        token = await TokensRepo.get_by_id(session, token_id)
    assert token is not None
    assert token.is_used is False
    assert token.used_at is None
    assert token.result_id is None


@pytest.mark.asyncio
async def test_spin_checks_expiry_no_earlier_than_request_instant() -> None:
    now_utc = datetime.now(UTC)
    await _seed_default_prizes()
    await _create_token(code="EARLYCODE234", now_utc=now_utc, expires_in=timedelta(minutes=1))

    async with SessionLocal.begin() as session:
        outcome = await SpinService.spin(
            session,
            code="EARLYCODE234",
            client_info=ClientInfo(),
            now_utc=now_utc,
            clock=lambda: now_utc - timedelta(minutes=5),
        )
    assert outcome.spun_at == now_utc


@pytest.mark.asyncio
async def test_spin_rejects_misconfigured_prize_table() -> None:
    now_utc = datetime.now(UTC)
    await _seed_default_prizes()
    token_id = await _create_token(code="MISCODE23456", now_utc=now_utc)

    async with SessionLocal.begin() as session:
        await session.execute(
            update(PrizeSlot).where(PrizeSlot.position == 8).values(probability=0.0)
        )

    with pytest.raises(PrizeTableConfigurationError):
        async with SessionLocal.begin() as session:
            await SpinService.spin(
                session,
                code="MISCODE23456",
                client_info=ClientInfo(),
                now_utc=now_utc,
            )

    async with SessionLocal.begin() as session:
        token = await TokensRepo.get_by_id(session, token_id)
    assert token is not None
    assert token.is_used is False


@pytest.mark.asyncio
async def test_spin_rejects_empty_prize_table() -> None:
    now_utc = datetime.now(UTC)
    await _create_token(code="EMPTYCODE234", now_utc=now_utc)

    async with SessionLocal.begin() as session:
        with pytest.raises(PrizeTableConfigurationError):
            await SpinService.spin(
                session,
                code="EMPTYCODE234",
                client_info=ClientInfo(),
                now_utc=now_utc,
            )


@pytest.mark.asyncio
async def test_spin_is_rate_limited_per_source_address() -> None:
    now_utc = datetime.now(UTC)
    await _seed_default_prizes()
    await _create_token(code="LIMITCODE234", now_utc=now_utc)

    async with SessionLocal.begin() as session:
        for offset in range(5):
            await record_attempt(
                session,
                source_address="198.51.100.4",
                normalized_code=f"GUESS{offset}",
                result="INVALID",
                now_utc=now_utc - timedelta(seconds=10 + offset),
            )
        await record_attempt(
            session,
            source_address="198.51.100.5",
            normalized_code="OTHER",
            result="INVALID",
            now_utc=now_utc,
        )

    async with SessionLocal.begin() as session:
        with pytest.raises(SpinRateLimitedError):
            await SpinService.spin(
                session,
                code="LIMITCODE234",
                client_info=ClientInfo(source_address="198.51.100.4"),
                now_utc=now_utc,
            )

    async with SessionLocal.begin() as session:
        outcome = await SpinService.spin(
            session,
            code="LIMITCODE234",
            client_info=ClientInfo(source_address="198.51.100.5"),
            now_utc=now_utc,
        )
    assert 1 <= outcome.prize.position <= 8


@pytest.mark.asyncio
async def test_spin_rate_limit_ignores_attempts_outside_window() -> None:
    now_utc = datetime.now(UTC)
    await _seed_default_prizes()
    await _create_token(code="WINDOWCODE23", now_utc=now_utc)

    async with SessionLocal.begin() as session:
        for offset in range(5):
            await record_attempt(
                session,
                source_address="198.51.100.4",
                normalized_code=f"GUESS{offset}",
                result="INVALID",
                now_utc=now_utc - timedelta(minutes=2 + offset),
            )

    async with SessionLocal.begin() as session:
        outcome = await SpinService.spin(
            session,
            code="WINDOWCODE23",
            client_info=ClientInfo(source_address="198.51.100.4"),
            now_utc=now_utc,
        )
    assert outcome.token_id is not None
