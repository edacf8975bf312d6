from __future__ import annotations

from datetime import datetime, timedelta
from uuid import uuid4

import pytest

from spinwheel.db.models.spin_results import SpinResult
from spinwheel.db.repo.prizes_repo import PrizesRepo
from spinwheel.db.repo.tokens_repo import TokensRepo
from spinwheel.db.session import SessionLocal
from spinwheel.workers.tasks.token_maintenance import (
    run_expired_token_purge_async,
    run_spin_reconciliation_async,
)
from tests.integration.wheel_fixtures import UTC, _create_token, _seed_default_prizes


@pytest.mark.asyncio
async def test_expired_token_purge_keeps_used_and_active_tokens() -> None:
    now_utc = datetime.now(UTC)
    await _create_token(code="ACTIVECODE23", now_utc=now_utc)
    await _create_token(code="STALECODE234", now_utc=now_utc, expires_in=timedelta(hours=-1))
    await _create_token(code="STALECODE567", now_utc=now_utc, expires_in=timedelta(days=-3))
    await _create_token(
        code="USEDSTALE234",
        now_utc=now_utc,
        expires_in=timedelta(hours=-1),
        is_used=True,
    )

    result = await run_expired_token_purge_async()

    assert result == {"deleted_tokens": 2}
    async with SessionLocal.begin() as session:
        remaining = await TokensRepo.list_tokens(session, now_utc=datetime.now(UTC))
    assert sorted(token.code for token in remaining) == ["ACTIVECODE23", "USEDSTALE234"]


@pytest.mark.asyncio
async def test_spin_reconciliation_reports_clean_state() -> None:
    result = await run_spin_reconciliation_async()

    assert result == {"unconfirmed_results": 0, "used_tokens_without_result": 0}


@pytest.mark.asyncio
async def test_spin_reconciliation_detects_mismatches() -> None:
    now_utc = datetime.now(UTC)
    await _seed_default_prizes()
    await _create_token(code="USEDNORESULT", now_utc=now_utc, is_used=True)
    orphan_token_id = await _create_token(code="ORPHANCODE23", now_utc=now_utc)

    async with SessionLocal.begin() as session:
        prize = (await PrizesRepo.list_ordered(session))[0]
        session.add(
            SpinResult(
                id=uuid4(),
                token_id=orphan_token_id,
                prize_slot_id=prize.id,
                prize_position=prize.position,
                prize_name=prize.name,
                prize_color=prize.color,
                client_info={},
                created_at=now_utc,
            )
        )

    result = await run_spin_reconciliation_async()

    assert result == {"unconfirmed_results": 1, "used_tokens_without_result": 1}
