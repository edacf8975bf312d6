from __future__ import annotations

from datetime import datetime, timezone

import structlog

from spinwheel.db.repo.spin_results_repo import SpinResultsRepo
from spinwheel.db.repo.tokens_repo import TokensRepo
from spinwheel.db.session import SessionLocal
from spinwheel.workers.asyncio_runner import run_async_job
from spinwheel.workers.celery_app import celery_app

logger = structlog.get_logger(__name__)


async def run_expired_token_purge_async() -> dict[str, int]:
    now_utc = datetime.now(timezone.utc)
    async with SessionLocal.begin() as session:
        deleted = await TokensRepo.delete_expired_unused(session, now_utc=now_utc)

    result = {"deleted_tokens": deleted}
    logger.info("expired_token_purge_finished", **result)
    return result


async def run_spin_reconciliation_async() -> dict[str, int]:
    async with SessionLocal.begin() as session:
        unconfirmed_results = await SpinResultsRepo.count_unconfirmed(session)
        used_without_result = await TokensRepo.count_used_without_result(session)

    result = {
        "unconfirmed_results": unconfirmed_results,
        "used_tokens_without_result": used_without_result,
    }
    if unconfirmed_results > 0 or used_without_result > 0:
        logger.warning("spin_reconciliation_mismatch", **result)
    else:
        logger.info("spin_reconciliation_finished", **result)
    return result


@celery_app.task(name="spinwheel.workers.tasks.token_maintenance.run_expired_token_purge")
def run_expired_token_purge() -> dict[str, int]:
    return run_async_job(run_expired_token_purge_async(), job_name="expired_token_purge")


@celery_app.task(name="spinwheel.workers.tasks.token_maintenance.run_spin_reconciliation")
def run_spin_reconciliation() -> dict[str, int]:
    return run_async_job(run_spin_reconciliation_async(), job_name="spin_reconciliation")


celery_app.conf.beat_schedule = celery_app.conf.beat_schedule or {}
celery_app.conf.beat_schedule.update(
    {
        "expired-token-purge-every-hour": {
            "task": "spinwheel.workers.tasks.token_maintenance.run_expired_token_purge",
            "schedule": 3600.0,
            "options": {"queue": "q_normal"},
        },
        "spin-reconciliation-every-10-minutes": {
            "task": "spinwheel.workers.tasks.token_maintenance.run_spin_reconciliation",
            "schedule": 600.0,
            "options": {"queue": "q_normal"},
        },
    }
)
