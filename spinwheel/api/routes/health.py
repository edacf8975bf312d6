from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import Any

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sqlalchemy import text

from spinwheel.core.config import get_settings
from spinwheel.db.session import SessionLocal
from spinwheel.wheel.errors import PrizeTableConfigurationError
from spinwheel.wheel.prizes import PrizeTableService, assert_prize_table_spinnable
from spinwheel.workers.celery_app import celery_app

router = APIRouter(tags=["health"])
logger = structlog.get_logger(__name__)


def _ok_check(extra: dict[str, Any] | None = None) -> dict[str, Any]:
    return {"status": "ok", **(extra or {})}


def _failed_check(check: str, error: str, exc: Exception | None = None) -> dict[str, str]:
    if exc is not None:
        logger.warning("health_check_failed", check=check, error_type=type(exc).__name__)
    return {"status": "failed", "error": error}


async def _check_database() -> dict[str, Any]:
    try:
        async with SessionLocal() as session:
            await session.execute(text("SELECT 1"))
    except Exception as exc:
        return _failed_check("database", "database_unavailable", exc)
    return _ok_check()


async def _check_prize_table() -> dict[str, Any]:
    try:
        async with SessionLocal() as session:
            prizes = await PrizeTableService.list_prizes(session)
        assert_prize_table_spinnable(prizes)
    except PrizeTableConfigurationError:
        return _failed_check("prize_table", "prize_table_misconfigured")
    except Exception as exc:
        return _failed_check("prize_table", "prize_table_unavailable", exc)
    return _ok_check({"slots": len(prizes)})


async def _check_redis() -> dict[str, Any]:
    redis_client: Redis | None = None
    try:
        redis_client = Redis.from_url(get_settings().redis_url)
        if await redis_client.ping() is not True:
            return _failed_check("redis", "redis_unexpected_response")
    except Exception as exc:
        return _failed_check("redis", "redis_unavailable", exc)
    finally:
        if redis_client is not None:
            await redis_client.aclose()
    return _ok_check()


def _check_celery_worker_sync() -> dict[str, Any]:
    try:
        inspector = celery_app.control.inspect(timeout=1.0)
        replies = (inspector.ping() if inspector is not None else None) or {}
    except Exception as exc:
        return _failed_check("celery", "celery_unavailable", exc)
    if not replies:
        return _failed_check("celery", "celery_no_workers")
    return _ok_check({"workers": len(replies)})


async def _check_celery_worker() -> dict[str, Any]:
    return await asyncio.to_thread(_check_celery_worker_sync)


async def _run_checks(checks: dict[str, Awaitable[dict[str, Any]]]) -> dict[str, dict[str, Any]]:
    results = await asyncio.gather(*checks.values())
    return dict(zip(checks.keys(), results))


def _checks_response(
    checks: dict[str, dict[str, Any]],
    *,
    ok_status: str,
    failed_status: str,
) -> JSONResponse:
    passed = all(check.get("status") == "ok" for check in checks.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if passed else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": ok_status if passed else failed_status, "checks": checks},
    )


@router.get("/health")
async def health() -> JSONResponse:
    checks = await _run_checks(
        {
            "database": _check_database(),
            "prize_table": _check_prize_table(),
            "redis": _check_redis(),
            "celery": _check_celery_worker(),
        }
    )
    return _checks_response(checks, ok_status="ok", failed_status="degraded")


@router.get("/ready")
async def ready() -> JSONResponse:
    # Spins need the database and a spinnable prize table; workers are optional.
    checks = await _run_checks(
        {
            "database": _check_database(),
            "prize_table": _check_prize_table(),
            "redis": _check_redis(),
        }
    )
    return _checks_response(checks, ok_status="ready", failed_status="not_ready")


@router.get("/live")
async def live() -> dict[str, str]:
    return {"status": "live"}
