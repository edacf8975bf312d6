from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable
from typing import TypeVar

import structlog

from spinwheel.db.session import dispose_engine

T = TypeVar("T")
logger = structlog.get_logger(__name__)


async def _run_job(awaitable: Awaitable[T], *, job_name: str) -> T:
    # Pooled connections are bound to the loop that opened them.
    await dispose_engine()
    started_at = time.monotonic()
    with structlog.contextvars.bound_contextvars(job=job_name):
        try:
            return await awaitable
        except Exception:
            logger.exception(
                "worker_job_failed",
                duration_ms=int((time.monotonic() - started_at) * 1000),
            )
            raise
        finally:
            await dispose_engine()


def run_async_job(awaitable: Awaitable[T], *, job_name: str) -> T:
    return asyncio.run(_run_job(awaitable, job_name=job_name))
