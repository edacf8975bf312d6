from __future__ import annotations

from collections.abc import AsyncIterator

import pytest

import spinwheel.db.models  # noqa: F401
from spinwheel.db.models.base import Base
from spinwheel.db.session import engine


@pytest.fixture(autouse=True)
async def reset_database() -> AsyncIterator[None]:
    # Dispose pooled connections between tests to avoid cross-event-loop reuse.
    await engine.dispose()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield

    await engine.dispose()
