from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from spinwheel.api.errors import handle_storage_error
from spinwheel.api.routes.health import router as health_router
from spinwheel.api.routes.internal_prizes import router as internal_prizes_router
from spinwheel.api.routes.internal_spins import router as internal_spins_router
from spinwheel.api.routes.internal_tokens import router as internal_tokens_router
from spinwheel.api.routes.wheel_public import router as wheel_public_router
from spinwheel.core.config import get_settings
from spinwheel.core.logging import configure_logging
from spinwheel.db.session import SessionLocal, dispose_engine
from spinwheel.wheel.prizes import PrizeTableService

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if get_settings().seed_prizes_on_startup:
        async with SessionLocal.begin() as session:
            seeded = await PrizeTableService.ensure_initialized(session)
        logger.info("startup_prize_table_checked", seeded=seeded)
    yield
    await dispose_engine()


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Spin Wheel API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.add_exception_handler(SQLAlchemyError, handle_storage_error)
    app.include_router(health_router)
    app.include_router(wheel_public_router)
    app.include_router(internal_tokens_router)
    app.include_router(internal_prizes_router)
    app.include_router(internal_spins_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "spinwheel.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
