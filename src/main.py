"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.tm_admin.api.router import router as admin_router
from src.tm_common.database import async_session_factory, engine
from src.tm_common.errors import AppError
from src.tm_common.redis_client import check_redis, close_redis
from src.tm_common.response import error_response
from src.tm_gateway.middleware.request_log import RequestLogMiddleware
from src.tm_lifecycle.application.runner import SweepRunner
from src.tm_order.api.router import router as order_router
from src.tm_pool.api.router import router as pool_router
from src.tm_pool.application.service import LiquidityPool
from src.tm_settlement.api.router import router as settlement_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB (+ Redis), seed the pool, start sweeps. Shutdown: dispose."""
    # Startup
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    if settings.MATCHING_LOCK_BACKEND == "redis":
        await check_redis()
    async with async_session_factory() as db:
        await LiquidityPool().ensure_initialised(db)
        await db.commit()

    runner: SweepRunner | None = None
    if settings.SCHEDULER_ENABLED:
        runner = SweepRunner()
        runner.start()
    yield
    # Shutdown
    if runner is not None:
        await runner.stop()
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.http_status >= 500:
        logger.error("request failed: [%d] %s", exc.code, exc.message)
    resp = error_response(exc.code, exc.message)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(order_router, prefix="/api/v1")
app.include_router(settlement_router, prefix="/api/v1")
app.include_router(pool_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
