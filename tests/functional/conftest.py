"""Database-backed fixtures.

Tests run against the application's own engine, pointed at a SQLite file by
tests/conftest.py. Tables are rebuilt for every test.
"""
from collections.abc import AsyncIterator
from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_chunk.infrastructure import db_models as _chunk_models  # noqa: F401
from src.tm_common.database import Base, async_session_factory, engine
from src.tm_matching.engine.engine import MatchingEngine
from src.tm_matching.engine.lock import LocalMatchingLock
from src.tm_order.infrastructure import db_models as _order_models  # noqa: F401
from src.tm_pool.application.service import LiquidityPool
from src.tm_pool.infrastructure import db_models as _pool_models  # noqa: F401
from src.tm_referral.infrastructure import db_models as _referral_models  # noqa: F401
from tests.functional.seed import POOL_OPENING


@event.listens_for(engine.sync_engine, "connect")
def _sqlite_connect(dbapi_conn: Any, _record: Any) -> None:
    # let SQLAlchemy own BEGIN so SAVEPOINT works; WAL keeps readers off writers
    dbapi_conn.isolation_level = None
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


@event.listens_for(engine.sync_engine, "begin")
def _sqlite_begin(conn: Any) -> None:
    conn.exec_driver_sql("BEGIN")


@pytest_asyncio.fixture
async def database() -> AsyncIterator[None]:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    async with async_session_factory() as db:
        await LiquidityPool().ensure_initialised(db, POOL_OPENING)
        await db.commit()
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db(database: None) -> AsyncIterator[AsyncSession]:
    async with async_session_factory() as session:
        yield session


@pytest.fixture
def matching_engine() -> MatchingEngine:
    return MatchingEngine(lock=LocalMatchingLock())

