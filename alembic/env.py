"""Alembic environment.

Migrations are hand-written SQL (op.execute). target_metadata is still the
ORM metadata so `alembic check` reports drift between db_models and the
migrated schema.
"""
import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from config.settings import settings
from src.tm_chunk.infrastructure import db_models as _chunk_models  # noqa: F401
from src.tm_common.database import Base
from src.tm_order.infrastructure import db_models as _order_models  # noqa: F401
from src.tm_pool.infrastructure import db_models as _pool_models  # noqa: F401
from src.tm_referral.infrastructure import db_models as _referral_models  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# `alembic -x db_url=...` targets another database without editing .env
_DB_URL = context.get_x_argument(as_dictionary=True).get("db_url", settings.DATABASE_URL)


def run_migrations_offline() -> None:
    """Emit the migration SQL without connecting."""
    context.configure(
        url=_DB_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def _migrate(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_server_default=False,
    )
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    connectable = create_async_engine(_DB_URL)
    try:
        async with connectable.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
