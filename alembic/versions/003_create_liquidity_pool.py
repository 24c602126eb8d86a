"""003: create liquidity_pool table and seed the token pool

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE liquidity_pool (
            name          VARCHAR(32)     PRIMARY KEY,
            balance       BIGINT          NOT NULL DEFAULT 0,
            updated_at    TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_pool_balance_non_negative CHECK (balance >= 0)
        );
    """)
    # 200,000 tokens in cents; INITIAL_POOL_BALANCE covers fresh non-migrated setups
    op.execute("""
        INSERT INTO liquidity_pool (name, balance)
        VALUES ('tokens', 20000000)
        ON CONFLICT (name) DO NOTHING;
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS liquidity_pool;")
