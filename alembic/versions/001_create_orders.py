"""001: create orders table

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_update_timestamp()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TABLE orders (
            id                    VARCHAR(26)     PRIMARY KEY,
            owner_id              VARCHAR(64)     NOT NULL,
            status                VARCHAR(20)     NOT NULL DEFAULT 'PENDING',
            sub_status            VARCHAR(64)     NOT NULL DEFAULT 'Pending',
            principal             BIGINT          NOT NULL,
            expected_payout       BIGINT          NOT NULL,
            target_payout         BIGINT,
            duration_days         SMALLINT        NOT NULL,
            profit_percent        SMALLINT        NOT NULL,
            remaining_to_send     BIGINT          NOT NULL DEFAULT 0,
            remaining_to_receive  BIGINT          NOT NULL DEFAULT 0,
            referral_bonus        BIGINT          NOT NULL DEFAULT 0,
            returned_to_pool      BOOLEAN         NOT NULL DEFAULT FALSE,
            maturity_at           TIMESTAMPTZ,
            activated_at          TIMESTAMPTZ,
            matured_at            TIMESTAMPTZ,
            closed_at             TIMESTAMPTZ,
            revoked_at            TIMESTAMPTZ,
            revoked_reason        VARCHAR(200),
            created_at            TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at            TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_orders_status CHECK (
                status IN ('PENDING', 'PAIRED', 'ACTIVE', 'MATURED', 'CLOSED', 'REVOKED')
            ),
            CONSTRAINT ck_orders_principal              CHECK (principal >= 0),
            CONSTRAINT ck_orders_remaining_to_send      CHECK (remaining_to_send >= 0),
            CONSTRAINT ck_orders_remaining_to_receive   CHECK (remaining_to_receive >= 0)
        );
    """)
    op.execute(
        "CREATE INDEX idx_orders_status_created ON orders (status, created_at, id);"
    )
    op.execute("CREATE INDEX idx_orders_owner ON orders (owner_id);")
    op.execute("""
        CREATE INDEX idx_orders_maturity_due
        ON orders (maturity_at)
        WHERE status = 'ACTIVE';
    """)
    op.execute("""
        CREATE TRIGGER trg_orders_updated_at
            BEFORE UPDATE ON orders
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS orders CASCADE;")
    op.execute("DROP FUNCTION IF EXISTS fn_update_timestamp();")
