"""002: create order_chunks table

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE order_chunks (
            id                VARCHAR(26)     PRIMARY KEY,
            buyer_order_id    VARCHAR(26)     NOT NULL REFERENCES orders (id),
            seller_order_id   VARCHAR(26)     NOT NULL REFERENCES orders (id),
            amount            BIGINT          NOT NULL,
            status            VARCHAR(20)     NOT NULL DEFAULT 'AWAITING_PAYMENT',
            paired_at         TIMESTAMPTZ     NOT NULL,
            paid_at           TIMESTAMPTZ,
            received_at       TIMESTAMPTZ,
            CONSTRAINT ck_chunks_amount_positive    CHECK (amount > 0),
            CONSTRAINT ck_chunks_status             CHECK (
                status IN ('AWAITING_PAYMENT', 'PAYMENT_MADE', 'RECEIVED')
            ),
            CONSTRAINT ck_chunks_distinct_orders    CHECK (buyer_order_id <> seller_order_id)
        );
    """)
    op.execute("CREATE INDEX idx_chunks_buyer ON order_chunks (buyer_order_id);")
    op.execute("CREATE INDEX idx_chunks_seller ON order_chunks (seller_order_id);")
    op.execute("CREATE INDEX idx_chunks_status_paired ON order_chunks (status, paired_at);")
    op.execute("""
        CREATE UNIQUE INDEX uq_chunks_open_pair
        ON order_chunks (buyer_order_id, seller_order_id)
        WHERE status IN ('AWAITING_PAYMENT', 'PAYMENT_MADE');
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS order_chunks CASCADE;")
