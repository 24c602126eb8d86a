"""004: create referral_bonuses table

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE referral_bonuses (
            id                  VARCHAR(26)     PRIMARY KEY,
            beneficiary_id      VARCHAR(64)     NOT NULL,
            referred_owner_id   VARCHAR(64)     NOT NULL,
            source_order_id     VARCHAR(26)     NOT NULL REFERENCES orders (id),
            amount              BIGINT          NOT NULL,
            status              VARCHAR(10)     NOT NULL DEFAULT 'PENDING',
            applied_order_id    VARCHAR(26),
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            applied_at          TIMESTAMPTZ,
            CONSTRAINT uq_bonus_source_order    UNIQUE (source_order_id),
            CONSTRAINT ck_bonus_amount_positive CHECK (amount > 0),
            CONSTRAINT ck_bonus_status          CHECK (status IN ('PENDING', 'APPLIED'))
        );
    """)
    op.execute(
        "CREATE INDEX idx_bonus_beneficiary_status ON referral_bonuses (beneficiary_id, status);"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS referral_bonuses;")
