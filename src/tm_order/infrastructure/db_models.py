# src/tm_order/infrastructure/db_models.py
"""SQLAlchemy ORM model for the orders table.

Column definitions live here; the repository issues Core statements over
OrderORM.__table__. Keep in sync with alembic/versions/001_create_orders.py.
"""
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    Index,
    SmallInteger,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from src.tm_common.database import Base


class OrderORM(Base):
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING','PAIRED','ACTIVE','MATURED','CLOSED','REVOKED')",
            name="ck_orders_status",
        ),
        CheckConstraint("principal >= 0", name="ck_orders_principal"),
        CheckConstraint("remaining_to_send >= 0", name="ck_orders_remaining_to_send"),
        CheckConstraint("remaining_to_receive >= 0", name="ck_orders_remaining_to_receive"),
        Index("idx_orders_status_created", "status", "created_at", "id"),
        Index("idx_orders_owner", "owner_id"),
    )

    id: Mapped[str] = mapped_column(String(26), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING")
    sub_status: Mapped[str] = mapped_column(String(64), nullable=False, default="Pending")
    principal: Mapped[int] = mapped_column(BigInteger, nullable=False)
    expected_payout: Mapped[int] = mapped_column(BigInteger, nullable=False)
    target_payout: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    duration_days: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    profit_percent: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    remaining_to_send: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    remaining_to_receive: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    referral_bonus: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    returned_to_pool: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    maturity_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    activated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    matured_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    revoked_reason: Mapped[str | None] = mapped_column(String(200), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
