# src/tm_chunk/infrastructure/db_models.py
"""SQLAlchemy ORM model for the order_chunks table.

Keep in sync with alembic/versions/002_create_order_chunks.py.
"""
from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from src.tm_common.database import Base

_OPEN_STATUS_PREDICATE = "status IN ('AWAITING_PAYMENT', 'PAYMENT_MADE')"


class ChunkORM(Base):
    __tablename__ = "order_chunks"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_chunks_amount_positive"),
        CheckConstraint(
            "status IN ('AWAITING_PAYMENT','PAYMENT_MADE','RECEIVED')",
            name="ck_chunks_status",
        ),
        CheckConstraint("buyer_order_id <> seller_order_id", name="ck_chunks_distinct_orders"),
        Index("idx_chunks_buyer", "buyer_order_id"),
        Index("idx_chunks_seller", "seller_order_id"),
        Index("idx_chunks_status_paired", "status", "paired_at"),
        # at most one outstanding chunk per (buyer, seller)
        Index(
            "uq_chunks_open_pair",
            "buyer_order_id",
            "seller_order_id",
            unique=True,
            postgresql_where=text(_OPEN_STATUS_PREDICATE),
            sqlite_where=text(_OPEN_STATUS_PREDICATE),
        ),
    )

    id: Mapped[str] = mapped_column(String(26), primary_key=True)
    buyer_order_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("orders.id"), nullable=False
    )
    seller_order_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("orders.id"), nullable=False
    )
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="AWAITING_PAYMENT")
    paired_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    received_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
