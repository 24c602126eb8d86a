# src/tm_referral/infrastructure/db_models.py
"""SQLAlchemy ORM model for the referral_bonuses table."""
from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from src.tm_common.database import Base


class ReferralBonusORM(Base):
    __tablename__ = "referral_bonuses"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_bonus_amount_positive"),
        CheckConstraint("status IN ('PENDING','APPLIED')", name="ck_bonus_status"),
        Index("idx_bonus_beneficiary_status", "beneficiary_id", "status"),
    )

    id: Mapped[str] = mapped_column(String(26), primary_key=True)
    beneficiary_id: Mapped[str] = mapped_column(String(64), nullable=False)
    referred_owner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    source_order_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("orders.id"), nullable=False, unique=True
    )
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[str] = mapped_column(String(10), nullable=False, default="PENDING")
    applied_order_id: Mapped[str | None] = mapped_column(String(26), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    applied_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
