# src/tm_pool/infrastructure/db_models.py
"""SQLAlchemy ORM model for the liquidity_pool table."""
from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from src.tm_common.database import Base


class LiquidityPoolORM(Base):
    __tablename__ = "liquidity_pool"
    __table_args__ = (CheckConstraint("balance >= 0", name="ck_pool_balance_non_negative"),)

    name: Mapped[str] = mapped_column(String(32), primary_key=True)
    balance: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
