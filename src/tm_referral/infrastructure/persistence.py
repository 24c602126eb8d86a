# src/tm_referral/infrastructure/persistence.py
"""ReferralBonusRepository."""
from datetime import datetime
from typing import Any

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_common.datetime_utils import ensure_utc
from src.tm_common.enums import BonusStatus
from src.tm_referral.domain.models import ReferralBonus
from src.tm_referral.infrastructure.db_models import ReferralBonusORM

_bonuses = ReferralBonusORM.__table__


def _row_to_bonus(row: Any) -> ReferralBonus:
    return ReferralBonus(
        id=row.id,
        beneficiary_id=row.beneficiary_id,
        referred_owner_id=row.referred_owner_id,
        source_order_id=row.source_order_id,
        amount=row.amount,
        status=row.status,
        applied_order_id=row.applied_order_id,
        created_at=ensure_utc(row.created_at),
        applied_at=ensure_utc(row.applied_at),
    )


class ReferralBonusRepository:
    async def insert(self, bonus: ReferralBonus, db: AsyncSession) -> None:
        await db.execute(
            insert(_bonuses).values(
                id=bonus.id,
                beneficiary_id=bonus.beneficiary_id,
                referred_owner_id=bonus.referred_owner_id,
                source_order_id=bonus.source_order_id,
                amount=bonus.amount,
                status=bonus.status,
                created_at=bonus.created_at,
            )
        )

    async def list_for_beneficiary(
        self, beneficiary_id: str, status: str | None, db: AsyncSession
    ) -> list[ReferralBonus]:
        stmt = select(_bonuses).where(_bonuses.c.beneficiary_id == beneficiary_id)
        if status:
            stmt = stmt.where(_bonuses.c.status == status)
        stmt = stmt.order_by(_bonuses.c.created_at.asc(), _bonuses.c.id.asc())
        rows = (await db.execute(stmt)).fetchall()
        return [_row_to_bonus(row) for row in rows]

    async def mark_applied(
        self, bonus_id: str, order_id: str, now: datetime, db: AsyncSession
    ) -> bool:
        result = await db.execute(
            update(_bonuses)
            .where(_bonuses.c.id == bonus_id, _bonuses.c.status == BonusStatus.PENDING.value)
            .values(status=BonusStatus.APPLIED.value, applied_order_id=order_id, applied_at=now)
        )
        return result.rowcount == 1
