# src/tm_referral/application/service.py
"""Referral bonuses: a share of a referred purchase, paid on the referrer's next order."""
import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.tm_common.cents import bps_of
from src.tm_common.enums import BonusStatus
from src.tm_common.id_generator import generate_id
from src.tm_referral.domain.models import ReferralBonus
from src.tm_referral.infrastructure.persistence import ReferralBonusRepository

logger = logging.getLogger(__name__)


class ReferralService:
    def __init__(
        self, repo: ReferralBonusRepository | None = None, bonus_bps: int | None = None
    ) -> None:
        self._repo = repo or ReferralBonusRepository()
        self._bonus_bps = settings.REFERRAL_BONUS_BPS if bonus_bps is None else bonus_bps

    async def record_bonus(
        self,
        referrer_id: str | None,
        owner_id: str,
        source_order_id: str,
        principal: int,
        now: datetime,
        db: AsyncSession,
    ) -> ReferralBonus | None:
        if not referrer_id or referrer_id == owner_id:
            return None
        amount = bps_of(principal, self._bonus_bps)
        if amount <= 0:
            return None
        bonus = ReferralBonus(
            id=generate_id(),
            beneficiary_id=referrer_id,
            referred_owner_id=owner_id,
            source_order_id=source_order_id,
            amount=amount,
            created_at=now,
        )
        await self._repo.insert(bonus, db)
        logger.info(
            "referral bonus %s: %d for %s from order %s",
            bonus.id,
            amount,
            referrer_id,
            source_order_id,
        )
        return bonus

    async def claim_pending(
        self, beneficiary_id: str, order_id: str, now: datetime, db: AsyncSession
    ) -> int:
        """Apply every pending bonus of the beneficiary to order_id; returns the total claimed."""
        total = 0
        pending = await self._repo.list_for_beneficiary(
            beneficiary_id, BonusStatus.PENDING.value, db
        )
        for bonus in pending:
            if await self._repo.mark_applied(bonus.id, order_id, now, db):
                total += bonus.amount
        if total:
            logger.info("order %s claimed %d in referral bonuses", order_id, total)
        return total

    async def list_for(self, beneficiary_id: str, db: AsyncSession) -> list[ReferralBonus]:
        return await self._repo.list_for_beneficiary(beneficiary_id, None, db)
