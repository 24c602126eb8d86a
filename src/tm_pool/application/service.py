# src/tm_pool/application/service.py
"""LiquidityPool — the shared counter of tokens available for new purchases.

debit() clamps at zero, credit() adds unconditionally. No per-order
attribution is stored; each movement is logged with its order and reason
instead.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.tm_common.errors import InternalError, InvalidPoolBalanceError
from src.tm_pool.infrastructure.persistence import LiquidityPoolRepository

logger = logging.getLogger(__name__)


class LiquidityPool:
    def __init__(
        self,
        repo: LiquidityPoolRepository | None = None,
        name: str | None = None,
    ) -> None:
        self._repo = repo or LiquidityPoolRepository()
        self.name = name or settings.POOL_NAME

    async def balance(self, db: AsyncSession) -> int:
        value = await self._repo.get_balance(self.name, db)
        if value is None:
            raise InternalError(f"Liquidity pool {self.name!r} is not initialised")
        return int(value)

    async def ensure_initialised(self, db: AsyncSession, initial: int | None = None) -> int:
        """Create the pool row with the configured opening balance if it is missing."""
        value = await self._repo.get_balance(self.name, db)
        if value is not None:
            return int(value)
        opening = settings.INITIAL_POOL_BALANCE if initial is None else initial
        await self._repo.create(self.name, opening, db)
        logger.info("pool %s initialised with %d", self.name, opening)
        return opening

    async def debit(
        self, amount: int, db: AsyncSession, *, order_id: str | None, reason: str
    ) -> None:
        if amount <= 0:
            return
        if not await self._repo.debit(self.name, amount, db):
            raise InternalError(f"Liquidity pool {self.name!r} is not initialised")
        logger.info("pool debit: delta=-%d order=%s reason=%s", amount, order_id, reason)

    async def credit(
        self, amount: int, db: AsyncSession, *, order_id: str | None, reason: str
    ) -> None:
        if amount <= 0:
            return
        if not await self._repo.credit(self.name, amount, db):
            raise InternalError(f"Liquidity pool {self.name!r} is not initialised")
        logger.info("pool credit: delta=+%d order=%s reason=%s", amount, order_id, reason)

    async def set_balance(self, balance: int, db: AsyncSession) -> None:
        if balance < 0:
            raise InvalidPoolBalanceError(balance)
        if not await self._repo.set_balance(self.name, balance, db):
            await self._repo.create(self.name, balance, db)
        logger.warning("pool %s balance set to %d", self.name, balance)
