# src/tm_pool/api/router.py
"""Liquidity pool REST API."""
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_common.database import get_db_session
from src.tm_common.response import ApiResponse, success_response
from src.tm_gateway.auth.dependencies import Caller, get_current_caller
from src.tm_pool.application.schemas import PoolBalanceResponse
from src.tm_pool.application.service import LiquidityPool

router = APIRouter(prefix="/pool", tags=["pool"])
_pool = LiquidityPool()


@router.get("")
async def get_pool_balance(
    _caller: Annotated[Caller, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    balance = await _pool.balance(db)
    return success_response(PoolBalanceResponse.from_cents(_pool.name, balance).model_dump())
