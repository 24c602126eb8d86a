# src/tm_settlement/api/router.py
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_common.database import get_db_session
from src.tm_common.response import ApiResponse, success_response
from src.tm_gateway.auth.dependencies import Caller, get_current_caller
from src.tm_settlement.application.service import SettlementService

router = APIRouter(prefix="/chunks", tags=["settlement"])
_service = SettlementService()


@router.post("/{chunk_id}/paid")
async def mark_chunk_paid(
    chunk_id: str,
    caller: Annotated[Caller, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.mark_chunk_paid(chunk_id, caller.user_id, db)
    return success_response(result.model_dump(mode="json"))


@router.post("/{chunk_id}/received")
async def mark_chunk_received(
    chunk_id: str,
    caller: Annotated[Caller, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.mark_chunk_received(chunk_id, caller.user_id, db)
    return success_response(result.model_dump(mode="json"))
