# src/tm_order/api/router.py
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_common.database import get_db_session
from src.tm_common.enums import OrderStatus
from src.tm_common.response import ApiResponse, success_response
from src.tm_gateway.auth.dependencies import Caller, get_current_caller
from src.tm_order.application import service as svc
from src.tm_order.application.schemas import CreateOrderRequest

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", status_code=201)
async def create_order(
    req: CreateOrderRequest,
    caller: Annotated[Caller, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await svc.create_buyer_order(req, caller.user_id, db)
    return success_response(result.model_dump(mode="json"))


@router.get("")
async def list_orders(
    caller: Annotated[Caller, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    status: OrderStatus | None = Query(None, description="Filter by order status"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    cursor: str | None = Query(None, description="Pagination cursor (order ID)"),
) -> ApiResponse:
    result = await svc.list_orders(
        caller.user_id, status.value if status else None, limit, cursor, db
    )
    return success_response(result.model_dump(mode="json"))


@router.get("/{order_id}")
async def get_order(
    order_id: str,
    caller: Annotated[Caller, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await svc.get_order(order_id, caller.user_id, db, is_admin=caller.is_admin)
    return success_response(result.model_dump(mode="json"))


@router.get("/{order_id}/balance")
async def get_order_balance(
    order_id: str,
    caller: Annotated[Caller, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await svc.get_balance(order_id, caller.user_id, db, is_admin=caller.is_admin)
    return success_response(result.model_dump(mode="json"))


@router.get("/{order_id}/chunks/buying")
async def list_buyer_chunks(
    order_id: str,
    caller: Annotated[Caller, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await svc.list_buyer_chunks(order_id, caller.user_id, db, is_admin=caller.is_admin)
    return success_response(result.model_dump(mode="json"))


@router.get("/{order_id}/chunks/selling")
async def list_seller_chunks(
    order_id: str,
    caller: Annotated[Caller, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await svc.list_seller_chunks(order_id, caller.user_id, db, is_admin=caller.is_admin)
    return success_response(result.model_dump(mode="json"))
