# src/tm_admin/api/router.py
"""Admin REST API."""
from typing import Annotated, Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_admin.application.service import AdminService
from src.tm_common.database import get_db_session
from src.tm_common.response import ApiResponse, success_response
from src.tm_gateway.auth.dependencies import Caller, require_admin
from src.tm_pool.application.schemas import SetPoolBalanceRequest

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()


class SeedSellerRequest(BaseModel):
    owner_id: str
    target_payout: int = Field(..., gt=0, description="Amount owed in cents")


@router.post("/orders/{order_id}/reinstate")
async def reinstate_order(
    order_id: str,
    _admin: Annotated[Caller, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return success_response(await _service.reinstate(order_id, db))


@router.post("/sellers", status_code=201)
async def seed_matured_seller(
    body: SeedSellerRequest,
    _admin: Annotated[Caller, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return success_response(
        await _service.seed_matured_seller(body.owner_id, body.target_payout, db)
    )


@router.put("/pool")
async def set_pool_balance(
    body: SetPoolBalanceRequest,
    _admin: Annotated[Caller, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return success_response(await _service.set_pool_balance(body.balance, db))


@router.post("/sweeps/{name}")
async def run_sweep(
    name: Literal["maturity", "timeout", "matching"],
    _admin: Annotated[Caller, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return success_response(await _service.run_sweep(name, db))


@router.get("/invariants")
async def verify_invariants(
    _admin: Annotated[Caller, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    violations = await _service.verify_invariants(db)
    return success_response({"ok": not violations, "violations": violations})
