"""API routes for owner settlements."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from inmodash.auth.dependencies import get_current_user
from inmodash.data import models
from inmodash.data.settlements.schemas import (
    CalculateSettlementsRequest,
    CalculateSettlementsResult,
    SettleRequest,
    SettlementResponse,
    SettlementUpsert,
)
from inmodash.database import get_db
from inmodash.services.distribution import normalize_period
from inmodash.services.settlements import SettlementService

router = APIRouter()


@router.get("", response_model=List[SettlementResponse])
async def list_settlements(
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await SettlementService(db, current_user.id).list_settlements()


@router.get("/pending", response_model=List[SettlementResponse])
async def list_pending_settlements(
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await SettlementService(db, current_user.id).get_pending()


@router.get("/owner/{owner_id}", response_model=List[SettlementResponse])
async def list_owner_settlements(
    owner_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await SettlementService(db, current_user.id).get_by_owner(owner_id)


@router.post("", response_model=SettlementResponse)
async def upsert_settlement(
    settlement: SettlementUpsert,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        return await SettlementService(db, current_user.id).upsert_settlement(settlement.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/calculate", response_model=CalculateSettlementsResult)
async def calculate_settlements(
    request: CalculateSettlementsRequest,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Build every owner's statement for a month from the obligations paid in it.

    Statements already settled are not modified.
    """
    try:
        period = normalize_period(request.period)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return await SettlementService(db, current_user.id).calculate_for_period(period)


@router.get("/{settlement_id}", response_model=SettlementResponse)
async def get_settlement(
    settlement_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    settlement = await SettlementService(db, current_user.id).get_settlement(settlement_id)
    if not settlement:
        raise HTTPException(status_code=404, detail="Settlement not found")
    return settlement


@router.post("/{settlement_id}/settle", response_model=SettlementResponse)
async def settle_settlement(
    settlement_id: str,
    request: SettleRequest,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Mark as paid to the owner; the commission is booked in accounting."""
    try:
        settlement = await SettlementService(db, current_user.id).mark_settled(settlement_id, request.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not settlement:
        raise HTTPException(status_code=404, detail="Settlement not found")
    return settlement


@router.post("/{settlement_id}/pending", response_model=SettlementResponse)
async def reopen_settlement(
    settlement_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    settlement = await SettlementService(db, current_user.id).mark_pending(settlement_id)
    if not settlement:
        raise HTTPException(status_code=404, detail="Settlement not found")
    return settlement


@router.delete("/{settlement_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_settlement(
    settlement_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    if not await SettlementService(db, current_user.id).delete_settlement(settlement_id):
        raise HTTPException(status_code=404, detail="Settlement not found")
