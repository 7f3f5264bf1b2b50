"""API routes for recurring obligation templates."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from inmodash.auth.dependencies import get_current_user
from inmodash.data import models
from inmodash.data.recurring.schemas import (
    GenerateRecurringRequest,
    RecurringGenerationResult,
    RecurringObligationCreate,
    RecurringObligationResponse,
    RecurringObligationUpdate,
)
from inmodash.database import get_db
from inmodash.services.distribution import parse_month
from inmodash.services.recurring import RecurringObligationService

router = APIRouter()


@router.get("", response_model=List[RecurringObligationResponse])
async def list_recurring_obligations(
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await RecurringObligationService(db, current_user.id).list_recurring()


@router.post("", response_model=RecurringObligationResponse, status_code=status.HTTP_201_CREATED)
async def create_recurring_obligation(
    recurring: RecurringObligationCreate,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        return await RecurringObligationService(db, current_user.id).create_recurring(recurring.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/generate", response_model=RecurringGenerationResult)
async def generate_recurring_obligations(
    request: GenerateRecurringRequest,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Materialise the month's obligations from every active template."""
    try:
        period = parse_month(request.month)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return await RecurringObligationService(db, current_user.id).generate_for_month(period)


@router.get("/{recurring_id}", response_model=RecurringObligationResponse)
async def get_recurring_obligation(
    recurring_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    recurring = await RecurringObligationService(db, current_user.id).get_recurring(recurring_id)
    if not recurring:
        raise HTTPException(status_code=404, detail="Recurring obligation not found")
    return recurring


@router.put("/{recurring_id}", response_model=RecurringObligationResponse)
async def update_recurring_obligation(
    recurring_id: str,
    updates: RecurringObligationUpdate,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        recurring = await RecurringObligationService(db, current_user.id).update_recurring(
            recurring_id, updates.model_dump(exclude_unset=True)
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not recurring:
        raise HTTPException(status_code=404, detail="Recurring obligation not found")
    return recurring


@router.patch("/{recurring_id}/toggle", response_model=RecurringObligationResponse)
async def toggle_recurring_obligation(
    recurring_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    recurring = await RecurringObligationService(db, current_user.id).toggle_active(recurring_id)
    if not recurring:
        raise HTTPException(status_code=404, detail="Recurring obligation not found")
    return recurring


@router.delete("/{recurring_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recurring_obligation(
    recurring_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    if not await RecurringObligationService(db, current_user.id).delete_recurring(recurring_id):
        raise HTTPException(status_code=404, detail="Recurring obligation not found")
