"""API routes for the agency ledger."""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from inmodash.accounting.schemas import (
    AccountingEntryCreate,
    AccountingEntryResponse,
    CommissionsSummary,
    EntryType,
    TypeTotal,
)
from inmodash.accounting.service import AccountingService
from inmodash.auth.dependencies import get_current_user
from inmodash.data import models
from inmodash.database import get_db

router = APIRouter()


def _check_range(start_date: date, end_date: date) -> None:
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")


@router.get("", response_model=List[AccountingEntryResponse])
async def list_entries(
    type: Optional[EntryType] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    owner_id: Optional[str] = None,
    settlement_id: Optional[str] = None,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List ledger entries, newest first.

    Filters:
    - type: entry type
    - start_date / end_date: entry date range (inclusive)
    - owner_id, settlement_id: linked rows
    """
    return await AccountingService(db, current_user.id).list_entries(
        entry_type=type,
        start_date=start_date,
        end_date=end_date,
        owner_id=owner_id,
        settlement_id=settlement_id,
    )


@router.post("", response_model=AccountingEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_entry(
    entry: AccountingEntryCreate,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        return await AccountingService(db, current_user.id).create_entry(entry.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/commissions/summary", response_model=CommissionsSummary)
async def commissions_summary(
    start_date: date = Query(...),
    end_date: date = Query(...),
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    _check_range(start_date, end_date)
    return await AccountingService(db, current_user.id).get_commissions_summary(start_date, end_date)


@router.get("/totals", response_model=List[TypeTotal])
async def totals_by_type(
    start_date: date = Query(...),
    end_date: date = Query(...),
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    _check_range(start_date, end_date)
    return await AccountingService(db, current_user.id).get_totals_by_type(start_date, end_date)


@router.get("/{entry_id}", response_model=AccountingEntryResponse)
async def get_entry(
    entry_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    entry = await AccountingService(db, current_user.id).get_entry(entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail="Accounting entry not found")
    return entry


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entry(
    entry_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    if not await AccountingService(db, current_user.id).delete_entry(entry_id):
        raise HTTPException(status_code=404, detail="Accounting entry not found")
