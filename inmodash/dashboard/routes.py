"""Dashboard API routes."""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from inmodash.auth.dependencies import get_current_user
from inmodash.dashboard.engine import calculate_dashboard_stats
from inmodash.dashboard.schemas import DashboardStats
from inmodash.data import models
from inmodash.database import get_db

router = APIRouter()


@router.get("/stats", response_model=DashboardStats)
async def get_stats(
    as_of: Optional[date] = Query(None, description="Reference day (defaults to today)"),
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Headline numbers for the agency dashboard.

    Inventory counts, open and overdue obligations, money collected and
    commissions earned this month, plus contracts about to expire and
    obligations due soon or overdue.
    """
    return await calculate_dashboard_stats(db, current_user.id, as_of)
