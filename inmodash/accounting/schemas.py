"""Pydantic schemas for the agency ledger."""
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


EntryType = Literal["commission", "commission_service", "expense", "income_other", "adjustment"]


class AccountingEntryCreate(BaseModel):
    type: EntryType
    description: str = Field(..., min_length=1)
    amount: Decimal
    entry_date: date
    period: Optional[date] = Field(None, description="Month the entry belongs to (defaults to entry_date)")
    settlement_id: Optional[str] = None
    owner_id: Optional[str] = None
    contract_id: Optional[str] = None
    obligation_id: Optional[str] = None
    extra_data: Optional[Dict[str, Any]] = None


class AccountingEntryResponse(BaseModel):
    id: str
    user_id: str
    type: str
    description: str
    amount: Decimal
    entry_date: date
    period: date
    settlement_id: Optional[str] = None
    owner_id: Optional[str] = None
    contract_id: Optional[str] = None
    obligation_id: Optional[str] = None
    extra_data: Optional[Dict[str, Any]] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class CommissionsSummary(BaseModel):
    entries: List[AccountingEntryResponse]
    total_commissions: Decimal
    count: int


class TypeTotal(BaseModel):
    type: str
    total: Decimal
    count: int
