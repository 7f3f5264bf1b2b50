"""Pydantic schemas for owner settlements."""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field


class SettlementUpsert(BaseModel):
    """Create or replace the statement of an owner for one month."""
    owner_id: str
    period: Union[date, str] = Field(..., description="YYYY-MM or any date inside the month")
    total_collected: Decimal = Field(Decimal("0"), ge=0)
    commission_amount: Decimal = Field(Decimal("0"), ge=0)
    deductions: Decimal = Field(Decimal("0"), ge=0)
    credits: Decimal = Field(Decimal("0"), ge=0)
    owner_amount: Decimal = Decimal("0")
    notes: Optional[str] = None


class SettleRequest(BaseModel):
    payment_method: Optional[str] = None
    reference: Optional[str] = None
    notes: Optional[str] = None


class CalculateSettlementsRequest(BaseModel):
    period: Union[date, str] = Field(..., description="YYYY-MM or any date inside the month")


class SettlementResponse(BaseModel):
    id: str
    user_id: str
    owner_id: str
    period: date
    total_collected: Decimal
    commission_amount: Decimal
    deductions: Decimal
    credits: Decimal
    owner_amount: Decimal
    status: Literal["pending", "settled"]
    settled_at: Optional[datetime] = None
    payment_method: Optional[str] = None
    reference: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CalculateSettlementsResult(BaseModel):
    period: str
    settlements: List[SettlementResponse]
    skipped_settled_owner_ids: List[str]
