"""Pydantic schemas for lease contracts."""
from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field


CommissionTypeLiteral = Literal["percentage", "fixed"]
UpdateIndexType = Literal["icl", "ipc", "fixed", "none"]


class ContractCreate(BaseModel):
    """Schema for creating a contract."""

    apartment_id: str
    tenant_id: str
    start_date: date
    end_date: date
    initial_amount: Decimal = Field(..., gt=0, description="Monthly rent at signing")

    # Agency commission on each rent
    commission_type: Optional[CommissionTypeLiteral] = None
    commission_value: Optional[Decimal] = Field(None, ge=0)

    # Rent escalation
    update_index_type: UpdateIndexType = "none"
    update_frequency_months: Optional[int] = Field(None, ge=1, le=120)
    initial_index_value: Optional[Decimal] = Field(None, gt=0, description="Index value at signing (icl/ipc)")
    fixed_update_coefficient: Optional[Decimal] = Field(None, gt=0, description="e.g. 1.05 for +5% per cycle")

    notes: Optional[str] = None


class ContractUpdate(BaseModel):
    end_date: Optional[date] = None
    commission_type: Optional[CommissionTypeLiteral] = None
    commission_value: Optional[Decimal] = Field(None, ge=0)
    update_index_type: Optional[UpdateIndexType] = None
    update_frequency_months: Optional[int] = Field(None, ge=1, le=120)
    initial_index_value: Optional[Decimal] = Field(None, gt=0)
    fixed_update_coefficient: Optional[Decimal] = Field(None, gt=0)
    notes: Optional[str] = None


class ContractResponse(ContractCreate):
    id: str
    user_id: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
