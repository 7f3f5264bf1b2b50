"""Pydantic schemas for recurring obligation templates."""
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


RecurringType = Literal["expenses", "service", "tax", "insurance", "maintenance", "debt"]


class RecurringObligationCreate(BaseModel):
    """
    Schema for creating a template.

    Rent is generated from contracts and is not accepted here.
    """

    contract_id: Optional[str] = None
    apartment_id: Optional[str] = None

    type: RecurringType
    category: Optional[str] = None
    description: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0, description="Base monthly amount")
    day_of_month: int = Field(..., ge=1, le=31, description="Due day; clamped to short months")
    start_date: date
    end_date: Optional[date] = Field(None, description="Null = ongoing")
    is_active: bool = True

    paid_by: Literal["tenant", "owner", "agency"] = "tenant"
    commission_type: Optional[Literal["percentage", "fixed"]] = None
    commission_value: Optional[Decimal] = Field(None, ge=0)

    update_index_type: Literal["icl", "ipc", "fixed", "none"] = "none"
    update_frequency_months: Optional[int] = Field(None, ge=1, le=120)
    initial_index_value: Optional[Decimal] = Field(None, gt=0)
    fixed_update_coefficient: Optional[Decimal] = Field(None, gt=0)

    notes: Optional[str] = None


class RecurringObligationUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = None
    amount: Optional[Decimal] = Field(None, gt=0)
    day_of_month: Optional[int] = Field(None, ge=1, le=31)
    end_date: Optional[date] = None
    is_active: Optional[bool] = None
    paid_by: Optional[Literal["tenant", "owner", "agency"]] = None
    commission_type: Optional[Literal["percentage", "fixed"]] = None
    commission_value: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = None


class RecurringObligationResponse(RecurringObligationCreate):
    id: str
    user_id: str
    current_amount: Optional[Decimal] = None
    periods_since_update: int
    last_update_applied: Optional[date] = None
    last_generated: Optional[date] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class GenerateRecurringRequest(BaseModel):
    month: str = Field(..., description="Month to generate (YYYY-MM)")


class RecurringGenerationResult(BaseModel):
    generated: int
    skipped: int
    errors: List[Dict[str, Any]]
