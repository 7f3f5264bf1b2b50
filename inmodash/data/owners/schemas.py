"""Pydantic schemas for owners."""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class OwnerBase(BaseModel):
    name: str = Field(..., min_length=1, description="Owner full name or business name")
    dni_or_cuit: Optional[str] = Field(None, description="National id or tax id")
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    bank_account: Optional[str] = Field(None, description="Where settlements are paid")
    notes: Optional[str] = None


class OwnerCreate(OwnerBase):
    """Schema for creating an owner."""
    pass


class OwnerUpdate(BaseModel):
    """Schema for updating an owner. Balance is derived and cannot be set."""
    name: Optional[str] = Field(None, min_length=1)
    dni_or_cuit: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    bank_account: Optional[str] = None
    notes: Optional[str] = None


class OwnerResponse(OwnerBase):
    id: str
    user_id: str
    balance: Decimal
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
