"""Pydantic schemas for guarantors."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class GuarantorCreate(BaseModel):
    name: str = Field(..., min_length=1)
    dni: Optional[str] = None
    address: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class GuarantorUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    dni: Optional[str] = None
    address: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class ContractGuarantorLink(BaseModel):
    id: str
    contract_id: str
    guarantor_id: str
    created_at: datetime

    model_config = {"from_attributes": True}


class GuarantorResponse(GuarantorCreate):
    id: str
    user_id: str
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None
    contract_links: List[ContractGuarantorLink] = []

    model_config = {"from_attributes": True}


class ContractGuarantorAdd(BaseModel):
    guarantor_id: str
