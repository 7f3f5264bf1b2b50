"""Pydantic schemas for buildings and apartments."""
from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field


PropertyType = Literal["apartment", "house", "commercial", "office", "parking", "land"]
ApartmentStatus = Literal["available", "rented", "under_renovation", "personal_use"]


# ============================================
# Building Schemas
# ============================================

class BuildingCreate(BaseModel):
    name: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    city: Optional[str] = None
    province: Optional[str] = None
    floors: Optional[int] = Field(None, ge=0)
    total_area: Optional[Decimal] = Field(None, ge=0)
    owner_id: Optional[str] = Field(None, description="Owner of the whole building")


class BuildingUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    address: Optional[str] = Field(None, min_length=1)
    city: Optional[str] = None
    province: Optional[str] = None
    floors: Optional[int] = Field(None, ge=0)
    total_area: Optional[Decimal] = Field(None, ge=0)
    owner_id: Optional[str] = None


class BuildingResponse(BuildingCreate):
    id: str
    user_id: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# ============================================
# Apartment Schemas
# ============================================

class ApartmentCreate(BaseModel):
    """Either a unit of a building (building_id) or a standalone property (full_address)."""
    building_id: Optional[str] = None
    floor: Optional[int] = None
    apartment_letter: Optional[str] = None
    nomenclature: str = Field(..., min_length=1, description="Unit label, e.g. '3B'")
    full_address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    owner_id: Optional[str] = Field(None, description="Overrides the building owner")
    property_type: PropertyType = "apartment"
    area: Optional[Decimal] = Field(None, ge=0)
    rooms: Optional[int] = Field(None, ge=0)
    status: ApartmentStatus = "available"
    specifications: Optional[str] = None


class ApartmentUpdate(BaseModel):
    building_id: Optional[str] = None
    floor: Optional[int] = None
    apartment_letter: Optional[str] = None
    nomenclature: Optional[str] = Field(None, min_length=1)
    full_address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    owner_id: Optional[str] = None
    property_type: Optional[PropertyType] = None
    area: Optional[Decimal] = Field(None, ge=0)
    rooms: Optional[int] = Field(None, ge=0)
    status: Optional[ApartmentStatus] = None
    specifications: Optional[str] = None


class ApartmentResponse(ApartmentCreate):
    id: str
    user_id: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
