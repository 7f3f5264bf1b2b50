"""
API routes for the property inventory.

- /buildings: buildings and their owner
- /apartments: rentable units, inside a building or standalone
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from inmodash.auth.dependencies import get_current_user
from inmodash.data import models
from inmodash.data.properties.schemas import (
    ApartmentCreate,
    ApartmentResponse,
    ApartmentUpdate,
    BuildingCreate,
    BuildingResponse,
    BuildingUpdate,
)
from inmodash.database import get_db

building_router = APIRouter()
apartment_router = APIRouter()


async def _get_scoped(db: AsyncSession, model, obj_id: str, user_id: str, label: str):
    result = await db.execute(select(model).where(model.id == obj_id, model.user_id == user_id))
    obj = result.scalar_one_or_none()
    if not obj:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return obj


async def _check_links(db: AsyncSession, user_id: str, owner_id: Optional[str] = None, building_id: Optional[str] = None):
    """Linked rows must belong to the same account."""
    if owner_id:
        await _get_scoped(db, models.Owner, owner_id, user_id, "Owner")
    if building_id:
        await _get_scoped(db, models.Building, building_id, user_id, "Building")


# ============================================
# Buildings
# ============================================

@building_router.get("", response_model=List[BuildingResponse])
async def list_buildings(
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(models.Building).where(models.Building.user_id == current_user.id).order_by(models.Building.name)
    )
    return result.scalars().all()


@building_router.post("", response_model=BuildingResponse, status_code=status.HTTP_201_CREATED)
async def create_building(
    building: BuildingCreate,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await _check_links(db, current_user.id, owner_id=building.owner_id)
    db_building = models.Building(user_id=current_user.id, **building.model_dump())
    db.add(db_building)
    await db.commit()
    await db.refresh(db_building)
    return db_building


@building_router.get("/{building_id}", response_model=BuildingResponse)
async def get_building(
    building_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _get_scoped(db, models.Building, building_id, current_user.id, "Building")


@building_router.put("/{building_id}", response_model=BuildingResponse)
async def update_building(
    building_id: str,
    updates: BuildingUpdate,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    building = await _get_scoped(db, models.Building, building_id, current_user.id, "Building")
    data = updates.model_dump(exclude_unset=True)
    await _check_links(db, current_user.id, owner_id=data.get("owner_id"))
    for field, value in data.items():
        setattr(building, field, value)
    await db.commit()
    await db.refresh(building)
    return building


@building_router.delete("/{building_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_building(
    building_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    building = await _get_scoped(db, models.Building, building_id, current_user.id, "Building")
    await db.delete(building)
    await db.commit()


# ============================================
# Apartments
# ============================================

@apartment_router.get("", response_model=List[ApartmentResponse])
async def list_apartments(
    building_id: Optional[str] = None,
    owner_id: Optional[str] = None,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List apartments.

    Filters:
    - building_id: units of one building
    - owner_id: units owned directly by an owner
    """
    query = select(models.Apartment).where(models.Apartment.user_id == current_user.id)
    if building_id:
        query = query.where(models.Apartment.building_id == building_id)
    if owner_id:
        query = query.where(models.Apartment.owner_id == owner_id)
    result = await db.execute(query.order_by(models.Apartment.nomenclature))
    return result.scalars().all()


@apartment_router.post("", response_model=ApartmentResponse, status_code=status.HTTP_201_CREATED)
async def create_apartment(
    apartment: ApartmentCreate,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    if not apartment.building_id and not apartment.full_address:
        raise HTTPException(status_code=400, detail="Apartment needs a building or a full address")
    await _check_links(db, current_user.id, owner_id=apartment.owner_id, building_id=apartment.building_id)

    db_apartment = models.Apartment(user_id=current_user.id, **apartment.model_dump())
    db.add(db_apartment)
    await db.commit()
    await db.refresh(db_apartment)
    return db_apartment


@apartment_router.get("/{apartment_id}", response_model=ApartmentResponse)
async def get_apartment(
    apartment_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _get_scoped(db, models.Apartment, apartment_id, current_user.id, "Apartment")


@apartment_router.put("/{apartment_id}", response_model=ApartmentResponse)
async def update_apartment(
    apartment_id: str,
    updates: ApartmentUpdate,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    apartment = await _get_scoped(db, models.Apartment, apartment_id, current_user.id, "Apartment")
    data = updates.model_dump(exclude_unset=True)
    await _check_links(db, current_user.id, owner_id=data.get("owner_id"), building_id=data.get("building_id"))
    for field, value in data.items():
        setattr(apartment, field, value)
    await db.commit()
    await db.refresh(apartment)
    return apartment


@apartment_router.delete("/{apartment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_apartment(
    apartment_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    apartment = await _get_scoped(db, models.Apartment, apartment_id, current_user.id, "Apartment")
    await db.delete(apartment)
    await db.commit()
