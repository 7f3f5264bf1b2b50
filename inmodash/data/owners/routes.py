"""API routes for property owners."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from inmodash.auth.dependencies import get_current_user
from inmodash.data import models
from inmodash.data.owners.schemas import OwnerCreate, OwnerResponse, OwnerUpdate
from inmodash.database import get_db

router = APIRouter()


async def _get_owner_or_404(db: AsyncSession, owner_id: str, user_id: str) -> models.Owner:
    result = await db.execute(
        select(models.Owner).where(models.Owner.id == owner_id, models.Owner.user_id == user_id)
    )
    owner = result.scalar_one_or_none()
    if not owner:
        raise HTTPException(status_code=404, detail="Owner not found")
    return owner


@router.get("", response_model=List[OwnerResponse])
async def list_owners(
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(models.Owner).where(models.Owner.user_id == current_user.id).order_by(models.Owner.name)
    )
    return result.scalars().all()


@router.post("", response_model=OwnerResponse, status_code=status.HTTP_201_CREATED)
async def create_owner(
    owner: OwnerCreate,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    db_owner = models.Owner(user_id=current_user.id, **owner.model_dump())
    db.add(db_owner)
    await db.commit()
    await db.refresh(db_owner)
    return db_owner


@router.get("/{owner_id}", response_model=OwnerResponse)
async def get_owner(
    owner_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _get_owner_or_404(db, owner_id, current_user.id)


@router.put("/{owner_id}", response_model=OwnerResponse)
async def update_owner(
    owner_id: str,
    updates: OwnerUpdate,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    owner = await _get_owner_or_404(db, owner_id, current_user.id)
    for field, value in updates.model_dump(exclude_unset=True).items():
        setattr(owner, field, value)
    await db.commit()
    await db.refresh(owner)
    return owner


@router.delete("/{owner_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_owner(
    owner_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    owner = await _get_owner_or_404(db, owner_id, current_user.id)
    await db.delete(owner)
    await db.commit()
