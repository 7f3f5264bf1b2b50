"""API routes for tenants."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from inmodash.auth.dependencies import get_current_user
from inmodash.data import models
from inmodash.data.tenants.schemas import TenantCreate, TenantResponse, TenantUpdate
from inmodash.database import get_db

router = APIRouter()


async def _get_tenant_or_404(db: AsyncSession, tenant_id: str, user_id: str) -> models.Tenant:
    result = await db.execute(
        select(models.Tenant).where(models.Tenant.id == tenant_id, models.Tenant.user_id == user_id)
    )
    tenant = result.scalar_one_or_none()
    if not tenant:
        raise HTTPException(status_code=404, detail="Tenant not found")
    return tenant


@router.get("", response_model=List[TenantResponse])
async def list_tenants(
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(models.Tenant)
        .where(models.Tenant.user_id == current_user.id)
        .order_by(models.Tenant.name_or_business)
    )
    return result.scalars().all()


@router.post("", response_model=TenantResponse, status_code=status.HTTP_201_CREATED)
async def create_tenant(
    tenant: TenantCreate,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    db_tenant = models.Tenant(user_id=current_user.id, **tenant.model_dump())
    db.add(db_tenant)
    await db.commit()
    await db.refresh(db_tenant)
    return db_tenant


@router.get("/{tenant_id}", response_model=TenantResponse)
async def get_tenant(
    tenant_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _get_tenant_or_404(db, tenant_id, current_user.id)


@router.put("/{tenant_id}", response_model=TenantResponse)
async def update_tenant(
    tenant_id: str,
    updates: TenantUpdate,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    tenant = await _get_tenant_or_404(db, tenant_id, current_user.id)
    for field, value in updates.model_dump(exclude_unset=True).items():
        setattr(tenant, field, value)
    await db.commit()
    await db.refresh(tenant)
    return tenant


@router.delete("/{tenant_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tenant(
    tenant_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    tenant = await _get_tenant_or_404(db, tenant_id, current_user.id)
    contracts = await db.execute(
        select(models.Contract.id).where(models.Contract.tenant_id == tenant.id).limit(1)
    )
    if contracts.first() is not None:
        raise HTTPException(status_code=400, detail="Tenant has contracts and cannot be deleted")
    await db.delete(tenant)
    await db.commit()
