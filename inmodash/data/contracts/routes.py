"""API routes for lease contracts."""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from inmodash.auth.dependencies import get_current_user
from inmodash.data import models
from inmodash.data.contracts.schemas import ContractCreate, ContractResponse, ContractUpdate
from inmodash.database import get_db

router = APIRouter()


def validate_contract_terms(contract) -> None:
    """Reject inconsistent dates, commission or escalation settings."""
    if contract.end_date <= contract.start_date:
        raise ValueError("End date must be after start date")

    if contract.commission_type == "percentage" and contract.commission_value is not None:
        if contract.commission_value > 100:
            raise ValueError("Commission percentage cannot exceed 100")
    if contract.commission_type == "fixed" and contract.commission_value is not None:
        if contract.commission_value > contract.initial_amount:
            raise ValueError("Fixed commission cannot exceed the rent amount")

    index_type = contract.update_index_type or "none"
    if index_type == "none":
        return
    if not contract.update_frequency_months:
        raise ValueError("Update frequency is required when the rent is escalated")
    if index_type == "fixed" and not contract.fixed_update_coefficient:
        raise ValueError("A fixed update coefficient is required for fixed escalation")
    if index_type in ("icl", "ipc") and not contract.initial_index_value:
        raise ValueError(f"The initial {index_type.upper()} value is required for index escalation")


async def _get_contract_or_404(db: AsyncSession, contract_id: str, user_id: str) -> models.Contract:
    result = await db.execute(
        select(models.Contract).where(models.Contract.id == contract_id, models.Contract.user_id == user_id)
    )
    contract = result.scalar_one_or_none()
    if not contract:
        raise HTTPException(status_code=404, detail="Contract not found")
    return contract


@router.get("", response_model=List[ContractResponse])
async def list_contracts(
    active_only: bool = False,
    apartment_id: Optional[str] = None,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List contracts.

    Filters:
    - active_only: contracts in force today
    - apartment_id: contracts of one unit
    """
    query = select(models.Contract).where(models.Contract.user_id == current_user.id)
    if active_only:
        today = date.today()
        query = query.where(models.Contract.start_date <= today, models.Contract.end_date >= today)
    if apartment_id:
        query = query.where(models.Contract.apartment_id == apartment_id)
    result = await db.execute(query.order_by(models.Contract.start_date.desc()))
    return result.scalars().all()


@router.post("", response_model=ContractResponse, status_code=status.HTTP_201_CREATED)
async def create_contract(
    contract: ContractCreate,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        validate_contract_terms(contract)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    for model, obj_id, label in (
        (models.Apartment, contract.apartment_id, "Apartment"),
        (models.Tenant, contract.tenant_id, "Tenant"),
    ):
        result = await db.execute(select(model.id).where(model.id == obj_id, model.user_id == current_user.id))
        if result.first() is None:
            raise HTTPException(status_code=404, detail=f"{label} not found")

    db_contract = models.Contract(user_id=current_user.id, **contract.model_dump())
    db.add(db_contract)
    await db.commit()
    await db.refresh(db_contract)
    return db_contract


@router.get("/{contract_id}", response_model=ContractResponse)
async def get_contract(
    contract_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _get_contract_or_404(db, contract_id, current_user.id)


@router.put("/{contract_id}", response_model=ContractResponse)
async def update_contract(
    contract_id: str,
    updates: ContractUpdate,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    contract = await _get_contract_or_404(db, contract_id, current_user.id)
    for field, value in updates.model_dump(exclude_unset=True).items():
        setattr(contract, field, value)
    try:
        validate_contract_terms(contract)
    except ValueError as e:
        await db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    await db.commit()
    await db.refresh(contract)
    return contract


@router.delete("/{contract_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_contract(
    contract_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    contract = await _get_contract_or_404(db, contract_id, current_user.id)
    await db.delete(contract)
    await db.commit()
