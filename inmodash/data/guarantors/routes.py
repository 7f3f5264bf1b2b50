"""API routes for guarantors and contract guarantors."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from inmodash.auth.dependencies import get_current_user
from inmodash.data import models
from inmodash.data.guarantors.schemas import (
    ContractGuarantorAdd,
    ContractGuarantorLink,
    GuarantorCreate,
    GuarantorResponse,
    GuarantorUpdate,
)
from inmodash.database import get_db
from inmodash.services.guarantors import GuarantorService

router = APIRouter()
contract_guarantor_router = APIRouter()


@router.get("", response_model=List[GuarantorResponse])
async def list_guarantors(
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await GuarantorService(db, current_user.id).list_guarantors()


@router.post("", response_model=GuarantorResponse, status_code=status.HTTP_201_CREATED)
async def create_guarantor(
    guarantor: GuarantorCreate,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await GuarantorService(db, current_user.id).create_guarantor(guarantor.model_dump())


@router.get("/{guarantor_id}", response_model=GuarantorResponse)
async def get_guarantor(
    guarantor_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    guarantor = await GuarantorService(db, current_user.id).get_guarantor(guarantor_id)
    if not guarantor:
        raise HTTPException(status_code=404, detail="Guarantor not found")
    return guarantor


@router.put("/{guarantor_id}", response_model=GuarantorResponse)
async def update_guarantor(
    guarantor_id: str,
    updates: GuarantorUpdate,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    guarantor = await GuarantorService(db, current_user.id).update_guarantor(
        guarantor_id, updates.model_dump(exclude_unset=True)
    )
    if not guarantor:
        raise HTTPException(status_code=404, detail="Guarantor not found")
    return guarantor


@router.delete("/{guarantor_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_guarantor(
    guarantor_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    if not await GuarantorService(db, current_user.id).delete_guarantor(guarantor_id):
        raise HTTPException(status_code=404, detail="Guarantor not found")


# =============================================================================
# /contracts/{contract_id}/guarantors
# =============================================================================

@contract_guarantor_router.get("/{contract_id}/guarantors", response_model=List[GuarantorResponse])
async def list_contract_guarantors(
    contract_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    guarantors = await GuarantorService(db, current_user.id).list_for_contract(contract_id)
    if guarantors is None:
        raise HTTPException(status_code=404, detail="Contract not found")
    return guarantors


@contract_guarantor_router.post(
    "/{contract_id}/guarantors",
    response_model=ContractGuarantorLink,
    status_code=status.HTTP_201_CREATED,
)
async def add_contract_guarantor(
    contract_id: str,
    request: ContractGuarantorAdd,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        link = await GuarantorService(db, current_user.id).add_to_contract(contract_id, request.guarantor_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not link:
        raise HTTPException(status_code=404, detail="Contract not found")
    return link


@contract_guarantor_router.delete(
    "/{contract_id}/guarantors/{guarantor_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def remove_contract_guarantor(
    contract_id: str,
    guarantor_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    if not await GuarantorService(db, current_user.id).remove_from_contract(contract_id, guarantor_id):
        raise HTTPException(status_code=404, detail="Guarantor is not linked to this contract")
