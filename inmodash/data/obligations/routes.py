"""
API routes for obligations and their payments.

- /obligations: billable charges and their owner/agency distribution
- /obligations/payments: money received against obligations
- /obligations/generate: monthly rent + recurring generation
- /obligations/owners/.../recalculate-balance: rebuild owner balances
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from inmodash.auth.dependencies import get_current_user
from inmodash.data import models
from inmodash.data.obligations.schemas import (
    GenerateObligationsRequest,
    GenerationResult,
    MarkOverdueResult,
    ObligationCreate,
    ObligationPaymentCreate,
    ObligationPaymentResponse,
    ObligationPaymentUpdate,
    ObligationResponse,
    ObligationTypeLiteral,
    ObligationUpdate,
    OwnerBalanceResult,
)
from inmodash.database import get_db
from inmodash.services.distribution import parse_month
from inmodash.services.obligations import ObligationService

router = APIRouter()


def _service(db: AsyncSession, user: models.User) -> ObligationService:
    return ObligationService(db, user.id)


# ============================================
# Obligation Queries
# ============================================

@router.get("", response_model=List[ObligationResponse])
async def list_obligations(
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _service(db, current_user).list_obligations()


@router.get("/pending", response_model=List[ObligationResponse])
async def list_pending_obligations(
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Obligations not yet fully paid (pending, partial or overdue)."""
    return await _service(db, current_user).get_pending()


@router.get("/overdue", response_model=List[ObligationResponse])
async def list_overdue_obligations(
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _service(db, current_user).get_overdue()


@router.get("/contract/{contract_id}", response_model=List[ObligationResponse])
async def list_contract_obligations(
    contract_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _service(db, current_user).get_by_contract(contract_id)


@router.get("/type/{obligation_type}", response_model=List[ObligationResponse])
async def list_obligations_by_type(
    obligation_type: ObligationTypeLiteral,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _service(db, current_user).get_by_type(obligation_type)


# ============================================
# Generation & Maintenance
# ============================================

@router.post("/generate", response_model=GenerationResult)
async def generate_obligations(
    request: GenerateObligationsRequest,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Generate the month's rent obligations for active contracts and the
    month's recurring obligations. Safe to call more than once.
    """
    try:
        period = parse_month(request.month)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return await _service(db, current_user).generate_obligations(period)


@router.post("/mark-overdue", response_model=MarkOverdueResult)
async def mark_overdue_obligations(
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    updated = await _service(db, current_user).mark_overdue()
    return {"updated": updated}


@router.post("/owners/recalculate-balances", response_model=List[OwnerBalanceResult])
async def recalculate_all_owner_balances(
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _service(db, current_user).recalculate_all_owner_balances()


@router.post("/owners/{owner_id}/recalculate-balance", response_model=OwnerBalanceResult)
async def recalculate_owner_balance(
    owner_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await _service(db, current_user).recalculate_owner_balance(owner_id)
    if result is None:
        raise HTTPException(status_code=404, detail="Owner not found")
    return result


# ============================================
# Payments
# ============================================

@router.get("/payments/all", response_model=List[ObligationPaymentResponse])
async def list_payments(
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _service(db, current_user).list_payments()


@router.get("/payments/contract/{contract_id}", response_model=List[ObligationPaymentResponse])
async def list_contract_payments(
    contract_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _service(db, current_user).get_payments_by_contract(contract_id)


@router.get("/payments/{payment_id}", response_model=ObligationPaymentResponse)
async def get_payment(
    payment_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    payment = await _service(db, current_user).get_payment(payment_id)
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")
    return payment


@router.post("/payments", response_model=ObligationPaymentResponse, status_code=status.HTTP_201_CREATED)
async def create_payment(
    payment: ObligationPaymentCreate,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Record a payment.

    Rejects payments above the remaining balance. Payments made from the
    owner's balance require enough balance and decrement it.
    """
    try:
        created = await _service(db, current_user).create_payment(payment.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if created is None:
        raise HTTPException(status_code=404, detail="Obligation not found")
    return created


@router.put("/payments/{payment_id}", response_model=ObligationPaymentResponse)
async def update_payment(
    payment_id: str,
    updates: ObligationPaymentUpdate,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        payment = await _service(db, current_user).update_payment(
            payment_id, updates.model_dump(exclude_unset=True)
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if payment is None:
        raise HTTPException(status_code=404, detail="Payment not found")
    return payment


@router.delete("/payments/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_payment(
    payment_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    if not await _service(db, current_user).delete_payment(payment_id):
        raise HTTPException(status_code=404, detail="Payment not found")


# ============================================
# Obligation CRUD
# ============================================

@router.post("", response_model=ObligationResponse, status_code=status.HTTP_201_CREATED)
async def create_obligation(
    obligation: ObligationCreate,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Record an obligation.

    Owner/agency impacts are derived from the type and who paid, unless
    owner_impact / agency_impact are given explicitly.
    """
    try:
        return await _service(db, current_user).create_obligation(obligation.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{obligation_id}", response_model=ObligationResponse)
async def get_obligation(
    obligation_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    obligation = await _service(db, current_user).get_obligation(obligation_id)
    if not obligation:
        raise HTTPException(status_code=404, detail="Obligation not found")
    return obligation


@router.get("/{obligation_id}/payments", response_model=List[ObligationPaymentResponse])
async def list_obligation_payments(
    obligation_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _service(db, current_user).get_payments_by_obligation(obligation_id)


@router.put("/{obligation_id}", response_model=ObligationResponse)
async def update_obligation(
    obligation_id: str,
    updates: ObligationUpdate,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        obligation = await _service(db, current_user).update_obligation(
            obligation_id, updates.model_dump(exclude_unset=True)
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if obligation is None:
        raise HTTPException(status_code=404, detail="Obligation not found")
    return obligation


@router.delete("/{obligation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_obligation(
    obligation_id: str,
    current_user: models.User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    if not await _service(db, current_user).delete_obligation(obligation_id):
        raise HTTPException(status_code=404, detail="Obligation not found")
