"""
Pydantic schemas for obligations and obligation payments.

Money fields are Decimals; impacts are signed:
- owner_impact: + the owner receives, - deducted from the owner's settlement
- agency_impact: + agency income, - agency expense
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field


ObligationTypeLiteral = Literal["rent", "expenses", "service", "tax", "insurance", "maintenance", "debt"]
PaidByLiteral = Literal["tenant", "owner", "agency"]
StatusLiteral = Literal["pending", "partial", "paid", "overdue"]
PaymentMethod = Literal["cash", "transfer", "check", "card", "other", "owner_balance"]


# ============================================
# Obligation Schemas
# ============================================

class ObligationCreate(BaseModel):
    """Schema for recording an obligation by hand."""

    contract_id: Optional[str] = Field(
        None, description="Contract the charge belongs to. Defaults to the apartment's active contract."
    )
    apartment_id: Optional[str] = None

    type: ObligationTypeLiteral
    category: Optional[str] = None
    description: str = Field(..., min_length=1)
    period: Union[date, str] = Field(..., description="Month the charge belongs to (YYYY-MM or a date)")
    due_date: date
    amount: Decimal = Field(..., gt=0)
    paid_amount: Optional[Decimal] = Field(None, ge=0, description="Already paid at creation (adjustments)")
    paid_by: PaidByLiteral = "tenant"
    status: Optional[StatusLiteral] = Field(None, description="Derived from amounts and due date when omitted")

    # Rent commission; falls back to the contract configuration
    commission_type: Optional[Literal["percentage", "fixed"]] = None
    commission_value: Optional[Decimal] = Field(None, ge=0)

    # Manual distribution (debts, adjustments)
    owner_impact: Optional[Decimal] = None
    agency_impact: Optional[Decimal] = None
    commission_amount: Optional[Decimal] = Field(None, ge=0)
    owner_amount: Optional[Decimal] = Field(None, ge=0)

    notes: Optional[str] = None


class ObligationUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = None
    due_date: Optional[date] = None
    amount: Optional[Decimal] = Field(None, gt=0)
    paid_by: Optional[PaidByLiteral] = None
    owner_impact: Optional[Decimal] = None
    agency_impact: Optional[Decimal] = None
    notes: Optional[str] = None


class ObligationPaymentResponse(BaseModel):
    id: str
    obligation_id: str
    amount: Decimal
    payment_date: date
    method: Optional[str] = None
    reference: Optional[str] = None
    notes: Optional[str] = None
    applied_to_owner_balance: bool
    owner_id: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ObligationResponse(BaseModel):
    id: str
    user_id: str
    contract_id: Optional[str] = None
    apartment_id: Optional[str] = None
    recurring_obligation_id: Optional[str] = None
    type: str
    category: Optional[str] = None
    description: str
    period: date
    due_date: date
    amount: Decimal
    paid_amount: Decimal
    paid_by: str
    owner_impact: Decimal
    agency_impact: Decimal
    commission_amount: Decimal
    owner_amount: Decimal
    commission_type: Optional[str] = None
    commission_value: Optional[Decimal] = None
    status: str
    is_auto_generated: bool
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    payments: List[ObligationPaymentResponse] = []

    model_config = {"from_attributes": True}


# ============================================
# Payment Schemas
# ============================================

class ObligationPaymentCreate(BaseModel):
    obligation_id: str
    amount: Decimal = Field(..., gt=0)
    payment_date: date
    method: Optional[PaymentMethod] = None
    reference: Optional[str] = None
    notes: Optional[str] = None
    applied_to_owner_balance: bool = Field(
        False, description="Pay out of the owner's running balance instead of fresh money"
    )
    owner_id: Optional[str] = Field(None, description="Owner whose balance pays (defaults to the obligation owner)")


class ObligationPaymentUpdate(BaseModel):
    amount: Optional[Decimal] = Field(None, gt=0)
    payment_date: Optional[date] = None
    method: Optional[PaymentMethod] = None
    reference: Optional[str] = None
    notes: Optional[str] = None


# ============================================
# Generation & Balances
# ============================================

class GenerateObligationsRequest(BaseModel):
    month: str = Field(..., description="Month to generate (YYYY-MM)")


class GenerationResult(BaseModel):
    month: str
    generated: int
    skipped: int
    errors: List[Dict[str, Any]]
    rent_generated: int = 0
    recurring_generated: int = 0


class MarkOverdueResult(BaseModel):
    updated: int


class OwnerBalanceResult(BaseModel):
    owner_id: str
    owner_name: str
    previous_balance: Decimal
    new_balance: Decimal
    total_income: Decimal
    total_deducted: Decimal
    payments_processed: int
