"""Obligation models - billable events and the payments recorded against them."""
from sqlalchemy import Column, String, DateTime, Date, Numeric, Boolean, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from inmodash.database import Base
from inmodash.data.base import generate_id


class Obligation(Base):
    """
    Obligation - a single billable charge for one period.

    The operator records what happened (type, amount, who paid); the
    distribution engine derives who gains and who owes:

    - owner_impact: + the owner receives, - deducted from the owner's settlement
    - agency_impact: + agency income, - agency expense
    """

    __tablename__ = "obligations"

    id = Column(String, primary_key=True, default=lambda: generate_id("obl"))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    contract_id = Column(String, ForeignKey("contracts.id", ondelete="SET NULL"), nullable=True, index=True)
    apartment_id = Column(String, ForeignKey("apartments.id", ondelete="SET NULL"), nullable=True, index=True)
    recurring_obligation_id = Column(
        String, ForeignKey("recurring_obligations.id", ondelete="SET NULL"), nullable=True, index=True
    )

    type = Column(String, nullable=False)
    # Options: "rent", "expenses", "service", "tax", "insurance", "maintenance", "debt"
    category = Column(String, nullable=True)
    description = Column(String, nullable=False)

    # First day of the month this charge belongs to
    period = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)

    amount = Column(Numeric(precision=15, scale=2), nullable=False)
    paid_amount = Column(Numeric(precision=15, scale=2), nullable=False, default=0)

    # Money distribution
    paid_by = Column(String, nullable=False, default="tenant")  # "tenant" | "owner" | "agency"
    owner_impact = Column(Numeric(precision=15, scale=2), nullable=False, default=0)
    agency_impact = Column(Numeric(precision=15, scale=2), nullable=False, default=0)
    commission_amount = Column(Numeric(precision=15, scale=2), nullable=False, default=0)
    owner_amount = Column(Numeric(precision=15, scale=2), nullable=False, default=0)

    # Commission rule the distribution was derived from; reused when the amount changes
    commission_type = Column(String, nullable=True)  # "percentage" | "fixed"
    commission_value = Column(Numeric(precision=15, scale=2), nullable=True)

    status = Column(String, nullable=False, default="pending")
    # Options: "pending", "partial", "paid", "overdue"

    is_auto_generated = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    contract = relationship("Contract", back_populates="obligations")
    apartment = relationship("Apartment")
    recurring_obligation = relationship("RecurringObligation", back_populates="obligations")
    payments = relationship(
        "ObligationPayment",
        back_populates="obligation",
        cascade="all, delete-orphan",
        order_by="ObligationPayment.payment_date.desc()",
    )

    __table_args__ = (
        Index("ix_obligations_user_period", "user_id", "period"),
        Index("ix_obligations_user_status", "user_id", "status"),
        Index("ix_obligations_contract_type_period", "contract_id", "type", "period"),
    )


class ObligationPayment(Base):
    """
    A payment applied to an obligation.

    Payments flagged `applied_to_owner_balance` were settled out of the
    owner's running balance instead of with fresh money.
    """

    __tablename__ = "obligation_payments"

    id = Column(String, primary_key=True, default=lambda: generate_id("opay"))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    obligation_id = Column(String, ForeignKey("obligations.id", ondelete="CASCADE"), nullable=False, index=True)

    amount = Column(Numeric(precision=15, scale=2), nullable=False)
    payment_date = Column(Date, nullable=False, index=True)
    method = Column(String, nullable=True)
    # Options: "cash", "transfer", "check", "card", "other", "owner_balance"
    reference = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    applied_to_owner_balance = Column(Boolean, nullable=False, default=False)
    owner_id = Column(String, ForeignKey("owners.id", ondelete="SET NULL"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    obligation = relationship("Obligation", back_populates="payments")
    owner = relationship("Owner")
