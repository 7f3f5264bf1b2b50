"""Recurring obligation templates."""
from sqlalchemy import Column, String, DateTime, Date, Numeric, Boolean, Integer, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from inmodash.database import Base
from inmodash.data.base import generate_id


class RecurringObligation(Base):
    """
    Template that materialises one Obligation per month.

    `amount` is the base amount; `current_amount` tracks the escalated value
    once an update has been applied. `periods_since_update` counts the months
    generated since the last escalation.
    """

    __tablename__ = "recurring_obligations"

    id = Column(String, primary_key=True, default=lambda: generate_id("recur"))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    contract_id = Column(String, ForeignKey("contracts.id", ondelete="CASCADE"), nullable=True, index=True)
    apartment_id = Column(String, ForeignKey("apartments.id", ondelete="CASCADE"), nullable=True, index=True)

    type = Column(String, nullable=False)
    category = Column(String, nullable=True)
    description = Column(String, nullable=False)

    amount = Column(Numeric(precision=15, scale=2), nullable=False)
    current_amount = Column(Numeric(precision=15, scale=2), nullable=True)
    day_of_month = Column(Integer, nullable=False)

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)  # Null = ongoing
    is_active = Column(Boolean, nullable=False, default=True)

    # Distribution
    paid_by = Column(String, nullable=False, default="tenant")
    commission_type = Column(String, nullable=True)
    commission_value = Column(Numeric(precision=15, scale=2), nullable=True)

    # Escalation
    update_index_type = Column(String, nullable=False, default="none")  # "icl" | "ipc" | "fixed" | "none"
    update_frequency_months = Column(Integer, nullable=True)
    initial_index_value = Column(Numeric(precision=18, scale=6), nullable=True)
    fixed_update_coefficient = Column(Numeric(precision=10, scale=6), nullable=True)
    periods_since_update = Column(Integer, nullable=False, default=0)
    last_update_applied = Column(Date, nullable=True)

    last_generated = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="recurring_obligations")
    contract = relationship("Contract")
    apartment = relationship("Apartment")
    obligations = relationship("Obligation", back_populates="recurring_obligation")
