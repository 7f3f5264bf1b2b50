"""Lease contract model."""
from sqlalchemy import Column, String, DateTime, Date, Numeric, Integer, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from inmodash.database import Base
from inmodash.data.base import generate_id


class Contract(Base):
    """
    Lease contract between a tenant and the agency for one apartment.

    Drives the monthly rent obligations: the rent amount starts at
    `initial_amount` and is escalated every `update_frequency_months`
    according to `update_index_type`. The commission configuration decides
    how each rent payment is split between owner and agency.
    """

    __tablename__ = "contracts"

    id = Column(String, primary_key=True, default=lambda: generate_id("ctr"))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    apartment_id = Column(String, ForeignKey("apartments.id", ondelete="CASCADE"), nullable=False, index=True)
    tenant_id = Column(String, ForeignKey("tenants.id", ondelete="RESTRICT"), nullable=False, index=True)

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    initial_amount = Column(Numeric(precision=15, scale=2), nullable=False)

    # Agency commission
    commission_type = Column(String, nullable=True)  # "percentage" | "fixed"
    commission_value = Column(Numeric(precision=15, scale=2), nullable=True)

    # Rent escalation
    update_index_type = Column(String, nullable=False, default="none")
    # Options: "icl", "ipc", "fixed", "none"
    update_frequency_months = Column(Integer, nullable=True)
    initial_index_value = Column(Numeric(precision=18, scale=6), nullable=True)
    fixed_update_coefficient = Column(Numeric(precision=10, scale=6), nullable=True)

    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="contracts")
    apartment = relationship("Apartment", back_populates="contracts")
    tenant = relationship("Tenant", back_populates="contracts")
    obligations = relationship("Obligation", back_populates="contract", passive_deletes=True)
    guarantor_links = relationship(
        "ContractGuarantor", back_populates="contract", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        Index("ix_contracts_user_dates", "user_id", "start_date", "end_date"),
    )
