"""Guarantor models."""
from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from inmodash.database import Base
from inmodash.data.base import generate_id


class Guarantor(Base):
    """
    A person guaranteeing one or more lease contracts.

    Deleting a guarantor only deactivates it; contracts keep the link so
    their history stays readable.
    """

    __tablename__ = "guarantors"

    id = Column(String, primary_key=True, default=lambda: generate_id("gtr"))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String, nullable=False)
    dni = Column(String, nullable=True)
    address = Column(String, nullable=True)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    contract_links = relationship("ContractGuarantor", back_populates="guarantor", cascade="all, delete-orphan")


class ContractGuarantor(Base):
    """Link between a contract and one of its guarantors."""

    __tablename__ = "contract_guarantors"

    id = Column(String, primary_key=True, default=lambda: generate_id("cgtr"))
    contract_id = Column(String, ForeignKey("contracts.id", ondelete="CASCADE"), nullable=False, index=True)
    guarantor_id = Column(String, ForeignKey("guarantors.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    contract = relationship("Contract", back_populates="guarantor_links")
    guarantor = relationship("Guarantor", back_populates="contract_links")

    __table_args__ = (
        UniqueConstraint("contract_id", "guarantor_id", name="uq_contract_guarantor"),
    )
