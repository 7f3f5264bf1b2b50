"""Tenant model."""
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from inmodash.database import Base
from inmodash.data.base import generate_id


class Tenant(Base):
    """A person or business renting one or more units."""

    __tablename__ = "tenants"

    id = Column(String, primary_key=True, default=lambda: generate_id("tenant"))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    name_or_business = Column(String, nullable=False)
    dni_or_cuit = Column(String, nullable=True)
    address = Column(String, nullable=True)

    contact_name = Column(String, nullable=True)
    contact_phone = Column(String, nullable=True)
    contact_email = Column(String, nullable=True)
    contact_address = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    contracts = relationship("Contract", back_populates="tenant")
