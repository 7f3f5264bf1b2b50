"""Owner model - property owners the agency settles with."""
from sqlalchemy import Column, String, DateTime, Numeric, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from inmodash.database import Base
from inmodash.data.base import generate_id


class Owner(Base):
    """
    Property owner.

    `balance` is the running amount held by the agency in favour of the owner:
    it grows as tenants pay rent and shrinks when the owner's own debts are
    paid out of it.
    """

    __tablename__ = "owners"

    id = Column(String, primary_key=True, default=lambda: generate_id("owner"))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String, nullable=False)
    dni_or_cuit = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)
    address = Column(String, nullable=True)
    bank_account = Column(String, nullable=True)

    balance = Column(Numeric(precision=15, scale=2), nullable=False, default=0)

    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="owners")
    buildings = relationship("Building", back_populates="owner")
    apartments = relationship("Apartment", back_populates="owner")
    settlements = relationship("Settlement", back_populates="owner", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_owners_user_name", "user_id", "name"),
    )
