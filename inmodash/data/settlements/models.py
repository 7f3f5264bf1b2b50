"""Owner settlement statements."""
from sqlalchemy import Column, String, DateTime, Date, Numeric, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from inmodash.database import Base
from inmodash.data.base import generate_id


class Settlement(Base):
    """
    Per-owner, per-period payout statement.

    owner_amount = rent owner share + credits - deductions, and
    total_collected = rent owner share + commission_amount.
    """

    __tablename__ = "settlements"

    id = Column(String, primary_key=True, default=lambda: generate_id("stl"))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    owner_id = Column(String, ForeignKey("owners.id", ondelete="CASCADE"), nullable=False, index=True)

    period = Column(Date, nullable=False)

    total_collected = Column(Numeric(precision=15, scale=2), nullable=False, default=0)
    commission_amount = Column(Numeric(precision=15, scale=2), nullable=False, default=0)
    deductions = Column(Numeric(precision=15, scale=2), nullable=False, default=0)
    credits = Column(Numeric(precision=15, scale=2), nullable=False, default=0)
    owner_amount = Column(Numeric(precision=15, scale=2), nullable=False, default=0)

    status = Column(String, nullable=False, default="pending")  # "pending" | "settled"
    settled_at = Column(DateTime(timezone=True), nullable=True)
    payment_method = Column(String, nullable=True)
    reference = Column(String, nullable=True)

    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    owner = relationship("Owner", back_populates="settlements")

    __table_args__ = (
        UniqueConstraint("user_id", "owner_id", "period", name="uq_settlements_user_owner_period"),
    )
