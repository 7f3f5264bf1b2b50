"""Agency accounting ledger."""
from sqlalchemy import Column, String, DateTime, Date, Numeric, ForeignKey, Index, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from inmodash.database import Base
from inmodash.data.base import generate_id


class AccountingEntry(Base):
    """
    A line in the agency's own books.

    Commission entries are written when a settlement is paid out to the
    owner and removed again if the settlement is reopened.
    """

    __tablename__ = "accounting_entries"

    id = Column(String, primary_key=True, default=lambda: generate_id("entry"))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    type = Column(String, nullable=False)
    # Options: "commission", "commission_service", "expense", "income_other", "adjustment"
    description = Column(String, nullable=False)
    amount = Column(Numeric(precision=15, scale=2), nullable=False)
    entry_date = Column(Date, nullable=False, index=True)
    period = Column(Date, nullable=False)

    settlement_id = Column(String, ForeignKey("settlements.id", ondelete="SET NULL"), nullable=True, index=True)
    owner_id = Column(String, ForeignKey("owners.id", ondelete="SET NULL"), nullable=True, index=True)
    contract_id = Column(String, ForeignKey("contracts.id", ondelete="SET NULL"), nullable=True)
    obligation_id = Column(String, ForeignKey("obligations.id", ondelete="SET NULL"), nullable=True)

    # Renamed from 'metadata' which is reserved in SQLAlchemy
    extra_data = Column("extra_data", JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    owner = relationship("Owner")
    settlement = relationship("Settlement")

    __table_args__ = (
        Index("ix_accounting_entries_user_type", "user_id", "type"),
    )
