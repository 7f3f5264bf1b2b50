"""Building and apartment inventory models."""
from sqlalchemy import Column, String, DateTime, Numeric, Integer, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from inmodash.database import Base
from inmodash.data.base import generate_id


class Building(Base):
    """A building holding one or more apartments."""

    __tablename__ = "buildings"

    id = Column(String, primary_key=True, default=lambda: generate_id("bldg"))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String, nullable=False)
    address = Column(String, nullable=False)
    city = Column(String, nullable=True)
    province = Column(String, nullable=True)
    floors = Column(Integer, nullable=True)
    total_area = Column(Numeric(precision=10, scale=2), nullable=True)

    # Owner of the whole building; apartments without their own owner inherit it
    owner_id = Column(String, ForeignKey("owners.id", ondelete="SET NULL"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    owner = relationship("Owner", back_populates="buildings")
    apartments = relationship("Apartment", back_populates="building", cascade="all, delete-orphan")


class Apartment(Base):
    """A rentable unit, either inside a building or standalone."""

    __tablename__ = "apartments"

    id = Column(String, primary_key=True, default=lambda: generate_id("apt"))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Building units
    building_id = Column(String, ForeignKey("buildings.id", ondelete="CASCADE"), nullable=True, index=True)
    floor = Column(Integer, nullable=True)
    apartment_letter = Column(String, nullable=True)
    nomenclature = Column(String, nullable=False)

    # Standalone units
    full_address = Column(String, nullable=True)
    city = Column(String, nullable=True)
    province = Column(String, nullable=True)

    owner_id = Column(String, ForeignKey("owners.id", ondelete="SET NULL"), nullable=True, index=True)

    property_type = Column(String, nullable=False, default="apartment")
    # Options: "apartment", "house", "commercial", "office", "parking", "land"
    area = Column(Numeric(precision=10, scale=2), nullable=True)
    rooms = Column(Integer, nullable=True)
    status = Column(String, nullable=False, default="available")
    # Options: "available", "rented", "under_renovation", "personal_use"
    specifications = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    building = relationship("Building", back_populates="apartments")
    owner = relationship("Owner", back_populates="apartments")
    contracts = relationship("Contract", back_populates="apartment")
