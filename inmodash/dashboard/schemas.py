"""Pydantic schemas for dashboard API responses."""
from datetime import date
from decimal import Decimal
from typing import List

from pydantic import BaseModel


class InventoryStats(BaseModel):
    total_buildings: int
    total_apartments: int
    available_apartments: int
    rented_apartments: int
    independent_apartments: int  # Not inside a building
    total_area: Decimal
    total_tenants: int
    total_owners: int
    total_guarantors: int


class ObligationStats(BaseModel):
    pending_obligations: int  # Pending or partially paid, not yet overdue
    overdue_obligations: int
    pending_amount: Decimal  # Still to collect on every open obligation
    collected_this_month: Decimal
    commissions_this_month: Decimal
    owner_balances_total: Decimal


class ExpiringContract(BaseModel):
    contract_id: str
    apartment_id: str
    end_date: date
    days_until_expiry: int


class ObligationAlert(BaseModel):
    obligation_id: str
    description: str
    due_date: date
    remaining: Decimal
    days: int  # Until due (due soon) or since due (overdue)


class DashboardAlerts(BaseModel):
    expiring_contracts: List[ExpiringContract]
    due_soon: List[ObligationAlert]
    overdue: List[ObligationAlert]


class DashboardStats(BaseModel):
    as_of: date
    active_contracts: int
    inventory: InventoryStats
    obligations: ObligationStats
    alerts: DashboardAlerts
