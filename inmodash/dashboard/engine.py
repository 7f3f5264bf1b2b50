"""
Dashboard Engine - headline numbers for one agency account.

Computes on the fly from the current data:
1. Inventory: buildings, units by status, tenants, owners, guarantors
2. Obligations: open and overdue charges, money collected this month
3. Alerts: contracts about to expire and obligations due soon or overdue
"""
from datetime import date, timedelta
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from inmodash.accounting.models import AccountingEntry
from inmodash.config import settings
from inmodash.dashboard.schemas import (
    DashboardAlerts,
    DashboardStats,
    ExpiringContract,
    InventoryStats,
    ObligationAlert,
    ObligationStats,
)
from inmodash.data.contracts.models import Contract
from inmodash.data.guarantors.models import Guarantor
from inmodash.data.obligations.models import Obligation, ObligationPayment
from inmodash.data.owners.models import Owner
from inmodash.data.properties.models import Apartment, Building
from inmodash.data.tenants.models import Tenant
from inmodash.services.distribution import ObligationStatus, month_bounds, to_money
from inmodash.services.obligations import OPEN_STATUSES


async def _count(db: AsyncSession, model, *conditions) -> int:
    result = await db.execute(select(func.count()).select_from(model).where(*conditions))
    return result.scalar_one()


async def _sum(db: AsyncSession, column, *conditions):
    result = await db.execute(select(func.coalesce(func.sum(column), 0)).where(*conditions))
    return to_money(result.scalar_one())


# =============================================================================
# Inventory
# =============================================================================

async def calculate_inventory(db: AsyncSession, user_id: str) -> InventoryStats:
    owned = Apartment.user_id == user_id
    return InventoryStats(
        total_buildings=await _count(db, Building, Building.user_id == user_id),
        total_apartments=await _count(db, Apartment, owned),
        available_apartments=await _count(db, Apartment, owned, Apartment.status == "available"),
        rented_apartments=await _count(db, Apartment, owned, Apartment.status == "rented"),
        independent_apartments=await _count(db, Apartment, owned, Apartment.building_id.is_(None)),
        total_area=await _sum(db, Apartment.area, owned),
        total_tenants=await _count(db, Tenant, Tenant.user_id == user_id),
        total_owners=await _count(db, Owner, Owner.user_id == user_id),
        total_guarantors=await _count(db, Guarantor, Guarantor.user_id == user_id, Guarantor.is_active.is_(True)),
    )


# =============================================================================
# Obligations
# =============================================================================

async def calculate_obligation_stats(db: AsyncSession, user_id: str, today: date) -> ObligationStats:
    first_day, last_day = month_bounds(today)
    mine = Obligation.user_id == user_id

    return ObligationStats(
        pending_obligations=await _count(
            db, Obligation, mine,
            Obligation.status.in_((ObligationStatus.PENDING.value, ObligationStatus.PARTIAL.value)),
        ),
        overdue_obligations=await _count(db, Obligation, mine, Obligation.status == ObligationStatus.OVERDUE.value),
        pending_amount=await _sum(
            db, Obligation.amount - Obligation.paid_amount, mine, Obligation.status.in_(OPEN_STATUSES)
        ),
        # Fresh money only; payments out of an owner's balance collect nothing
        collected_this_month=await _sum(
            db,
            ObligationPayment.amount,
            ObligationPayment.user_id == user_id,
            ObligationPayment.applied_to_owner_balance.is_(False),
            ObligationPayment.payment_date >= first_day,
            ObligationPayment.payment_date <= last_day,
        ),
        commissions_this_month=await _sum(
            db,
            AccountingEntry.amount,
            AccountingEntry.user_id == user_id,
            AccountingEntry.type == "commission",
            AccountingEntry.entry_date >= first_day,
            AccountingEntry.entry_date <= last_day,
        ),
        owner_balances_total=await _sum(db, Owner.balance, Owner.user_id == user_id),
    )


# =============================================================================
# Alerts
# =============================================================================

async def calculate_alerts(db: AsyncSession, user_id: str, today: date) -> DashboardAlerts:
    expiry_limit = today + timedelta(days=settings.CONTRACT_EXPIRY_ALERT_DAYS)
    due_limit = today + timedelta(days=settings.DUE_SOON_ALERT_DAYS)

    contracts = await db.execute(
        select(Contract)
        .where(Contract.user_id == user_id, Contract.end_date >= today, Contract.end_date <= expiry_limit)
        .order_by(Contract.end_date.asc())
    )
    expiring = [
        ExpiringContract(
            contract_id=c.id,
            apartment_id=c.apartment_id,
            end_date=c.end_date,
            days_until_expiry=(c.end_date - today).days,
        )
        for c in contracts.scalars().all()
    ]

    obligations = await db.execute(
        select(Obligation)
        .where(
            Obligation.user_id == user_id,
            Obligation.status.in_(OPEN_STATUSES),
            Obligation.due_date <= due_limit,
        )
        .order_by(Obligation.due_date.asc())
    )
    due_soon, overdue = [], []
    for obligation in obligations.scalars().all():
        days = (obligation.due_date - today).days
        alert = ObligationAlert(
            obligation_id=obligation.id,
            description=obligation.description,
            due_date=obligation.due_date,
            remaining=to_money(obligation.amount) - to_money(obligation.paid_amount),
            days=abs(days),
        )
        (overdue if days < 0 else due_soon).append(alert)

    return DashboardAlerts(expiring_contracts=expiring, due_soon=due_soon, overdue=overdue)


async def calculate_dashboard_stats(
    db: AsyncSession,
    user_id: str,
    today: Optional[date] = None,
) -> DashboardStats:
    """Every dashboard section for one account, as of `today`."""
    today = today or date.today()
    active_contracts = await _count(
        db, Contract, Contract.user_id == user_id, Contract.start_date <= today, Contract.end_date >= today
    )
    return DashboardStats(
        as_of=today,
        active_contracts=active_contracts,
        inventory=await calculate_inventory(db, user_id),
        obligations=await calculate_obligation_stats(db, user_id, today),
        alerts=await calculate_alerts(db, user_id, today),
    )
