"""
Settlement Service - per-owner payout statements.

A settlement summarises, for one owner and one month, what the agency
collected on the owner's behalf and what it owes them:

    total_collected   = rent collected from tenants
    commission_amount = agency share of that rent
    deductions        = owner charges paid (taxes, repairs, ...)
    credits           = adjustments in the owner's favour
    owner_amount      = rent owner share + credits - deductions
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from inmodash.accounting.service import AccountingService
from inmodash.data.obligations.models import Obligation
from inmodash.data.owners.models import Owner
from inmodash.data.settlements.models import Settlement
from inmodash.services.distribution import ZERO, ObligationType, normalize_period, to_money
from inmodash.services.obligations import OWNER_LOAD_OPTIONS, resolve_owner_id

logger = logging.getLogger(__name__)

PENDING = "pending"
SETTLED = "settled"


@dataclass
class SettlementTotals:
    """Running totals for one owner while aggregating a period."""
    owner_id: str
    total_collected: Decimal = ZERO
    commission_amount: Decimal = ZERO
    rent_owner_share: Decimal = ZERO
    deductions: Decimal = ZERO
    credits: Decimal = ZERO

    @property
    def owner_amount(self) -> Decimal:
        return self.rent_owner_share + self.credits - self.deductions


def aggregate_settlements(obligations: Iterable[Any]) -> Dict[str, SettlementTotals]:
    """
    Group paid obligations by owner, scaled by how much of each was paid.

    Obligations whose owner cannot be resolved are skipped.
    """
    totals: Dict[str, SettlementTotals] = {}

    for obligation in obligations:
        amount = to_money(obligation.amount)
        paid = to_money(obligation.paid_amount)
        if amount <= 0 or paid <= 0:
            continue

        owner_id = resolve_owner_id(obligation)
        if owner_id is None:
            logger.warning(f"Obligation {obligation.id} has no owner, left out of settlements")
            continue

        owner_totals = totals.setdefault(owner_id, SettlementTotals(owner_id=owner_id))
        ratio = paid / amount

        if obligation.type == ObligationType.RENT.value:
            commission = to_money(to_money(obligation.agency_impact) * ratio)
            owner_totals.total_collected += paid
            owner_totals.commission_amount += commission
            owner_totals.rent_owner_share += paid - commission
        else:
            impact = to_money(to_money(obligation.owner_impact) * ratio)
            if impact < 0:
                owner_totals.deductions += -impact
            elif impact > 0:
                owner_totals.credits += impact

    return totals


class SettlementService:
    """Settlement statements of one agency account."""

    def __init__(self, db: AsyncSession, user_id: str):
        self.db = db
        self.user_id = user_id

    def _query(self):
        return (
            select(Settlement)
            .where(Settlement.user_id == self.user_id)
            .options(selectinload(Settlement.owner))
            .execution_options(populate_existing=True)
        )

    async def _all(self, query) -> List[Settlement]:
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_settlements(self) -> List[Settlement]:
        return await self._all(self._query().order_by(Settlement.period.desc(), Settlement.created_at.desc()))

    async def get_settlement(self, settlement_id: str) -> Optional[Settlement]:
        result = await self.db.execute(self._query().where(Settlement.id == settlement_id))
        return result.scalar_one_or_none()

    async def get_by_owner(self, owner_id: str) -> List[Settlement]:
        return await self._all(self._query().where(Settlement.owner_id == owner_id).order_by(Settlement.period.desc()))

    async def get_pending(self) -> List[Settlement]:
        return await self._all(self._query().where(Settlement.status == PENDING).order_by(Settlement.period.desc()))

    async def _get_for_period(self, owner_id: str, period: date) -> Optional[Settlement]:
        result = await self.db.execute(
            self._query().where(Settlement.owner_id == owner_id, Settlement.period == period)
        )
        return result.scalar_one_or_none()

    async def upsert_settlement(self, data: Dict[str, Any]) -> Settlement:
        """Create or replace the statement of an owner for a period."""
        period = normalize_period(data["period"])

        owner = await self.db.execute(
            select(Owner.id).where(Owner.id == data["owner_id"], Owner.user_id == self.user_id)
        )
        if owner.first() is None:
            raise ValueError("Owner not found")

        settlement = await self._get_for_period(data["owner_id"], period)
        if settlement is not None and settlement.status == SETTLED:
            raise ValueError("Settlement is already settled; mark it as pending before changing it")

        if settlement is None:
            settlement = Settlement(
                user_id=self.user_id,
                owner_id=data["owner_id"],
                period=period,
                status=PENDING,
            )
            self.db.add(settlement)

        settlement.total_collected = to_money(data.get("total_collected"))
        settlement.commission_amount = to_money(data.get("commission_amount"))
        settlement.deductions = to_money(data.get("deductions"))
        settlement.credits = to_money(data.get("credits"))
        settlement.owner_amount = to_money(data.get("owner_amount"))
        if data.get("notes") is not None:
            settlement.notes = data["notes"]

        await self.db.commit()
        return await self.get_settlement(settlement.id)

    async def mark_settled(self, settlement_id: str, data: Dict[str, Any]) -> Optional[Settlement]:
        """Mark as paid out and book the retained commission in the ledger."""
        settlement = await self.get_settlement(settlement_id)
        if settlement is None:
            return None
        if settlement.status == SETTLED:
            raise ValueError("Settlement is already settled")

        settlement.status = SETTLED
        settlement.settled_at = datetime.now(timezone.utc)
        settlement.payment_method = data.get("payment_method")
        settlement.reference = data.get("reference")
        if data.get("notes") is not None:
            settlement.notes = data["notes"]

        if to_money(settlement.commission_amount) > 0:
            owner_name = settlement.owner.name if settlement.owner is not None else settlement.owner_id
            await AccountingService(self.db, self.user_id).register_settlement_commission(settlement, owner_name)

        await self.db.commit()
        logger.info(f"Settlement {settlement.id} settled ({settlement.owner_amount} to owner {settlement.owner_id})")
        return await self.get_settlement(settlement.id)

    async def mark_pending(self, settlement_id: str) -> Optional[Settlement]:
        """Reopen a settlement and remove the commission booked for it."""
        settlement = await self.get_settlement(settlement_id)
        if settlement is None:
            return None

        settlement.status = PENDING
        settlement.settled_at = None
        settlement.payment_method = None
        settlement.reference = None
        await AccountingService(self.db, self.user_id).remove_settlement_commission(settlement.id)

        await self.db.commit()
        return await self.get_settlement(settlement.id)

    async def delete_settlement(self, settlement_id: str) -> bool:
        """Delete a statement; a settled one takes its booked commission with it."""
        settlement = await self.get_settlement(settlement_id)
        if settlement is None:
            return False
        if settlement.status == SETTLED:
            removed = await AccountingService(self.db, self.user_id).remove_settlement_commission(settlement.id)
            logger.info(f"Removed {removed} commission entries of deleted settlement {settlement.id}")
        await self.db.delete(settlement)
        await self.db.commit()
        return True

    async def calculate_for_period(self, period: date) -> Dict[str, Any]:
        """
        Build (or refresh) every owner's statement for the period from the
        obligations paid in it. Settled statements are left untouched.
        """
        period = normalize_period(period)

        result = await self.db.execute(
            select(Obligation)
            .where(
                Obligation.user_id == self.user_id,
                Obligation.period == period,
                Obligation.paid_amount > 0,
            )
            .options(*OWNER_LOAD_OPTIONS)
        )
        totals = aggregate_settlements(result.scalars().all())

        settlements: List[Settlement] = []
        skipped: List[str] = []
        for owner_id, owner_totals in sorted(totals.items()):
            settlement = await self._get_for_period(owner_id, period)
            if settlement is not None and settlement.status == SETTLED:
                skipped.append(owner_id)
                continue

            if settlement is None:
                settlement = Settlement(
                    user_id=self.user_id,
                    owner_id=owner_id,
                    period=period,
                    status=PENDING,
                )
                self.db.add(settlement)

            settlement.total_collected = owner_totals.total_collected
            settlement.commission_amount = owner_totals.commission_amount
            settlement.deductions = owner_totals.deductions
            settlement.credits = owner_totals.credits
            settlement.owner_amount = owner_totals.owner_amount
            settlements.append(settlement)

        # Pending statements of owners with nothing paid any more are emptied
        stale = await self._all(
            self._query().where(
                Settlement.period == period,
                Settlement.status == PENDING,
                Settlement.owner_id.notin_(list(totals)),
            )
        )
        for settlement in stale:
            settlement.total_collected = ZERO
            settlement.commission_amount = ZERO
            settlement.deductions = ZERO
            settlement.credits = ZERO
            settlement.owner_amount = ZERO
            settlements.append(settlement)

        await self.db.commit()
        for settlement in settlements:
            await self.db.refresh(settlement)
        logger.info(
            f"Calculated settlements for {period:%Y-%m} (user {self.user_id}): "
            f"{len(settlements)} updated, {len(skipped)} already settled"
        )
        return {
            "period": period.strftime("%Y-%m"),
            "settlements": settlements,
            "skipped_settled_owner_ids": skipped,
        }
