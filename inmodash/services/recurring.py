"""
Recurring Obligation Service - monthly templates for non-rent charges.

Rent is generated from contracts; everything else that repeats every month
(building expenses, insurance, municipal taxes, ...) is described by a
RecurringObligation template and materialised here one period at a time.
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from inmodash.data.contracts.models import Contract
from inmodash.data.obligations.models import Obligation
from inmodash.data.recurring.models import RecurringObligation
from inmodash.data.models import User
from inmodash.indices.client import RentIndexError, get_rent_index_client
from inmodash.services.distribution import (
    ZERO,
    ObligationType,
    PaidBy,
    calculate_distribution,
    calculate_status,
    clamp_day,
    month_bounds,
    normalize_period,
    to_money,
)
from inmodash.services.escalation import (
    compute_recurring_amount,
    recurring_needs_index,
)

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    "description", "category", "day_of_month", "end_date", "notes", "is_active",
    "paid_by", "commission_type", "commission_value",
)


class RecurringObligationService:
    """Templates of one agency account and their monthly generation."""

    def __init__(self, db: AsyncSession, user_id: str):
        self.db = db
        self.user_id = user_id

    def _query(self):
        return (
            select(RecurringObligation)
            .where(RecurringObligation.user_id == self.user_id)
            .options(
                selectinload(RecurringObligation.contract),
                selectinload(RecurringObligation.apartment),
            )
            .execution_options(populate_existing=True)
        )

    # ==========================================================================
    # CRUD
    # ==========================================================================

    async def list_recurring(self) -> List[RecurringObligation]:
        result = await self.db.execute(
            self._query().order_by(RecurringObligation.is_active.desc(), RecurringObligation.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_recurring(self, recurring_id: str) -> Optional[RecurringObligation]:
        result = await self.db.execute(self._query().where(RecurringObligation.id == recurring_id))
        return result.scalar_one_or_none()

    @staticmethod
    def _validate_day(day_of_month: int) -> None:
        if day_of_month < 1 or day_of_month > 31:
            raise ValueError("Day of month must be between 1 and 31")

    async def create_recurring(self, data: Dict[str, Any]) -> RecurringObligation:
        if not data.get("contract_id") and not data.get("apartment_id"):
            raise ValueError("A contract or an apartment is required")
        if data.get("type") == ObligationType.RENT.value:
            raise ValueError("Rent is generated from contracts and cannot be a recurring template")
        ObligationType(data["type"])
        self._validate_day(data["day_of_month"])

        if data.get("contract_id"):
            result = await self.db.execute(
                select(Contract.id).where(Contract.id == data["contract_id"], Contract.user_id == self.user_id)
            )
            if result.first() is None:
                raise ValueError("Contract not found")

        recurring = RecurringObligation(
            user_id=self.user_id,
            contract_id=data.get("contract_id"),
            apartment_id=data.get("apartment_id"),
            type=data["type"],
            category=data.get("category"),
            description=data["description"],
            amount=to_money(data["amount"]),
            day_of_month=data["day_of_month"],
            start_date=data["start_date"],
            end_date=data.get("end_date"),
            is_active=data.get("is_active", True),
            paid_by=data.get("paid_by") or PaidBy.TENANT.value,
            commission_type=data.get("commission_type"),
            commission_value=data.get("commission_value"),
            update_index_type=data.get("update_index_type") or "none",
            update_frequency_months=data.get("update_frequency_months"),
            initial_index_value=data.get("initial_index_value"),
            fixed_update_coefficient=data.get("fixed_update_coefficient"),
            periods_since_update=0,
            notes=data.get("notes"),
        )
        self.db.add(recurring)
        await self.db.commit()
        return await self.get_recurring(recurring.id)

    async def update_recurring(self, recurring_id: str, data: Dict[str, Any]) -> Optional[RecurringObligation]:
        recurring = await self.get_recurring(recurring_id)
        if recurring is None:
            return None

        if data.get("day_of_month") is not None:
            self._validate_day(data["day_of_month"])

        for field in UPDATABLE_FIELDS:
            if field in data and (data[field] is not None or field == "end_date"):
                setattr(recurring, field, data[field])
        if "amount" in data and data["amount"] is not None:
            recurring.amount = to_money(data["amount"])

        await self.db.commit()
        return await self.get_recurring(recurring.id)

    async def delete_recurring(self, recurring_id: str) -> bool:
        recurring = await self.get_recurring(recurring_id)
        if recurring is None:
            return False
        await self.db.delete(recurring)
        await self.db.commit()
        return True

    async def toggle_active(self, recurring_id: str) -> Optional[RecurringObligation]:
        recurring = await self.get_recurring(recurring_id)
        if recurring is None:
            return None
        recurring.is_active = not recurring.is_active
        await self.db.commit()
        logger.info(f"Recurring obligation {recurring.id} active={recurring.is_active}")
        return await self.get_recurring(recurring.id)

    # ==========================================================================
    # Generation
    # ==========================================================================

    async def _already_generated(self, recurring: RecurringObligation, period: date) -> bool:
        last = recurring.last_generated
        if last is not None and (last.year, last.month) == (period.year, period.month):
            return True
        result = await self.db.execute(
            select(Obligation.id).where(
                Obligation.recurring_obligation_id == recurring.id,
                Obligation.period == period,
            )
        )
        return result.first() is not None

    async def _generate_one(self, recurring: RecurringObligation, period: date) -> None:
        current_index = None
        if recurring_needs_index(recurring):
            try:
                current_index = (await get_rent_index_client().get_index(recurring.update_index_type)).value
            except RentIndexError as e:
                logger.warning(f"Index unavailable for recurring {recurring.id}, generating without update: {e}")

        escalation = compute_recurring_amount(recurring, current_index)
        amount = to_money(escalation.amount)

        description = recurring.description
        notes = recurring.notes
        if escalation.applied:
            description = f"{description} {escalation.describe(recurring.update_index_type)}"
            notes = "\n".join(n for n in (recurring.notes, escalation.note()) if n)

        distribution = calculate_distribution(
            recurring.type,
            amount,
            recurring.paid_by,
            recurring.commission_type,
            recurring.commission_value,
        )
        due_date = clamp_day(period.year, period.month, recurring.day_of_month)

        apartment_id = recurring.apartment_id
        if apartment_id is None and recurring.contract is not None:
            apartment_id = recurring.contract.apartment_id

        self.db.add(Obligation(
            user_id=self.user_id,
            contract_id=recurring.contract_id,
            apartment_id=apartment_id,
            recurring_obligation_id=recurring.id,
            type=recurring.type,
            category=recurring.category,
            description=description,
            period=period,
            due_date=due_date,
            amount=amount,
            paid_amount=ZERO,
            paid_by=recurring.paid_by,
            owner_impact=distribution.owner_impact,
            agency_impact=distribution.agency_impact,
            commission_amount=distribution.commission_amount,
            owner_amount=distribution.owner_amount,
            commission_type=recurring.commission_type,
            commission_value=recurring.commission_value,
            status=calculate_status(amount, ZERO, due_date),
            is_auto_generated=True,
            notes=notes,
        ))

        recurring.last_generated = period
        if recurring.update_frequency_months:
            if escalation.applied:
                recurring.periods_since_update = 0
                recurring.current_amount = amount
                recurring.last_update_applied = period
            else:
                recurring.periods_since_update = (recurring.periods_since_update or 0) + 1

    async def generate_for_month(self, month: date) -> Dict[str, Any]:
        """
        Materialise one obligation per active template overlapping the month.

        Returns {"generated", "skipped", "errors"}; a failing template is
        recorded in `errors` and the rest still generate.
        """
        period = normalize_period(month)
        first_day, last_day = month_bounds(period)

        result = await self.db.execute(
            self._query().where(
                RecurringObligation.is_active.is_(True),
                RecurringObligation.start_date <= last_day,
                or_(RecurringObligation.end_date.is_(None), RecurringObligation.end_date >= first_day),
            )
        )
        templates = list(result.scalars().all())

        generated = 0
        skipped = 0
        errors: List[Dict[str, str]] = []

        for recurring in templates:
            try:
                if await self._already_generated(recurring, period):
                    skipped += 1
                    continue
                async with self.db.begin_nested():
                    await self._generate_one(recurring, period)
                generated += 1
            except Exception as e:
                logger.error(f"Error generating recurring obligation {recurring.id}: {e}")
                errors.append({"recurring_obligation_id": recurring.id, "error": str(e)})

        await self.db.commit()
        return {"generated": generated, "skipped": skipped, "errors": errors}


async def generate_pending(db: AsyncSession, today: Optional[date] = None) -> Dict[str, Any]:
    """
    Generate the current month for every account with active contracts or
    active recurring templates. Used by the monthly scheduler job.
    """
    from inmodash.services.obligations import ObligationService

    period = normalize_period(today or date.today())
    first_day, last_day = month_bounds(period)

    result = await db.execute(
        select(User.id).where(
            or_(
                User.contracts.any(
                    (Contract.start_date <= last_day) & (Contract.end_date >= first_day)
                ),
                User.recurring_obligations.any(RecurringObligation.is_active.is_(True)),
            )
        )
    )
    user_ids = [row[0] for row in result.all()]

    summary: Dict[str, Any] = {
        "month": period.strftime("%Y-%m"),
        "total_generated": 0,
        "total_skipped": 0,
        "total_errors": 0,
        "user_results": [],
    }

    for user_id in user_ids:
        try:
            user_result = await ObligationService(db, user_id).generate_obligations(period)
            summary["total_generated"] += user_result["generated"]
            summary["total_skipped"] += user_result["skipped"]
            summary["total_errors"] += len(user_result["errors"])
            summary["user_results"].append({"user_id": user_id, **user_result})
        except Exception as e:
            await db.rollback()
            logger.error(f"Obligation generation failed for user {user_id}: {e}")
            summary["total_errors"] += 1
            summary["user_results"].append({"user_id": user_id, "error": str(e)})

    logger.info(
        f"Pending generation for {summary['month']}: {summary['total_generated']} generated, "
        f"{summary['total_skipped']} skipped, {summary['total_errors']} errors"
    )
    return summary
