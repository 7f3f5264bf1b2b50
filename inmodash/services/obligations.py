"""
Obligation Service - billable charges, their payments and owner balances.

Data Flow:
    Contract (rent config) / RecurringObligation (template)
                ↓
    Obligation (one charge per period, with owner/agency impacts)
                ↓
    ObligationPayment (money actually received)
                ↓
    Owner.balance / Settlement (what the agency owes each owner)
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from inmodash.config import settings
from inmodash.data.contracts.models import Contract
from inmodash.data.obligations.models import Obligation, ObligationPayment
from inmodash.data.owners.models import Owner
from inmodash.data.properties.models import Apartment
from inmodash.indices.client import RentIndexError, get_rent_index_client
from inmodash.services.distribution import (
    ZERO,
    ObligationStatus,
    ObligationType,
    PaidBy,
    calculate_distribution,
    calculate_status,
    clamp_day,
    month_bounds,
    normalize_period,
    owner_share_of_payment,
    to_money,
    validate_manual_distribution,
)
from inmodash.services.escalation import compute_contract_rent, contract_needs_index

logger = logging.getLogger(__name__)

OPEN_STATUSES = (
    ObligationStatus.PENDING.value,
    ObligationStatus.PARTIAL.value,
    ObligationStatus.OVERDUE.value,
)

# Everything needed to resolve the owner of an obligation without lazy loads
OWNER_LOAD_OPTIONS = (
    selectinload(Obligation.contract).selectinload(Contract.apartment).selectinload(Apartment.building),
    selectinload(Obligation.apartment).selectinload(Apartment.building),
)


def resolve_owner_id(obligation) -> Optional[str]:
    """
    Owner an obligation belongs to.

    Checked in order: the contract's apartment owner, that apartment's
    building owner, the obligation's own apartment owner, then its building
    owner. Relationships must already be loaded.
    """
    apartments = []
    contract = getattr(obligation, "contract", None)
    if contract is not None and contract.apartment is not None:
        apartments.append(contract.apartment)
    if getattr(obligation, "apartment", None) is not None:
        apartments.append(obligation.apartment)

    for apartment in apartments:
        if apartment.owner_id:
            return apartment.owner_id
        if apartment.building is not None and apartment.building.owner_id:
            return apartment.building.owner_id
    return None


class ObligationService:
    """
    Service for obligations and obligation payments of one agency account.

    This service handles:
    1. Obligation CRUD with automatic owner/agency distribution
    2. Payments and the owner balance movements they cause
    3. Monthly generation of rent and recurring obligations
    4. Rebuilding owner balances from payment history
    """

    def __init__(self, db: AsyncSession, user_id: str):
        self.db = db
        self.user_id = user_id

    # ==========================================================================
    # Queries
    # ==========================================================================

    def _obligation_query(self):
        return (
            select(Obligation)
            .where(Obligation.user_id == self.user_id)
            .options(selectinload(Obligation.payments), *OWNER_LOAD_OPTIONS)
            .execution_options(populate_existing=True)
        )

    async def _all(self, query) -> List[Any]:
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_obligations(self) -> List[Obligation]:
        return await self._all(self._obligation_query().order_by(Obligation.due_date.asc()))

    async def get_obligation(self, obligation_id: str) -> Optional[Obligation]:
        result = await self.db.execute(
            self._obligation_query().where(Obligation.id == obligation_id)
        )
        return result.scalar_one_or_none()

    async def get_by_contract(self, contract_id: str) -> List[Obligation]:
        return await self._all(
            self._obligation_query()
            .where(Obligation.contract_id == contract_id)
            .order_by(Obligation.period.desc())
        )

    async def get_by_type(self, obligation_type: str) -> List[Obligation]:
        return await self._all(
            self._obligation_query()
            .where(Obligation.type == obligation_type)
            .order_by(Obligation.due_date.asc())
        )

    async def get_pending(self) -> List[Obligation]:
        """Obligations still awaiting (full) payment, soonest first."""
        return await self._all(
            self._obligation_query()
            .where(Obligation.status.in_(OPEN_STATUSES))
            .order_by(Obligation.due_date.asc())
        )

    async def get_overdue(self) -> List[Obligation]:
        return await self._all(
            self._obligation_query()
            .where(Obligation.status == ObligationStatus.OVERDUE.value)
            .order_by(Obligation.due_date.asc())
        )

    async def _get_contract(self, contract_id: str) -> Optional[Contract]:
        result = await self.db.execute(
            select(Contract).where(Contract.id == contract_id, Contract.user_id == self.user_id)
        )
        return result.scalar_one_or_none()

    async def _active_contract_for_apartment(self, apartment_id: str, on: date) -> Optional[Contract]:
        result = await self.db.execute(
            select(Contract)
            .where(
                Contract.user_id == self.user_id,
                Contract.apartment_id == apartment_id,
                Contract.start_date <= on,
                Contract.end_date >= on,
            )
            .order_by(Contract.start_date.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def _get_owner(self, owner_id: str) -> Optional[Owner]:
        result = await self.db.execute(
            select(Owner).where(Owner.id == owner_id, Owner.user_id == self.user_id)
        )
        return result.scalar_one_or_none()

    # ==========================================================================
    # Obligation CRUD
    # ==========================================================================

    async def create_obligation(self, data: Dict[str, Any]) -> Obligation:
        """
        Create an obligation and derive its distribution.

        Manual impacts win when either one is supplied (debts, adjustments);
        otherwise the distribution rules apply, with rent falling back to the
        contract's commission configuration.
        """
        contract_id = data.get("contract_id")
        apartment_id = data.get("apartment_id")
        contract = None

        if contract_id:
            contract = await self._get_contract(contract_id)
            if contract is None:
                raise ValueError("Contract not found")
            apartment_id = apartment_id or contract.apartment_id
        elif apartment_id:
            contract = await self._active_contract_for_apartment(apartment_id, date.today())
            if contract is not None:
                contract_id = contract.id
                logger.info(f"Attached obligation to active contract {contract.id} of apartment {apartment_id}")

        amount = to_money(data["amount"])
        obligation_type = ObligationType(data["type"]).value
        paid_by = data.get("paid_by") or PaidBy.TENANT.value

        commission_type = data.get("commission_type")
        commission_value = data.get("commission_value")
        if contract is not None and commission_type is None:
            commission_type = contract.commission_type
            commission_value = contract.commission_value

        if data.get("owner_impact") is not None or data.get("agency_impact") is not None:
            owner_impact, agency_impact = validate_manual_distribution(
                amount, data.get("owner_impact"), data.get("agency_impact")
            )
            commission_amount = to_money(data.get("commission_amount"))
            owner_amount = to_money(data.get("owner_amount"))
        else:
            distribution = calculate_distribution(
                obligation_type, amount, paid_by, commission_type, commission_value
            )
            owner_impact = distribution.owner_impact
            agency_impact = distribution.agency_impact
            commission_amount = distribution.commission_amount
            owner_amount = distribution.owner_amount

        paid_amount = to_money(data.get("paid_amount"))
        if paid_amount > amount:
            raise ValueError(f"Paid amount ({paid_amount}) exceeds the obligation amount ({amount})")
        due_date = data["due_date"]
        status = data.get("status") or calculate_status(amount, paid_amount, due_date)

        obligation = Obligation(
            user_id=self.user_id,
            contract_id=contract_id,
            apartment_id=apartment_id,
            recurring_obligation_id=data.get("recurring_obligation_id"),
            type=obligation_type,
            category=data.get("category"),
            description=data["description"],
            period=normalize_period(data["period"]),
            due_date=due_date,
            amount=amount,
            paid_amount=paid_amount,
            paid_by=paid_by,
            owner_impact=owner_impact,
            agency_impact=agency_impact,
            commission_amount=commission_amount,
            owner_amount=owner_amount,
            commission_type=commission_type,
            commission_value=to_money(commission_value) if commission_value is not None else None,
            status=status,
            is_auto_generated=bool(data.get("is_auto_generated", False)),
            notes=data.get("notes"),
        )
        self.db.add(obligation)
        await self.db.flush()

        # Charges created already paid (adjustments, credits) keep a payment trail
        if status == ObligationStatus.PAID.value and paid_amount > 0:
            self.db.add(ObligationPayment(
                user_id=self.user_id,
                obligation_id=obligation.id,
                amount=paid_amount,
                payment_date=date.today(),
                method="other",
                notes="Automatic adjustment",
            ))

        await self.db.commit()
        return await self.get_obligation(obligation.id)

    async def update_obligation(self, obligation_id: str, data: Dict[str, Any]) -> Optional[Obligation]:
        """Apply a partial update; the status is always recomputed."""
        obligation = await self.get_obligation(obligation_id)
        if obligation is None:
            return None

        for field in ("description", "due_date", "notes", "category"):
            if data.get(field) is not None:
                setattr(obligation, field, data[field])

        amount_changed = data.get("amount") is not None
        if amount_changed:
            new_amount = to_money(data["amount"])
            if new_amount < (obligation.paid_amount or ZERO):
                raise ValueError("Amount cannot be lower than the amount already paid")
            obligation.amount = new_amount

        if data.get("paid_by") is not None:
            obligation.paid_by = data["paid_by"]

        distribution_changed = amount_changed or data.get("paid_by") is not None
        if distribution_changed:
            commission_type = obligation.commission_type
            commission_value = obligation.commission_value
            if commission_type is None and obligation.contract is not None:
                commission_type = obligation.contract.commission_type
                commission_value = obligation.contract.commission_value
            distribution = calculate_distribution(
                obligation.type, obligation.amount, obligation.paid_by, commission_type, commission_value
            )
            obligation.owner_impact = distribution.owner_impact
            obligation.agency_impact = distribution.agency_impact
            obligation.commission_amount = distribution.commission_amount
            obligation.owner_amount = distribution.owner_amount

        if data.get("owner_impact") is not None or data.get("agency_impact") is not None:
            owner_impact, agency_impact = validate_manual_distribution(
                obligation.amount,
                data["owner_impact"] if data.get("owner_impact") is not None else obligation.owner_impact,
                data["agency_impact"] if data.get("agency_impact") is not None else obligation.agency_impact,
            )
            obligation.owner_impact = owner_impact
            obligation.agency_impact = agency_impact

        obligation.status = calculate_status(obligation.amount, obligation.paid_amount, obligation.due_date)
        await self.db.commit()

        # Payments already credited the owner with the old split
        if distribution_changed:
            await self._recalculate_owners(self._owners_of(obligation))
        return await self.get_obligation(obligation.id)

    async def delete_obligation(self, obligation_id: str) -> bool:
        """Delete an obligation with its payments and rebuild the balances they moved."""
        obligation = await self.get_obligation(obligation_id)
        if obligation is None:
            return False
        owner_ids = self._owners_of(obligation)
        await self.db.delete(obligation)
        await self.db.commit()
        await self._recalculate_owners(owner_ids)
        return True

    async def mark_overdue(self, today: Optional[date] = None) -> int:
        """Flag every pending/partial obligation past its due date. Returns the count."""
        today = today or date.today()
        result = await self.db.execute(
            update(Obligation)
            .where(
                Obligation.user_id == self.user_id,
                Obligation.status.in_((ObligationStatus.PENDING.value, ObligationStatus.PARTIAL.value)),
                Obligation.due_date < today,
            )
            .values(status=ObligationStatus.OVERDUE.value)
        )
        await self.db.commit()
        return result.rowcount or 0

    # ==========================================================================
    # Payments
    # ==========================================================================

    def _payment_query(self):
        return (
            select(ObligationPayment)
            .where(ObligationPayment.user_id == self.user_id)
            .order_by(ObligationPayment.payment_date.desc())
        )

    async def list_payments(self) -> List[ObligationPayment]:
        return await self._all(self._payment_query())

    async def get_payment(self, payment_id: str) -> Optional[ObligationPayment]:
        result = await self.db.execute(
            self._payment_query().where(ObligationPayment.id == payment_id)
        )
        return result.scalar_one_or_none()

    async def get_payments_by_obligation(self, obligation_id: str) -> List[ObligationPayment]:
        return await self._all(self._payment_query().where(ObligationPayment.obligation_id == obligation_id))

    async def get_payments_by_contract(self, contract_id: str) -> List[ObligationPayment]:
        return await self._all(
            self._payment_query()
            .join(Obligation, ObligationPayment.obligation_id == Obligation.id)
            .where(Obligation.contract_id == contract_id)
        )

    async def create_payment(self, data: Dict[str, Any]) -> Optional[ObligationPayment]:
        """
        Record a payment against an obligation.

        A payment taken from the owner's balance decrements it; a tenant
        paying a charge with an owner share credits the owner's balance with
        the proportional part of that share.
        """
        obligation = await self.get_obligation(data["obligation_id"])
        if obligation is None:
            return None

        amount = to_money(data["amount"])
        if amount <= 0:
            raise ValueError("Payment amount must be greater than 0")
        remaining = to_money(obligation.amount) - to_money(obligation.paid_amount)
        if amount > remaining:
            raise ValueError(f"Payment amount ({amount}) exceeds remaining amount ({remaining})")

        applied_to_balance = bool(data.get("applied_to_owner_balance"))
        balance_owner = None
        if applied_to_balance:
            owner_id = data.get("owner_id") or resolve_owner_id(obligation)
            if not owner_id:
                raise ValueError("An owner is required to pay from the owner balance")
            balance_owner = await self._get_owner(owner_id)
            if balance_owner is None:
                raise ValueError("Owner not found")
            if to_money(balance_owner.balance) < amount:
                raise ValueError(
                    f"Insufficient owner balance. Available: {to_money(balance_owner.balance)}"
                )

        payment = ObligationPayment(
            user_id=self.user_id,
            obligation_id=obligation.id,
            amount=amount,
            payment_date=data["payment_date"],
            method="owner_balance" if applied_to_balance else data.get("method"),
            reference=data.get("reference"),
            notes=data.get("notes"),
            applied_to_owner_balance=applied_to_balance,
            owner_id=balance_owner.id if balance_owner is not None else None,
        )
        self.db.add(payment)

        obligation.paid_amount = to_money(obligation.paid_amount) + amount
        obligation.status = calculate_status(obligation.amount, obligation.paid_amount, obligation.due_date)

        if balance_owner is not None:
            balance_owner.balance = to_money(balance_owner.balance) - amount
            logger.info(f"Owner {balance_owner.id} balance debited {amount} for obligation {obligation.id}")

        if obligation.paid_by == PaidBy.TENANT.value and to_money(obligation.owner_amount) > 0:
            share = owner_share_of_payment(obligation, amount)
            owner_id = resolve_owner_id(obligation)
            if owner_id and share > 0:
                owner = balance_owner if balance_owner is not None and balance_owner.id == owner_id else await self._get_owner(owner_id)
                if owner is not None:
                    owner.balance = to_money(owner.balance) + share
                    logger.info(f"Owner {owner.id} balance credited {share} for obligation {obligation.id}")

        await self.db.commit()
        await self.db.refresh(payment)
        return payment

    def _refresh_paid_amount(self, obligation: Obligation, total_paid: Decimal) -> None:
        obligation.paid_amount = to_money(total_paid)
        obligation.status = calculate_status(obligation.amount, obligation.paid_amount, obligation.due_date)

    async def update_payment(self, payment_id: str, data: Dict[str, Any]) -> Optional[ObligationPayment]:
        """Update a payment; the obligation's paid amount and owner balances follow."""
        payment = await self.get_payment(payment_id)
        if payment is None:
            return None
        obligation = await self.get_obligation(payment.obligation_id)

        for field in ("payment_date", "method", "reference", "notes"):
            if data.get(field) is not None:
                setattr(payment, field, data[field])

        if data.get("amount") is not None:
            new_amount = to_money(data["amount"])
            if new_amount <= 0:
                raise ValueError("Payment amount must be greater than 0")
            others = sum(
                (to_money(p.amount) for p in obligation.payments if p.id != payment.id),
                ZERO,
            )
            if others + new_amount > to_money(obligation.amount):
                raise ValueError(
                    f"Payment amount ({new_amount}) exceeds remaining amount ({to_money(obligation.amount) - others})"
                )
            payment.amount = new_amount
            self._refresh_paid_amount(obligation, others + new_amount)

        await self.db.commit()
        await self._recalculate_affected_owners(obligation, payment)
        await self.db.refresh(payment)
        return payment

    async def delete_payment(self, payment_id: str) -> bool:
        payment = await self.get_payment(payment_id)
        if payment is None:
            return False
        obligation = await self.get_obligation(payment.obligation_id)

        remaining_total = sum(
            (to_money(p.amount) for p in obligation.payments if p.id != payment.id),
            ZERO,
        )
        await self.db.delete(payment)
        self._refresh_paid_amount(obligation, remaining_total)
        await self.db.commit()
        await self._recalculate_affected_owners(obligation, payment)
        return True

    @staticmethod
    def _owners_of(obligation: Obligation) -> set:
        """Owner of the obligation plus every owner whose balance paid part of it."""
        owner_ids = {resolve_owner_id(obligation)}
        owner_ids.update(p.owner_id for p in obligation.payments if p.applied_to_owner_balance)
        return {o for o in owner_ids if o}

    async def _recalculate_owners(self, owner_ids) -> None:
        for owner_id in sorted(owner_ids):
            await self.recalculate_owner_balance(owner_id)

    async def _recalculate_affected_owners(self, obligation: Obligation, payment: ObligationPayment) -> None:
        await self._recalculate_owners({o for o in (resolve_owner_id(obligation), payment.owner_id) if o})

    # ==========================================================================
    # Owner balances
    # ==========================================================================

    async def recalculate_owner_balance(self, owner_id: str) -> Optional[Dict[str, Any]]:
        """
        Rebuild an owner's balance from the payment history.

        balance = proportional owner share of tenant payments on the owner's
        properties - payments taken from the owner's balance
        """
        owner = await self._get_owner(owner_id)
        if owner is None:
            return None

        tenant_payments = await self._all(
            select(ObligationPayment)
            .join(Obligation, ObligationPayment.obligation_id == Obligation.id)
            .where(
                ObligationPayment.user_id == self.user_id,
                Obligation.paid_by == PaidBy.TENANT.value,
            )
            .options(selectinload(ObligationPayment.obligation).options(*OWNER_LOAD_OPTIONS))
        )

        total_income = ZERO
        processed = 0
        for payment in tenant_payments:
            if resolve_owner_id(payment.obligation) != owner_id:
                continue
            processed += 1
            total_income += owner_share_of_payment(payment.obligation, payment.amount)

        balance_payments = await self._all(
            select(ObligationPayment).where(
                ObligationPayment.user_id == self.user_id,
                ObligationPayment.owner_id == owner_id,
                ObligationPayment.applied_to_owner_balance.is_(True),
            )
        )
        total_deducted = sum((to_money(p.amount) for p in balance_payments), ZERO)

        previous_balance = to_money(owner.balance)
        owner.balance = total_income - total_deducted
        await self.db.commit()

        logger.info(f"Recalculated balance for owner {owner_id}: {previous_balance} -> {owner.balance}")
        return {
            "owner_id": owner.id,
            "owner_name": owner.name,
            "previous_balance": previous_balance,
            "new_balance": to_money(owner.balance),
            "total_income": total_income,
            "total_deducted": total_deducted,
            "payments_processed": processed,
        }

    async def recalculate_all_owner_balances(self) -> List[Dict[str, Any]]:
        owners = await self._all(select(Owner).where(Owner.user_id == self.user_id).order_by(Owner.name))
        results = []
        for owner in owners:
            results.append(await self.recalculate_owner_balance(owner.id))
        return results

    # ==========================================================================
    # Monthly generation
    # ==========================================================================

    async def _previous_rent_amount(self, contract_id: str, period: date) -> Optional[Decimal]:
        result = await self.db.execute(
            select(Obligation.amount)
            .where(
                Obligation.user_id == self.user_id,
                Obligation.contract_id == contract_id,
                Obligation.type == ObligationType.RENT.value,
                Obligation.period < period,
            )
            .order_by(Obligation.period.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def _rent_exists(self, contract_id: str, period: date) -> bool:
        result = await self.db.execute(
            select(Obligation.id).where(
                Obligation.user_id == self.user_id,
                Obligation.contract_id == contract_id,
                Obligation.type == ObligationType.RENT.value,
                Obligation.period == period,
            )
        )
        return result.first() is not None

    async def _generate_rent(self, contract: Contract, period: date) -> bool:
        """Create the rent obligation of one contract. False when it already exists."""
        if await self._rent_exists(contract.id, period):
            return False

        current_index = None
        if contract_needs_index(contract, period):
            try:
                current_index = (await get_rent_index_client().get_index(contract.update_index_type)).value
            except RentIndexError as e:
                logger.warning(f"Index unavailable for contract {contract.id}, keeping previous rent: {e}")

        previous_amount = await self._previous_rent_amount(contract.id, period)
        escalation = compute_contract_rent(contract, period, previous_amount, current_index)

        description = f"Rent {period.strftime('%m/%Y')}"
        if escalation.applied:
            description = f"{description} {escalation.describe(contract.update_index_type)}"

        distribution = calculate_distribution(
            ObligationType.RENT,
            escalation.amount,
            PaidBy.TENANT,
            contract.commission_type,
            contract.commission_value,
        )
        due_date = clamp_day(period.year, period.month, settings.RENT_DUE_DAY)

        self.db.add(Obligation(
            user_id=self.user_id,
            contract_id=contract.id,
            apartment_id=contract.apartment_id,
            type=ObligationType.RENT.value,
            description=description,
            period=period,
            due_date=due_date,
            amount=to_money(escalation.amount),
            paid_amount=ZERO,
            paid_by=PaidBy.TENANT.value,
            owner_impact=distribution.owner_impact,
            agency_impact=distribution.agency_impact,
            commission_amount=distribution.commission_amount,
            owner_amount=distribution.owner_amount,
            commission_type=contract.commission_type,
            commission_value=contract.commission_value,
            status=calculate_status(escalation.amount, ZERO, due_date),
            is_auto_generated=True,
            notes=escalation.note() if escalation.applied else None,
        ))
        return True

    async def generate_obligations(self, month: date) -> Dict[str, Any]:
        """
        Generate the month's rent obligations for every active contract,
        then the month's recurring obligations.

        Idempotent per contract and period. A failing contract is recorded
        in `errors` and does not stop the batch.
        """
        from inmodash.services.recurring import RecurringObligationService

        period = normalize_period(month)
        first_day, last_day = month_bounds(period)

        contracts = await self._all(
            select(Contract).where(
                Contract.user_id == self.user_id,
                Contract.start_date <= last_day,
                Contract.end_date >= first_day,
            )
        )

        generated = 0
        skipped = 0
        errors: List[Dict[str, str]] = []

        for contract in contracts:
            try:
                async with self.db.begin_nested():
                    created = await self._generate_rent(contract, period)
                if created:
                    generated += 1
                else:
                    skipped += 1
            except Exception as e:
                logger.error(f"Error generating rent for contract {contract.id}: {e}")
                errors.append({"contract_id": contract.id, "error": str(e)})

        await self.db.commit()

        recurring = await RecurringObligationService(self.db, self.user_id).generate_for_month(period)

        logger.info(
            f"Generated obligations for {period:%Y-%m} (user {self.user_id}): "
            f"{generated} rent, {recurring['generated']} recurring"
        )
        return {
            "month": period.strftime("%Y-%m"),
            "generated": generated + recurring["generated"],
            "skipped": skipped + recurring["skipped"],
            "errors": errors + recurring["errors"],
            "rent_generated": generated,
            "recurring_generated": recurring["generated"],
        }
