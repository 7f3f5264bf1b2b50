"""
Distribution Engine - who gains and who owes for each obligation.

The operator records what happened (a rent, a tax, a repair and who fronted
the money); this module derives how that event moves the owner's settlement
(owner_impact) and the agency's books (agency_impact).

Rules by obligation type:
    rent         owner receives amount - commission, agency receives commission
    expenses     tracking only
    service      depends on paid_by (owner or agency expense)
    tax          always deducted from the owner
    insurance    deducted from the owner when the owner pays
    maintenance  depends on paid_by (owner or agency expense)
    debt         like maintenance unless distributed manually
"""
import re
from dataclasses import dataclass, asdict
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Optional, Tuple, Union

from dateutil.relativedelta import relativedelta


CENT = Decimal("0.01")
ZERO = Decimal("0.00")

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


# =============================================================================
# ENUMS
# =============================================================================

class ObligationType(str, Enum):
    """Kinds of billable events."""
    RENT = "rent"
    EXPENSES = "expenses"
    SERVICE = "service"
    TAX = "tax"
    INSURANCE = "insurance"
    MAINTENANCE = "maintenance"
    DEBT = "debt"


class PaidBy(str, Enum):
    """Who actually paid the obligation."""
    TENANT = "tenant"
    OWNER = "owner"
    AGENCY = "agency"


class CommissionType(str, Enum):
    """How the agency commission on rent is expressed."""
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class ObligationStatus(str, Enum):
    """Payment status of an obligation."""
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"


# =============================================================================
# DISTRIBUTION
# =============================================================================

@dataclass(frozen=True)
class Distribution:
    """Result of distributing one obligation between owner and agency."""
    owner_impact: Decimal
    agency_impact: Decimal
    commission_amount: Decimal
    owner_amount: Decimal

    def to_dict(self) -> dict:
        return asdict(self)


def to_money(value: Union[Decimal, int, float, str, None]) -> Decimal:
    """Quantize a value to cents."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _enum_value(value) -> Optional[str]:
    if value is None:
        return None
    return value.value if isinstance(value, Enum) else str(value)


def calculate_commission(
    amount: Decimal,
    commission_type: Optional[str],
    commission_value: Optional[Decimal],
) -> Decimal:
    """Commission owed to the agency on a rent amount."""
    commission_type = _enum_value(commission_type)
    if not commission_type or commission_value is None:
        return ZERO

    value = Decimal(str(commission_value))
    if value <= 0:
        return ZERO

    if commission_type == CommissionType.PERCENTAGE.value:
        return to_money(amount * value / Decimal("100"))
    if commission_type == CommissionType.FIXED.value:
        commission = to_money(value)
        if commission > amount:
            raise ValueError(
                f"Fixed commission ({commission}) exceeds the rent amount ({amount})"
            )
        return commission

    raise ValueError(f"Unknown commission type: {commission_type}")


def calculate_distribution(
    obligation_type: Union[ObligationType, str],
    amount: Union[Decimal, int, float, str],
    paid_by: Union[PaidBy, str, None] = PaidBy.TENANT,
    commission_type: Union[CommissionType, str, None] = None,
    commission_value: Optional[Union[Decimal, int, float, str]] = None,
) -> Distribution:
    """
    Calculate how an obligation affects the owner and the agency.

    Args:
        obligation_type: Kind of event (rent, tax, ...)
        amount: Obligation amount
        paid_by: Who fronted the money (defaults to tenant)
        commission_type: "percentage" or "fixed" (rent only)
        commission_value: Percentage (0-100) or fixed amount (rent only)

    Returns:
        Distribution with signed owner/agency impacts
    """
    obligation_type = ObligationType(_enum_value(obligation_type))
    paid_by = PaidBy(_enum_value(paid_by) or PaidBy.TENANT.value)
    amount = to_money(amount)

    if amount < 0:
        raise ValueError("Obligation amount cannot be negative")

    owner_impact = ZERO
    agency_impact = ZERO
    commission_amount = ZERO
    owner_amount = ZERO

    if obligation_type == ObligationType.RENT:
        commission_amount = calculate_commission(
            amount,
            commission_type,
            Decimal(str(commission_value)) if commission_value is not None else None,
        )
        owner_amount = amount - commission_amount
        owner_impact = owner_amount
        agency_impact = commission_amount

    elif obligation_type == ObligationType.EXPENSES:
        pass  # Building expenses are tracked, never settled

    elif obligation_type == ObligationType.TAX:
        owner_impact = -amount

    elif obligation_type == ObligationType.INSURANCE:
        if paid_by == PaidBy.OWNER:
            owner_impact = -amount

    elif obligation_type in (ObligationType.SERVICE, ObligationType.MAINTENANCE, ObligationType.DEBT):
        if paid_by == PaidBy.OWNER:
            owner_impact = -amount
        elif paid_by == PaidBy.AGENCY:
            agency_impact = -amount

    return Distribution(
        owner_impact=owner_impact,
        agency_impact=agency_impact,
        commission_amount=commission_amount,
        owner_amount=owner_amount,
    )


def validate_manual_distribution(
    amount: Union[Decimal, int, float, str],
    owner_impact: Optional[Union[Decimal, int, float, str]],
    agency_impact: Optional[Union[Decimal, int, float, str]],
) -> Tuple[Decimal, Decimal]:
    """
    Validate operator-supplied impacts (debts and adjustments).

    The combined magnitude of both impacts can never exceed the amount.
    """
    amount = to_money(amount)
    owner = to_money(owner_impact)
    agency = to_money(agency_impact)

    if abs(owner) + abs(agency) > amount:
        raise ValueError(
            f"Owner and agency impacts ({owner}, {agency}) exceed the obligation amount ({amount})"
        )
    return owner, agency


# =============================================================================
# STATUS & PERIODS
# =============================================================================

def calculate_status(
    amount: Decimal,
    paid_amount: Decimal,
    due_date: date,
    today: Optional[date] = None,
) -> str:
    """Derive obligation status from amounts and due date."""
    today = today or date.today()
    paid_amount = paid_amount or ZERO

    if paid_amount >= amount:
        return ObligationStatus.PAID.value
    if paid_amount > 0:
        return ObligationStatus.PARTIAL.value
    if due_date < today:
        return ObligationStatus.OVERDUE.value
    return ObligationStatus.PENDING.value


def normalize_period(value: Union[date, str]) -> date:
    """Normalize a date or YYYY-MM / ISO string to the first day of its month."""
    if isinstance(value, str):
        match = _MONTH_RE.match(value.strip())
        if match:
            return parse_month(value)
        value = date.fromisoformat(value.strip()[:10])
    return date(value.year, value.month, 1)


def parse_month(month: str) -> date:
    """Parse a YYYY-MM string into the first day of that month."""
    match = _MONTH_RE.match(month.strip()) if month else None
    if not match:
        raise ValueError("Invalid month format. Use YYYY-MM")
    year, month_num = int(match.group(1)), int(match.group(2))
    if month_num < 1 or month_num > 12:
        raise ValueError("Invalid month format. Use YYYY-MM")
    return date(year, month_num, 1)


def month_bounds(period: date) -> Tuple[date, date]:
    """First and last day of the month containing `period`."""
    first_day = date(period.year, period.month, 1)
    return first_day, first_day + relativedelta(months=1, days=-1)


def clamp_day(year: int, month: int, day: int) -> date:
    """Date for `day` in the month, pulled back to the month's last day if needed."""
    return date(year, month, 1) + relativedelta(day=day)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from `start`'s month to `end`'s month."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def owner_share_of_payment(obligation, payment_amount: Decimal) -> Decimal:
    """
    Part of a payment that belongs to the owner.

    Proportional to the obligation's owner_amount: paying half the rent
    credits the owner with half of their share.
    """
    amount = obligation.amount or ZERO
    owner_amount = obligation.owner_amount or ZERO
    if amount <= 0 or owner_amount <= 0:
        return ZERO
    return to_money(owner_amount * Decimal(str(payment_amount)) / amount)
