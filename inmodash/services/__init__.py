"""
Business logic services.

The pure rules (distribution, escalation) are re-exported here. The
DB-backed services are imported from their own modules:

    from inmodash.services.obligations import ObligationService
    from inmodash.services.recurring import RecurringObligationService
    from inmodash.services.settlements import SettlementService
"""

from inmodash.services.distribution import (
    Distribution,
    ObligationStatus,
    ObligationType,
    PaidBy,
    calculate_distribution,
    calculate_status,
    normalize_period,
    parse_month,
    to_money,
)
from inmodash.services.escalation import (
    EscalationResult,
    compute_contract_rent,
    compute_recurring_amount,
)

__all__ = [
    "Distribution",
    "ObligationStatus",
    "ObligationType",
    "PaidBy",
    "calculate_distribution",
    "calculate_status",
    "normalize_period",
    "parse_month",
    "to_money",
    "EscalationResult",
    "compute_contract_rent",
    "compute_recurring_amount",
]
