"""
Rent escalation rules.

Contracts and recurring templates can be escalated every N months either by
a fixed coefficient (e.g. 1.05 per cycle) or by the variation of a published
rent index (ICL / IPC) since the contract started. Escalated amounts are
rounded to whole currency units.
"""
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from inmodash.indices.client import RentIndexClient
from inmodash.services.distribution import months_between

INDEX_TYPES = ("icl", "ipc")
UNIT = Decimal("1")


@dataclass
class EscalationResult:
    """Amount to bill and, when an update was applied, how it was derived."""
    amount: Decimal
    applied: bool = False
    coefficient: Optional[Decimal] = None
    percentage_increase: Optional[Decimal] = None
    index_value: Optional[Decimal] = None

    def describe(self, index_type: str) -> str:
        """Suffix appended to generated obligation descriptions."""
        pct = (self.percentage_increase or Decimal("0")).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
        return f"(updated {pct}% by {index_type.upper()})"

    def note(self) -> str:
        """Audit line kept in the notes of generated obligations."""
        parts = []
        if self.coefficient is not None:
            parts.append(f"coefficient {self.coefficient.quantize(Decimal('0.0001'), rounding=ROUND_HALF_UP)}")
        if self.index_value is not None:
            parts.append(f"index value {self.index_value}")
        return "Amount update applied: " + ", ".join(parts)


def _round_units(amount: Decimal) -> Decimal:
    return amount.quantize(UNIT, rounding=ROUND_HALF_UP)


def _escalates(index_type: Optional[str], frequency: Optional[int]) -> bool:
    return bool(index_type) and index_type != "none" and bool(frequency) and frequency > 0


# =============================================================================
# Contracts (stateless: derived from the contract and the period)
# =============================================================================

def contract_update_due(contract, period: date) -> bool:
    """True when `period` opens a new escalation cycle of the contract."""
    if not _escalates(contract.update_index_type, contract.update_frequency_months):
        return False
    elapsed = months_between(contract.start_date, period)
    return elapsed > 0 and elapsed % contract.update_frequency_months == 0


def contract_needs_index(contract, period: date) -> bool:
    """True when generating `period` requires a fresh index value."""
    return contract.update_index_type in INDEX_TYPES and contract_update_due(contract, period)


def compute_contract_rent(
    contract,
    period: date,
    previous_amount: Optional[Decimal] = None,
    current_index_value: Optional[Decimal] = None,
) -> EscalationResult:
    """
    Rent amount for a contract in `period`.

    Fixed coefficients compound once per completed cycle. Index-linked
    contracts re-base on the index variation at each cycle boundary and
    otherwise keep the amount billed in the previous period.
    """
    initial = Decimal(str(contract.initial_amount))
    index_type = contract.update_index_type
    frequency = contract.update_frequency_months

    if not _escalates(index_type, frequency):
        return EscalationResult(amount=initial)

    elapsed = months_between(contract.start_date, period)
    cycles = elapsed // frequency if elapsed > 0 else 0

    if index_type == "fixed":
        if not contract.fixed_update_coefficient or cycles == 0:
            return EscalationResult(amount=initial)
        coefficient = Decimal(str(contract.fixed_update_coefficient)) ** cycles
        return EscalationResult(
            amount=_round_units(initial * coefficient),
            applied=contract_update_due(contract, period),
            coefficient=coefficient,
            percentage_increase=(coefficient - 1) * 100,
        )

    if index_type in INDEX_TYPES:
        carried = Decimal(str(previous_amount)) if previous_amount is not None else initial
        if not contract_update_due(contract, period):
            return EscalationResult(amount=carried)
        if current_index_value is None or not contract.initial_index_value:
            return EscalationResult(amount=carried)
        result = RentIndexClient.calculate_updated_amount(
            initial, contract.initial_index_value, current_index_value
        )
        return EscalationResult(
            amount=result["new_amount"],
            applied=True,
            coefficient=result["coefficient"],
            percentage_increase=result["percentage_increase"],
            index_value=Decimal(str(current_index_value)),
        )

    return EscalationResult(amount=initial)


# =============================================================================
# Recurring templates (stateful: periods_since_update counter)
# =============================================================================

def recurring_update_due(template) -> bool:
    """True when the next generated period reaches the template's update frequency."""
    if not _escalates(template.update_index_type, template.update_frequency_months):
        return False
    periods = (template.periods_since_update or 0) + 1
    return periods >= template.update_frequency_months


def recurring_needs_index(template) -> bool:
    return template.update_index_type in INDEX_TYPES and recurring_update_due(template)


def compute_recurring_amount(template, current_index_value: Optional[Decimal] = None) -> EscalationResult:
    """
    Amount for the next period generated from a recurring template.

    Fixed coefficients apply to the current (already escalated) amount;
    index updates always start from the base amount.
    """
    base = Decimal(str(template.amount))
    current = Decimal(str(template.current_amount)) if template.current_amount is not None else base

    if not recurring_update_due(template):
        return EscalationResult(amount=current)

    if template.update_index_type == "fixed" and template.fixed_update_coefficient:
        coefficient = Decimal(str(template.fixed_update_coefficient))
        return EscalationResult(
            amount=_round_units(current * coefficient),
            applied=True,
            coefficient=coefficient,
            percentage_increase=(coefficient - 1) * 100,
        )

    if (
        template.update_index_type in INDEX_TYPES
        and template.initial_index_value
        and current_index_value is not None
    ):
        result = RentIndexClient.calculate_updated_amount(
            base, template.initial_index_value, current_index_value
        )
        return EscalationResult(
            amount=result["new_amount"],
            applied=True,
            coefficient=result["coefficient"],
            percentage_increase=result["percentage_increase"],
            index_value=Decimal(str(current_index_value)),
        )

    return EscalationResult(amount=current)
