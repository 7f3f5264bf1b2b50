"""
Consolidated models module.

IMPORTANT: Explicit imports only - no wildcards to prevent circular imports.
Use string-based forward references in relationships: relationship("Owner", ...)
"""
from inmodash.data.base import generate_id
from inmodash.data.users.models import User
from inmodash.data.owners.models import Owner
from inmodash.data.properties.models import Building, Apartment
from inmodash.data.tenants.models import Tenant
from inmodash.data.contracts.models import Contract
from inmodash.data.guarantors.models import Guarantor, ContractGuarantor
from inmodash.data.obligations.models import Obligation, ObligationPayment
from inmodash.data.recurring.models import RecurringObligation
from inmodash.data.settlements.models import Settlement
from inmodash.accounting.models import AccountingEntry


__all__ = [
    "generate_id",
    # Account
    "User",
    # Inventory
    "Owner",
    "Building",
    "Apartment",
    "Tenant",
    "Contract",
    "Guarantor",
    "ContractGuarantor",
    # Obligations
    "Obligation",
    "ObligationPayment",
    "RecurringObligation",
    # Settlements & accounting
    "Settlement",
    "AccountingEntry",
]
