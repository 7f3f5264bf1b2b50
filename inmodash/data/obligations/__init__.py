"""Obligations module - billable charges and their payments."""
from inmodash.data.obligations.models import Obligation, ObligationPayment

__all__ = ["Obligation", "ObligationPayment"]
