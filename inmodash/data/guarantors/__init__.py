"""Guarantors and the contracts they back."""
