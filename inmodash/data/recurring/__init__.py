"""Recurring obligation templates."""
