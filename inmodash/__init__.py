"""Inmodash property-management backend."""
