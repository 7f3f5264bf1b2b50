"""Tenant management."""
