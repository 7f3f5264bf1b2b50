"""Lease contracts."""
