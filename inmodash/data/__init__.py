"""Data module - inventory, obligations and settlements."""
