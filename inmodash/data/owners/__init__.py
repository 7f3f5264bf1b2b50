"""Owner management."""
