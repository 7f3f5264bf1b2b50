"""Owner settlements."""
