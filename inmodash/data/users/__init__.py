"""Agency user accounts."""
