"""Agency dashboard statistics."""
