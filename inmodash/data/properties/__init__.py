"""Building and apartment inventory."""
