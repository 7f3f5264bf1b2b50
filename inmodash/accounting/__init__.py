"""Agency accounting ledger."""
