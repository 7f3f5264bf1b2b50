"""Background jobs: monthly obligation generation and overdue marking."""
from inmodash.scheduler.jobs import ObligationScheduler, obligation_scheduler, setup_apscheduler

__all__ = ["ObligationScheduler", "obligation_scheduler", "setup_apscheduler"]
