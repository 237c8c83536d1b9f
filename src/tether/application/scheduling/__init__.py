# Application Scheduling Package
from .due_dates import compute_next_due, latest_contact
from .streaks import compute_streak

__all__ = ["compute_next_due", "latest_contact", "compute_streak"]
