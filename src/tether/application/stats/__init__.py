# Application Stats Package
from .birthdays import parse_birthday, upcoming_birthdays
from .health import HealthAggregator, is_overdue
from .relationship import assess_relationship
from .suggestions import suggest_contact_day

__all__ = [
    "HealthAggregator",
    "is_overdue",
    "upcoming_birthdays",
    "parse_birthday",
    "suggest_contact_day",
    "assess_relationship",
]
