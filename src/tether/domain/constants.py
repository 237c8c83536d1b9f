"""Centralized constants for the Tether engine.

All magic numbers and catalog defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Tier Catalog ----------
# (id, name, cadence_days, description)
DEFAULT_TIERS = [
    ("inner", "Favorites", 7, "Your closest people"),
    ("close", "Friends", 30, "Regular catch-ups"),
    ("catchup", "Acquaintances", 90, "Occasional check-ins"),
]

# ---------- Health ----------
# Fixed recency windows per default tier, independent of configured cadence.
DEFAULT_HEALTH_WINDOWS = {"inner": 7, "close": 30, "catchup": 90}
EMPTY_TIER_SCORE = 100
WEEK_DAYS = 7
MONTH_DAYS = 30

# ---------- Streaks ----------
STREAK_TOLERANCE = 1.5  # multiple of cadence allowed between contacts

# ---------- Birthdays ----------
BIRTHDAY_WINDOW_DAYS = 30
BIRTHDAY_SOON_DAYS = 7

# ---------- Suggestions ----------
SUGGESTION_MIN_INTERACTIONS = 3
SUGGESTION_SAMPLE_SIZE = 10
SUGGESTION_MIN_DAY_COUNT = 2

# ---------- Relationship Health ----------
TREND_THRESHOLD = 0.2
TREND_MIN_GAPS = 3

# ---------- Entitlement ----------
FREE_HISTORY_DAYS = 30
