"""Clock and entitlement adapters."""

from datetime import datetime, timedelta, timezone

from tether.domain.ports import Clock, EntitlementProvider
from tether.domain.timeutil import as_utc


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """
    A clock frozen at a given instant, for deterministic tests and replays.

    Naive datetimes are taken to be UTC.
    """

    def __init__(self, instant: datetime):
        self._instant = as_utc(instant)

    def now(self) -> datetime:
        return self._instant

    def advance(self, **delta: float) -> None:
        self._instant += timedelta(**delta)

    def set(self, instant: datetime) -> None:
        self._instant = as_utc(instant)


class StaticEntitlement(EntitlementProvider):
    """Entitlement fixed at construction, typically from AppConfig.premium."""

    def __init__(self, premium: bool = False):
        self.premium = premium

    def is_premium(self) -> bool:
        return self.premium
