"""
Shop Clock

All "today" filtering (ledger, usage, movements, alert dedup) goes through
this so the day boundary is shop-local midnight, not UTC midnight.
"""

from datetime import datetime, time, timedelta, timezone
from typing import Callable, Optional, Tuple
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "Africa/Lagos"


class ShopClock:
    """Timezone-aware clock with an injectable time source."""

    def __init__(
        self,
        timezone_name: str = DEFAULT_TIMEZONE,
        now_fn: Optional[Callable[[], datetime]] = None,
    ):
        self.tz = ZoneInfo(timezone_name)
        self._now_fn = now_fn or (lambda: datetime.now(timezone.utc))

    def now(self) -> datetime:
        """Current instant in UTC."""
        current = self._now_fn()
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        return current.astimezone(timezone.utc)

    def local(self, instant: datetime) -> datetime:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        return instant.astimezone(self.tz)

    def day_key(self, instant: Optional[datetime] = None) -> str:
        """Shop-local YYYY-MM-DD for an instant (default: now)."""
        return self.local(instant or self.now()).date().isoformat()

    def day_bounds(self, instant: Optional[datetime] = None) -> Tuple[datetime, datetime]:
        """UTC [start, end) of the shop-local day containing the instant."""
        local_day = self.local(instant or self.now()).date()
        start = datetime.combine(local_day, time.min, tzinfo=self.tz)
        end = datetime.combine(local_day + timedelta(days=1), time.min, tzinfo=self.tz)
        return start.astimezone(timezone.utc), end.astimezone(timezone.utc)
