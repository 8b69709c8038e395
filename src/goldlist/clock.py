"""Calendar helpers and the adjustable application clock.

All day arithmetic in the application goes through ``to_utc_date`` so streaks,
roadmap pages and review dates agree on where a day starts (UTC midnight).
Naive datetimes are treated as UTC. Timestamp columns store UTC and read back
aware (see ``models.base.UTCDateTime``).
"""
import logging
from datetime import UTC, date, datetime, timedelta
from typing import Optional, Union

from goldlist.config import settings

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]


def to_utc_date(value: DateLike) -> date:
    """Normalize a date or datetime to its UTC calendar day."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.date()
        return value.astimezone(UTC).date()
    return value


def days_between(start: DateLike, end: DateLike) -> int:
    """Whole calendar days from ``start`` to ``end`` (negative if end is earlier)."""
    return (to_utc_date(end) - to_utc_date(start)).days


def add_days(value: DateLike, days: int) -> date:
    """Calendar day ``days`` after ``value``."""
    return to_utc_date(value) + timedelta(days=days)


def ensure_aware(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from the database."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class Clock:
    """Wall clock with a user-adjustable offset ("time travel" for demos)."""

    def __init__(self, offset_days: Optional[int] = None):
        if offset_days is None:
            offset_days = settings.clock.offset_days
        self._offset = timedelta(days=offset_days)

    @property
    def offset(self) -> timedelta:
        return self._offset

    @property
    def is_simulated(self) -> bool:
        return self._offset != timedelta(0)

    def now(self) -> datetime:
        """Current (possibly simulated) time, timezone-aware UTC."""
        return datetime.now(UTC) + self._offset

    def today(self) -> date:
        return to_utc_date(self.now())

    def add_day(self) -> datetime:
        """Move the simulated clock one day forward."""
        self._offset += timedelta(days=1)
        logger.info("Clock advanced, offset is now %s", self._offset)
        return self.now()

    def reset_to_now(self) -> datetime:
        """Drop any simulated offset."""
        self._offset = timedelta(0)
        logger.info("Clock reset to wall time")
        return self.now()
