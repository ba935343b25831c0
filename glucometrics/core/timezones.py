"""Local-time helpers for hour-of-day and calendar-day grouping."""

from datetime import date, datetime, tzinfo
from zoneinfo import ZoneInfo

from glucometrics.config import settings

TimezoneLike = str | tzinfo


def resolve_timezone(tz: TimezoneLike | None = None) -> tzinfo:
    """Return a tzinfo for an IANA name (e.g. ``"America/Sao_Paulo"``).

    ``None`` means the configured ``settings.timezone``.

    Raises:
        zoneinfo.ZoneInfoNotFoundError: If the name is unknown.
    """
    if tz is None:
        tz = settings.timezone
    if isinstance(tz, str):
        return ZoneInfo(tz)
    return tz


def local_hour(timestamp: datetime, zone: tzinfo) -> int:
    return timestamp.astimezone(zone).hour


def local_date(timestamp: datetime, zone: tzinfo) -> date:
    return timestamp.astimezone(zone).date()
