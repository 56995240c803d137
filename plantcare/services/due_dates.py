"""
Due-date arithmetic and timezone helpers.

Due dates are stored as aware UTC datetimes. When a task is completed its next
due date is found by adding whole calendar days on the user's wall clock, so a
plant watered at 08:00 local time is due again at 08:00 local time even across
a DST change. Overdue checks elsewhere compare absolute timestamps only.
"""
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from plantcare.core.config import settings

logger = logging.getLogger(__name__)

_UTC_ALIASES = {"utc", "etc/utc", "gmt", "z"}


def as_utc(dt: datetime) -> datetime:
    """Treat naive datetimes (as returned by some drivers) as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _try_zone(name: Optional[str]) -> Optional[ZoneInfo]:
    if not name or not name.strip():
        return None
    candidate = name.strip()
    if candidate.lower() in _UTC_ALIASES:
        return ZoneInfo("UTC")
    try:
        return ZoneInfo(candidate)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(
            "normalize_timezone: invalid timezone %r, falling back to %s",
            candidate, settings.DEFAULT_TIMEZONE,
        )
        return None


def normalize_timezone(name: Optional[str]) -> str:
    """Return ``name`` if it is a usable IANA zone, else the configured default."""
    zone = _try_zone(name)
    return zone.key if zone is not None else settings.DEFAULT_TIMEZONE


def get_zone(name: Optional[str]) -> ZoneInfo:
    return ZoneInfo(normalize_timezone(name))


def compute_next_due_date(
    frequency_days: int,
    base_date: Optional[datetime] = None,
    tz: Optional[str] = None,
) -> datetime:
    """
    Return ``base_date + frequency_days`` calendar days as an aware UTC datetime.

    ``base_date`` defaults to now. Callers validate ``frequency_days > 0``.
    """
    base = as_utc(base_date) if base_date is not None else datetime.now(timezone.utc)
    local = base.astimezone(get_zone(tz))
    # Aware + timedelta moves the wall clock; the offset is recomputed on conversion
    return (local + timedelta(days=frequency_days)).astimezone(timezone.utc)


def start_of_day_in_timezone(tz: Optional[str], base_date: Optional[datetime] = None) -> datetime:
    base = as_utc(base_date) if base_date is not None else datetime.now(timezone.utc)
    local = base.astimezone(get_zone(tz))
    return local.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_day_plus_days_in_timezone(
    tz: Optional[str],
    days: int,
    base_date: Optional[datetime] = None,
) -> datetime:
    start = start_of_day_in_timezone(tz, base_date)
    return (start + timedelta(days=days)).astimezone(timezone.utc)


def local_date(dt: datetime, tz: Optional[str] = None) -> date:
    """Calendar date of ``dt`` on the wall clock of ``tz``."""
    return as_utc(dt).astimezone(get_zone(tz)).date()


def today_in_timezone(tz: Optional[str] = None) -> date:
    return datetime.now(get_zone(tz)).date()
