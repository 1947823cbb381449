"""
Timezone utilities for the classbook scheduling engine.

Class instants are stored as absolute UTC instants. Teacher-facing wall-clock
concepts (working hours, "every Tuesday at 10:00") are resolved in the
teacher's or template's IANA timezone using pytz.
"""

from datetime import datetime, timezone

import pytz


def get_timezone(name: str | None) -> pytz.BaseTzInfo:
    """
    Resolve an IANA timezone name.

    Args:
        name: Timezone name such as "America/Sao_Paulo"; empty means UTC

    Returns:
        pytz timezone object

    Raises:
        ValueError: If the name is unknown
    """
    try:
        return pytz.timezone(name or "UTC")
    except pytz.UnknownTimeZoneError as exc:
        raise ValueError(f"Unknown timezone: {name}") from exc


def ensure_utc(dt: datetime) -> datetime:
    """Normalize an aware datetime to UTC; naive datetimes are rejected."""
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        raise ValueError("Datetime must be timezone-aware")
    return dt.astimezone(timezone.utc)


def to_local(dt: datetime, tz: pytz.BaseTzInfo) -> datetime:
    """Convert an aware instant to wall-clock time in ``tz``."""
    return ensure_utc(dt).astimezone(tz)


def localize_wall_clock(naive: datetime, tz: pytz.BaseTzInfo) -> datetime:
    """
    Attach ``tz`` to a naive wall-clock datetime and return the UTC instant.

    Ambiguous times (DST fall-back) resolve to the standard-time reading;
    non-existent times (DST spring-forward) are shifted forward by normalize().
    """
    localized = tz.normalize(tz.localize(naive, is_dst=False))
    return localized.astimezone(timezone.utc)
