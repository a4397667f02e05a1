"""UTC datetime helpers with stable naive UTC output for DB compatibility."""

from __future__ import annotations

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return naive UTC datetime compatible with existing DB columns."""
    return datetime.now(UTC).replace(tzinfo=None)


def utcnow_iso() -> str:
    """Return ISO-8601 string from naive UTC datetime."""
    return utcnow().isoformat()


def start_of_day(moment: datetime | None = None) -> datetime:
    """Midnight of the given (or current) UTC day."""
    moment = moment or utcnow()
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_month(moment: datetime | None = None) -> datetime:
    """Midnight of the first day of the given (or current) UTC month."""
    return start_of_day(moment).replace(day=1)
