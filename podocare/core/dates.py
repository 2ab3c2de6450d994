"""Timestamp helpers shared by the local repositories."""

from datetime import datetime, time, timedelta, timezone
from typing import Optional, Tuple

from .config import APP_TZ


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(moment: datetime) -> str:
    """Serialize an aware datetime the way the API does (UTC, 'Z' suffix)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 date or datetime string into an aware datetime.

    Date-only values ("2024-01-25") mean midnight UTC; naive datetimes are
    assumed to be UTC. Returns None for empty or unparseable values.
    """
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def in_range(value: Optional[str], start: datetime, end: datetime) -> bool:
    """Inclusive on both ends; records without a parseable date never match."""
    moment = parse_timestamp(value)
    if moment is None:
        return False
    return start <= moment <= end


def day_bounds(moment: datetime) -> Tuple[datetime, datetime]:
    """First and last instant of ``moment``'s calendar day in the app timezone."""
    local = moment.astimezone(APP_TZ)
    start = datetime.combine(local.date(), time.min, tzinfo=APP_TZ)
    end = datetime.combine(local.date(), time.max, tzinfo=APP_TZ)
    return start, end


def period_starts(moment: datetime) -> Tuple[datetime, datetime, datetime]:
    """
    Start of today, of the trailing 7-day window, and of the current month,
    all in the app timezone. Used by the stats operations.
    """
    today, _ = day_bounds(moment)
    week = moment.astimezone(APP_TZ) - timedelta(days=7)
    month = today.replace(day=1)
    return today, week, month
