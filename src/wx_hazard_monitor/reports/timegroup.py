"""Resolve a report's ``DDHHMMZ`` issue group to an absolute UTC instant.

The group carries no month or year, so the instant is a best-effort guess:
start in the current UTC month, step back a month when that lands more than
12 hours in the future, step forward when it lands more than 30 days in the
past.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from .extractor import parse_issue_group

MAX_FUTURE_SKEW = timedelta(hours=12)
MAX_PAST_AGE = timedelta(days=30)


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _candidate(year: int, month: int, day: int, hour: int, minute: int) -> datetime | None:
    try:
        return datetime(year, month, day, hour, minute, tzinfo=UTC)
    except ValueError:
        return None


def resolve_issue_time(group: str | None, now: datetime | None = None) -> datetime | None:
    """Return the UTC instant for ``group``, or None when it cannot be resolved."""
    if not group or len(group) != 7 or not group[:6].isdigit() or group[6] != "Z":
        return None
    day, hour, minute = int(group[0:2]), int(group[2:4]), int(group[4:6])
    now = _as_utc(now or datetime.now(UTC))

    candidate = _candidate(now.year, now.month, day, hour, minute)
    if candidate is None:
        # Day 31 in a 30-day month can only belong to an earlier month.
        year, month = _shift_month(now.year, now.month, -1)
        return _candidate(year, month, day, hour, minute)

    if candidate - now > MAX_FUTURE_SKEW:
        year, month = _shift_month(now.year, now.month, -1)
        return _candidate(year, month, day, hour, minute)
    if now - candidate > MAX_PAST_AGE:
        year, month = _shift_month(now.year, now.month, 1)
        return _candidate(year, month, day, hour, minute)
    return candidate


def report_age_minutes(raw: str | None, now: datetime | None = None) -> float | None:
    """Minutes since the report's issue group, or None without a usable group."""
    now = _as_utc(now or datetime.now(UTC))
    issued = resolve_issue_time(parse_issue_group(raw), now)
    if issued is None:
        return None
    return (now - issued).total_seconds() / 60.0
