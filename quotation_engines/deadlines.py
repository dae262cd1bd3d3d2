"""
quotation_engines.deadlines -- Submission deadline checks.

Days remaining are whole days rounded up, so a deadline later today counts
as 1 day and a deadline that passed earlier today counts as 0.  Negative
values mean more than a day overdue.  Overdue itself is the deadline
instant lying before "now", and approaching means 1..threshold days left.
"Now" comes from an injected Clock.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time, timezone

from quotation_kernel.domain.clock import Clock, SystemClock

DEFAULT_THRESHOLD_DAYS = 3

_SECONDS_PER_DAY = 86400


def _as_datetime(value: date | datetime, aware: bool) -> datetime:
    if isinstance(value, datetime):
        if aware and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    return datetime.combine(value, time.min, tzinfo=timezone.utc if aware else None)


def _aligned(
    deadline: date | datetime,
    as_of: date | datetime,
) -> tuple[date | datetime, date | datetime]:
    """Both values as plain dates, or both as datetimes of matching awareness."""
    if not isinstance(deadline, datetime) and not isinstance(as_of, datetime):
        return deadline, as_of
    aware = any(
        isinstance(v, datetime) and v.tzinfo is not None for v in (deadline, as_of)
    )
    return _as_datetime(deadline, aware), _as_datetime(as_of, aware)


def days_until_deadline(
    deadline: date | datetime | None,
    as_of: date | datetime | None = None,
    *,
    clock: Clock | None = None,
) -> int | None:
    """Whole days (ceiling) from ``as_of`` to ``deadline``; None without a deadline."""
    if deadline is None:
        return None
    if as_of is None:
        as_of = (clock or SystemClock()).now()
    end, start = _aligned(deadline, as_of)
    if not isinstance(end, datetime):
        return (end - start).days
    return math.ceil((end - start).total_seconds() / _SECONDS_PER_DAY)


def is_deadline_approaching(
    deadline: date | datetime | None,
    as_of: date | datetime | None = None,
    threshold_days: int = DEFAULT_THRESHOLD_DAYS,
    *,
    clock: Clock | None = None,
) -> bool:
    """True when the deadline is 1..threshold_days days away."""
    days = days_until_deadline(deadline, as_of, clock=clock)
    if days is None:
        return False
    return 0 < days <= threshold_days


def is_overdue(
    deadline: date | datetime | None,
    as_of: date | datetime | None = None,
    *,
    clock: Clock | None = None,
) -> bool:
    """True once the deadline instant is behind ``as_of``."""
    if deadline is None:
        return False
    if as_of is None:
        as_of = (clock or SystemClock()).now()
    end, start = _aligned(deadline, as_of)
    return end < start
