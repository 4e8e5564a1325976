"""Billing-cycle arithmetic.

Billing periods are UTC calendar months. Every timestamp entering these
helpers is normalized to UTC first; naive values are taken to be UTC.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(moment: datetime) -> datetime:
    """Return ``moment`` as an aware UTC datetime."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def month_start(moment: datetime) -> datetime:
    """First instant of the UTC calendar month containing ``moment``."""
    m = as_utc(moment)
    return m.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def next_month_start(moment: datetime) -> datetime:
    """First instant of the UTC calendar month after the one containing ``moment``."""
    start = month_start(moment)
    if start.month == 12:
        return start.replace(year=start.year + 1, month=1)
    return start.replace(month=start.month + 1)


def is_due(billing_period_start: datetime, now: datetime) -> bool:
    """Whether an account anchored at ``billing_period_start`` needs a reset at ``now``.

    Due when the current month starts strictly after the anchor's month.
    An anchor in the future (clock skew) is never due.
    """
    return month_start(now) > month_start(billing_period_start)
