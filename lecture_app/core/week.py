"""
Calendar week boundaries.

Weeks run Sunday 00:00 to the following Sunday 00:00 in server-local time.
Everything that scopes attendance to "this week" (roster, status, marking)
must go through ``week_start``.
"""
from datetime import datetime, timedelta


def week_start(now: datetime) -> datetime:
    """Most recent Sunday midnight not after ``now`` (keeps ``now.tzinfo``)."""
    # weekday(): Monday=0 .. Sunday=6
    days_since_sunday = (now.weekday() + 1) % 7
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight - timedelta(days=days_since_sunday)
