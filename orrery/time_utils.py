"""Conversions between calendar times and days past J2000."""

from datetime import datetime, timezone

import numpy as np

from orrery.constants import J2000_JD

# J2000.0 is 2000-01-01 12:00 TT; UTC and TT differ by about a minute, which
# is far below what the animation can show.
J2000 = np.datetime64('2000-01-01T12:00:00', 'us')


def days_since_j2000(when: datetime) -> float:
    """
    Days from J2000 to ``when``.

    Naive datetimes are taken as UTC; aware ones are converted to UTC first.
    """
    if when.tzinfo is not None:
        when = when.astimezone(timezone.utc).replace(tzinfo=None)
    return float((np.datetime64(when, 'us') - J2000) / np.timedelta64(1, 'D'))


def julian_date(when: datetime) -> float:
    """Julian Date of ``when`` (UTC)."""
    return J2000_JD + days_since_j2000(when)


def parse_start(text: str) -> float:
    """Parse an ISO 8601 date or date-time into days past J2000."""
    return days_since_j2000(datetime.fromisoformat(text))
