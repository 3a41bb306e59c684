"""
Timestamp helpers shared by the range normalizer and the tool layer
"""

import calendar
from datetime import datetime

import pytz
from dateutil.relativedelta import relativedelta


def shift(value: datetime, **delta) -> datetime:
    """
    Move a datetime by calendar units, keeping its wall-clock time.

    The arithmetic runs on the naive local time and the result is localized
    again, so adding one day across a DST change still lands on the same
    clock time. The input is never modified.

    Args:
        value: Timezone-aware datetime
        **delta: relativedelta keyword arguments (days=1, months=-1, ...)

    Returns:
        New timezone-aware datetime
    """
    tz = value.tzinfo
    naive = value.replace(tzinfo=None) + relativedelta(**delta)
    if hasattr(tz, "localize"):
        return tz.localize(naive)
    return naive.replace(tzinfo=tz)


def to_iso_instant(value: datetime) -> str:
    """Format as a UTC instant with millisecond precision: YYYY-MM-DDTHH:MM:SS.sssZ"""
    utc = value.astimezone(pytz.utc)
    return utc.replace(tzinfo=None).isoformat(timespec="milliseconds") + "Z"


def to_iso_date(value: datetime) -> str:
    """
    Calendar date of the instant in UTC: YYYY-MM-DD

    Date-only boundaries carry an implied local time of 12:00, so this equals
    the local calendar date for offsets between UTC-12 and UTC+12. Zones ahead
    of UTC+12 (Pacific/Kiritimati, Pacific/Auckland in summer) report the
    previous day.
    """
    return to_iso_instant(value).split("T")[0]


def to_epoch_millis(value: datetime) -> int:
    utc = value.astimezone(pytz.utc)
    return calendar.timegm(utc.utctimetuple()) * 1000 + utc.microsecond // 1000
