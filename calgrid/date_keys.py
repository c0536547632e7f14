"""
Canonical string keys shared by the preparers, the visibility policy and the
renderer. Keys are built from the local calendar date, never from UTC.
"""
from datetime import datetime, date, timezone

import calgrid.settings as settings
from calgrid.utils import parse_timestamp


def day_key(value, tz_local=None) -> str:
    """
    Return the "YYYY-MM-DD" key of the local calendar day `value` falls on.
    Accepts anything `parse_timestamp` does; raises InvalidDate otherwise.
    """
    if isinstance(value, date) and not isinstance(value, datetime):
        return value.isoformat()
    return parse_timestamp(value, tz_local).date().isoformat()


def _date_of(date_info, tz_local=None) -> str:
    if isinstance(date_info, dict):
        return date_info["date"]
    return day_key(date_info, tz_local)


def cell_key(date_info, hour: int | None = None, tz_local=None) -> str:
    """
    Key of a day cell, or of one hour inside it.

    `date_info` is a DateInfo dict or any date-like value. Hour 0 is a real
    hour: only `None` falls back to the bare day key.
    """
    key = _date_of(date_info, tz_local)
    if hour is None:
        return key
    return f"{key}T{hour:02d}:00"


def date_range_key(start, end, tz_local=None) -> str:
    return f"{day_key(start, tz_local)}:{day_key(end, tz_local)}"


def cell_info(date_info: dict, hour: int, tz_local=None) -> dict:
    """
    Payload handed to cell/header click handlers: the DateInfo plus the
    hour, its cell key and the same instant as a UTC ISO string.
    """
    tz_local = tz_local or settings.TZ_LOCAL
    time_date = cell_key(date_info, hour)
    local = datetime.fromisoformat(time_date).replace(tzinfo=tz_local)
    utc = local.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
    return {**date_info, "hour": hour, "time_date": time_date, "time_date_utc": utc}
