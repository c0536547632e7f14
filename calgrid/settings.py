import os
from dateutil import tz
from loguru import logger

_WEEKDAY_NAMES = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")


def parse_weekday(raw: str) -> int:
    """
    Parse a first-day-of-week setting into 0–6 (0 = Sunday).
      - Bare integers are taken as-is and must be within 0–6.
      - Otherwise the first three letters are matched against weekday names,
        so "Monday", "mon" and "MON" all give 1.
    """
    s = raw.strip().lower()
    try:
        day = int(s)
    except ValueError:
        if s[:3] in _WEEKDAY_NAMES:
            return _WEEKDAY_NAMES.index(s[:3])
        logger.error("Cannot parse first day of week from '{}'.", raw)
        raise ValueError(f"Invalid first day of week: '{raw}'")
    if not (0 <= day <= 6):
        logger.error("First day of week out of range [0–6]: {!r}", raw)
        raise ValueError(f"First day of week out of range: '{raw}'")
    return day


TIMEZONE = os.getenv("TZ", "UTC")
TZ_LOCAL = tz.gettz(TIMEZONE) or tz.tzutc()

ACTIVE_TIME_DATE_FIELD = os.getenv("CAL_ACTIVE_TIME_DATE_FIELD", "start-end")
WEEK_STARTS_ON = parse_weekday(os.getenv("CAL_WEEK_STARTS_ON", "0"))
CELL_DISPLAY_MODE = os.getenv("CAL_CELL_DISPLAY_MODE", "show-all").strip().lower()
DEFAULT_VIEW = os.getenv("CAL_DEFAULT_VIEW", "month").strip().lower()

# Zero-length items still get this many minutes on a time grid
MIN_VISUAL_DURATION = int(os.getenv("CAL_MIN_VISUAL_DURATION", "15"))

DEBUG_LAYERS = os.getenv("CAL_DEBUG_LAYERS", "false").lower() in ("1", "true", "yes")
