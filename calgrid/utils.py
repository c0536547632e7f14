from datetime import datetime, date, time, timedelta, timezone
import re
from loguru import logger
import webcolors
from dateutil import parser as date_parser

import calgrid.settings as settings
from calgrid.errors import InvalidDate, MissingField, EmptyInterval
from calgrid.logger import ITEMS


def parse_timestamp(value, tz_local=None, field: str | None = None) -> datetime:
    """
    Turn an item's timestamp value into a naive local datetime.

    - ISO strings are parsed with dateutil; date-only strings mean midnight.
    - `date` values become midnight, `datetime` values are used directly.
    - int/float values are POSIX seconds.
    - Aware values are converted to `tz_local` (settings.TZ_LOCAL by default)
      and stripped; naive values are already local wall time.

    Raises InvalidDate for anything else.
    """
    tz_local = tz_local or settings.TZ_LOCAL

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.min)
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            dt = datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise InvalidDate(field, value) from e
    elif isinstance(value, str) and value.strip():
        try:
            dt = date_parser.isoparse(value.strip())
        except (ValueError, OverflowError) as e:
            raise InvalidDate(field, value) from e
    else:
        raise InvalidDate(field, value)

    if dt.tzinfo is not None:
        dt = dt.astimezone(tz_local).replace(tzinfo=None)
    return dt


def item_interval(item, start_field: str, end_field: str | None, tz_local=None, issues: list | None = None) -> tuple[datetime, datetime]:
    """
    Read an item's (start, end) as naive local datetimes.

    A missing or empty end makes a point event (end == start). An end before
    the start is reported as EmptyInterval and also collapses to a point.
    Raises MissingField when the start field is absent and InvalidDate when
    either value cannot be parsed.
    """
    if item.get(start_field) is None:
        raise MissingField(start_field)
    start = parse_timestamp(item[start_field], tz_local, start_field)

    if not end_field or item.get(end_field) in (None, ""):
        logger.log(ITEMS, "Item {} has no end, treating as point event", item.get("id"))
        return start, start
    end = parse_timestamp(item[end_field], tz_local, end_field)

    if end < start:
        err = EmptyInterval(start, end)
        logger.warning("Item {}: {}", item.get("id"), err)
        if issues is not None:
            issues.append((item, err))
        end = start
    return start, end


def js_weekday(d: date) -> int:
    """Weekday with 0 = Sunday, matching the first-day-of-week setting."""
    return (d.weekday() + 1) % 7


def iter_days(first: date, last: date):
    """Yield every date from first to last, inclusive."""
    for i in range((last - first).days + 1):
        yield first + timedelta(days=i)


def css_color_to_hex(name_or_hex: str) -> str:
    """
    Normalise a marker colour to a lowercase 6-digit hex code.

    - Hex codes (3 or 6 digits) are normalised with webcolors.
    - CSS4 gray(%) and rgb(r, g, b) functional syntax are parsed.
    - Anything else is looked up as a CSS color name.
    Unknown values are logged and passed through untouched.
    """
    lower = name_or_hex.strip().lower()

    try:
        if lower.startswith("#"):
            return webcolors.normalize_hex(lower)

        m_pct = re.fullmatch(r'gray\(\s*([0-9]+(?:\.[0-9]+)?)%\s*\)', lower)
        if m_pct:
            level = min(round(255 * float(m_pct.group(1)) / 100), 255)
            return webcolors.rgb_to_hex((level, level, level))

        m_rgb = re.fullmatch(r'rgb\(\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})\s*\)', lower)
        if m_rgb:
            return webcolors.rgb_to_hex(tuple(min(int(c), 255) for c in m_rgb.groups()))

        return webcolors.name_to_hex(lower)
    except ValueError:
        logger.error("Unknown CSS color '{}', passing through.", name_or_hex)
        return name_or_hex
