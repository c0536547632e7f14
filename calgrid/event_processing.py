from datetime import datetime, time, timedelta
from collections import defaultdict

from loguru import logger

from calgrid.date_keys import cell_key, day_key
from calgrid.errors import CalendarError, ConfigError
from calgrid.layout import clip_to_day
from calgrid.logger import ITEMS
from calgrid.overlap import resolve_overlaps
from calgrid.utils import item_interval, iter_days, js_weekday
from calgrid.views import CurrentView, parse_view


def check_fields(start_field, end_field=None) -> None:
    if not isinstance(start_field, str) or not start_field.strip():
        raise ConfigError(f"Start field must be a non-empty name, got {start_field!r}")
    if end_field is not None and not isinstance(end_field, str):
        raise ConfigError(f"End field must be a name or None, got {end_field!r}")


def check_week_starts_on(week_starts_on) -> int:
    if isinstance(week_starts_on, bool) or not isinstance(week_starts_on, int) \
            or not 0 <= week_starts_on <= 6:
        raise ConfigError(f"week_starts_on must be an integer 0–6, got {week_starts_on!r}")
    return week_starts_on


def _intervals(items, start_field, end_field, tz_local, issues):
    """
    Yield (index, item, start, end) for every item whose interval can be read.
    Broken items are logged, reported through `issues` and left out.
    """
    for idx, item in enumerate(items):
        try:
            start, end = item_interval(item, start_field, end_field, tz_local, issues)
        except CalendarError as e:
            logger.warning("Skipping item {}: {}", item.get("id"), e)
            if issues is not None:
                issues.append((item, e))
            continue
        yield idx, item, start, end


def prepare_calendar_data(items, start_field: str, end_field: str | None = None,
                          week_starts_on: int = 0, *, tz_local=None,
                          issues: list | None = None) -> dict[str, list[dict]]:
    """
    Bucket items by day for the month and week grids.

    A multi-day item is copied into every day it touches. Each copy carries
    - is_start: the copy sits on the item's first day
    - is_row_start: first copy within its week row (rows begin on week_starts_on)
    - length: days this copy spans to the item's end, capped at the row end
    Buckets keep input order.
    """
    check_fields(start_field, end_field)
    check_week_starts_on(week_starts_on)

    buckets = defaultdict(list)
    for _, item, start, end in _intervals(items, start_field, end_field, tz_local, issues):
        first, last = start.date(), end.date()
        for d in iter_days(first, last):
            row_offset = (js_weekday(d) - week_starts_on) % 7
            row_end = d + timedelta(days=6 - row_offset)
            buckets[day_key(d)].append({
                **item,
                "is_start": d == first,
                "is_row_start": d == first or row_offset == 0,
                "length": (min(last, row_end) - d).days + 1,
            })
        logger.log(ITEMS, "Item {} spans {} → {}", item.get("id"), first, last)
    return dict(buckets)


def _time_grid(items, start_field, end_field, tz_local, issues):
    """
    Shared part of the time-grid preparers: clipped minute ranges per day
    (in input order) and the list of multi-day items for the header row.
    """
    days = defaultdict(list)
    week = []
    for _, item, start, end in _intervals(items, start_field, end_field, tz_local, issues):
        first, last = start.date(), end.date()
        # An end at exactly midnight does not reach into that day
        if last > first and end == datetime.combine(last, time.min):
            last -= timedelta(days=1)
        if last > first:
            week.append(dict(item))
        for d in iter_days(first, last):
            start_minute, end_minute = clip_to_day(start, end, d)
            days[day_key(d)].append({
                **item,
                "is_start": d == first,
                "start_minute": start_minute,
                "end_minute": end_minute,
            })
    return days, week


def prepare_calendar_data_with_time(items, start_field: str, end_field: str | None = None,
                                    week_starts_on: int = 0, *, tz_local=None,
                                    issues: list | None = None) -> dict:
    """
    Day and week-with-time views.

    Returns {"day": {day_key: [...]}, "week": [...]}. Day entries are
    positioned by minute (`grid_row`) and laid out side by side with
    resolve_overlaps; "week" holds the multi-day items for the header.
    """
    check_fields(start_field, end_field)
    check_week_starts_on(week_starts_on)

    days, week = _time_grid(items, start_field, end_field, tz_local, issues)
    prepared = {}
    for key, bucket in days.items():
        prepared[key] = [
            {**entry, "grid_row": f"{entry['start_minute'] + 1} / {entry['end_minute'] + 1}"}
            for entry in resolve_overlaps(bucket)
        ]
    return {"day": prepared, "week": week}


def prepare_calendar_data_with_time_reverse(items, start_field: str, end_field: str | None = None,
                                            week_starts_on: int = 0, *, tz_local=None,
                                            issues: list | None = None) -> dict:
    """
    Time grid with the time axis running horizontally.

    Same positioning as prepare_calendar_data_with_time, but minutes map to
    `grid_column` and overlap fractions to `top`/`height`. Entries are also
    grouped by their start hour under "hour".
    """
    check_fields(start_field, end_field)
    check_week_starts_on(week_starts_on)

    days, week = _time_grid(items, start_field, end_field, tz_local, issues)
    prepared = {}
    hours = defaultdict(list)
    for key, bucket in days.items():
        entries = []
        for entry in resolve_overlaps(bucket):
            entry = {
                **entry,
                "grid_column": f"{entry['start_minute'] + 1} / {entry['end_minute'] + 1}",
                "top": entry["left"],
                "height": entry["width"],
            }
            entries.append(entry)
            hours[cell_key(key, min(entry["start_minute"] // 60, 23))].append(entry)
        prepared[key] = entries
    return {"day": prepared, "hour": dict(hours), "week": week}


def prepare_calendar_data_in_place(items, start_field: str, end_field: str | None = None,
                                   week_starts_on: int = 0, *, tz_local=None,
                                   issues: list | None = None) -> dict[str, list[dict]]:
    """
    Day buckets listed chronologically, without minute positioning.
    Ties keep input order.
    """
    check_fields(start_field, end_field)
    check_week_starts_on(week_starts_on)

    rows = []
    for idx, item, start, end in _intervals(items, start_field, end_field, tz_local, issues):
        for d in iter_days(start.date(), end.date()):
            rows.append((day_key(d), start, idx, {**item, "is_start": d == start.date()}))

    buckets = defaultdict(list)
    for key, _, _, entry in sorted(rows, key=lambda r: (r[1], r[2])):
        buckets[key].append(entry)
    return dict(buckets)


PREPARERS = {
    CurrentView.MONTH: prepare_calendar_data,
    CurrentView.WEEK: prepare_calendar_data,
    CurrentView.WEEK_IN_PLACE: prepare_calendar_data_in_place,
    CurrentView.DAY_IN_PLACE: prepare_calendar_data_in_place,
    CurrentView.DAY: prepare_calendar_data_with_time,
    CurrentView.WEEK_TIME: prepare_calendar_data_with_time,
    CurrentView.DAY_REVERSE: prepare_calendar_data_with_time_reverse,
}


def prepare_for_view(items, view, start_field: str, end_field: str | None = None,
                     week_starts_on: int = 0, *, tz_local=None, issues: list | None = None):
    """Pick the preparer for `view` and run it."""
    try:
        view = parse_view(view)
    except ValueError as e:
        raise ConfigError(str(e)) from e
    logger.debug("Preparing {} items for {} view", len(items), view.value)
    return PREPARERS[view](items, start_field, end_field, week_starts_on,
                           tz_local=tz_local, issues=issues)
