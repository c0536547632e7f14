import calendar
from datetime import datetime, date, timedelta

from loguru import logger

import calgrid.settings as settings
from calgrid.date_keys import day_key
from calgrid.errors import CalendarError
from calgrid.utils import item_interval, iter_days, js_weekday, parse_timestamp
from calgrid.views import CurrentView, parse_view

MINUTES_PER_DAY = 24 * 60


def minute_of_day(dt: datetime) -> int:
    return dt.hour * 60 + dt.minute


def clip_to_day(start: datetime, end: datetime, day: date,
                min_duration: int | None = None) -> tuple[int, int]:
    """
    Minutes-from-midnight of the part of [start, end] that falls on `day`,
    clipped to [0, 1440]. Segments shorter than `min_duration` are widened
    forward; the start is never moved, so near midnight the block is shorter.
    """
    if min_duration is None:
        min_duration = settings.MIN_VISUAL_DURATION
    start_minute = 0 if start.date() < day else minute_of_day(start)
    end_minute = MINUTES_PER_DAY if end.date() > day else minute_of_day(end)

    if end_minute - start_minute < min_duration:
        end_minute = min(start_minute + min_duration, MINUTES_PER_DAY)
    return start_minute, end_minute


def start_of_week(d: date, week_starts_on: int = 0) -> date:
    return d - timedelta(days=(js_weekday(d) - week_starts_on) % 7)


def get_date_info(d: date, current_month: int, today: date | None = None) -> dict:
    """DateInfo for one displayed day. `current_month` is 1–12."""
    if today is None:
        today = datetime.now(tz=settings.TZ_LOCAL).date()
    return {
        "day": d.day,
        "month": d.month,
        "year": d.year,
        "is_current_month": d.month == current_month,
        "is_current_day": d == today,
        "date": day_key(d),
    }


def week_dates(anchor, week_starts_on: int = 0, today: date | None = None) -> list[dict]:
    """The seven DateInfo of the week containing `anchor`."""
    anchor = parse_timestamp(anchor).date()
    first = start_of_week(anchor, week_starts_on)
    return [get_date_info(first + timedelta(days=i), anchor.month, today) for i in range(7)]


def month_dates(anchor, week_starts_on: int = 0, today: date | None = None) -> list[list[dict]]:
    """
    Whole weeks covering the month of `anchor`, as rows of seven DateInfo.
    Days from the neighbouring months are flagged is_current_month=False.
    """
    anchor = parse_timestamp(anchor).date()
    first = start_of_week(anchor.replace(day=1), week_starts_on)
    last_of_month = anchor.replace(day=calendar.monthrange(anchor.year, anchor.month)[1])
    last = start_of_week(last_of_month, week_starts_on) + timedelta(days=6)

    days = [get_date_info(d, anchor.month, today) for d in iter_days(first, last)]
    return [days[i:i + 7] for i in range(0, len(days), 7)]


def day_of_week_date(anchor, index: int, week_starts_on: int = 0) -> date:
    """Date behind the `index`-th weekday header of the week containing `anchor`."""
    anchor = parse_timestamp(anchor).date()
    return start_of_week(anchor, week_starts_on) + timedelta(days=index)


def visible_range(view, anchor, week_starts_on: int = 0) -> tuple[date, date]:
    """First and last day the given view displays around `anchor`."""
    view = parse_view(view)
    anchor = parse_timestamp(anchor).date()

    if view == CurrentView.MONTH:
        rows = month_dates(anchor, week_starts_on, today=anchor)
        return (date.fromisoformat(rows[0][0]["date"]),
                date.fromisoformat(rows[-1][-1]["date"]))
    if view in (CurrentView.WEEK, CurrentView.WEEK_IN_PLACE, CurrentView.WEEK_TIME):
        first = start_of_week(anchor, week_starts_on)
        return first, first + timedelta(days=6)
    return anchor, anchor


def compute_header_span(week_start, week_end, item_start, item_end,
                        week_starts_on: int = 0, tz_local=None) -> dict | None:
    """
    Place an item in the header row of a displayed week.

    Returns None when the item does not touch [week_start, week_end].
    Otherwise `grid_column` is an inclusive-start, exclusive-end line range
    ("2 / 5") where column 1 is the configured first day of the week, and
    the is_from_previous / is_from_next flags tell whether the item was cut
    at the week's edges.
    """
    first = parse_timestamp(week_start, tz_local).date()
    last = parse_timestamp(week_end, tz_local).date()
    start = parse_timestamp(item_start, tz_local, "start")
    end = start if item_end in (None, "") else parse_timestamp(item_end, tz_local, "end")
    end = max(end, start)

    seg_start = max(start.date(), first)
    seg_end = min(end.date(), last)
    if seg_start > seg_end:
        return None

    col_start = (js_weekday(seg_start) - week_starts_on) % 7 + 1
    col_end = col_start + (seg_end - seg_start).days
    return {
        "grid_column": f"{col_start} / {col_end + 1}",
        "is_from_previous": start.date() < first,
        "is_from_next": end.date() > last,
    }


def header_spans(items, week_start, week_end, start_field: str, end_field: str | None,
                 week_starts_on: int = 0, tz_local=None, issues: list | None = None) -> list[tuple]:
    """
    Header spans for a whole header list, in input order, as (item, span)
    pairs. Items outside the week are left out; malformed ones are skipped
    and reported through `issues`.
    """
    spans = []
    for item in items:
        try:
            start, end = item_interval(item, start_field, end_field, tz_local, issues)
        except CalendarError as e:
            logger.warning("Skipping header item {}: {}", item.get("id"), e)
            if issues is not None:
                issues.append((item, e))
            continue
        span = compute_header_span(week_start, week_end, start, end, week_starts_on, tz_local)
        if span is not None:
            spans.append((item, span))
    return spans
