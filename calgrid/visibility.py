from datetime import date, timedelta

from calgrid.date_keys import day_key
from calgrid.layout import visible_range
from calgrid.views import CELL_VIEWS, SPANNING_VIEWS, CellDisplayMode, parse_display_mode, parse_view

# Fields the preparers add; they differ between copies of the same item
_COMPUTED = frozenset({"is_start", "is_row_start", "length"})


def should_collapse(mode, view, key: str) -> bool:
    """
    Whether the cell `key` shows only its last item.

    `mode` is a display mode applied to every cell view, or a per-view
    mapping {view: {"state": mode, "inactive_cells": keys}} in which listed
    cell keys get the opposite of the view's state. Time-grid views never
    collapse.
    """
    view = parse_view(view)
    if view not in CELL_VIEWS:
        return False
    if not isinstance(mode, dict):
        return parse_display_mode(mode) == CellDisplayMode.COLLAPSE

    entry = mode.get(view) or mode.get(view.value)
    if not entry:
        return False
    collapsed = parse_display_mode(entry.get("state", CellDisplayMode.SHOW_ALL)) == CellDisplayMode.COLLAPSE
    if key in entry.get("inactive_cells", ()):
        collapsed = not collapsed
    return collapsed


def visible_items(bucket: list[dict] | None, collapsed: bool) -> list[dict]:
    """The whole bucket, or just its last entry when the cell is collapsed."""
    bucket = bucket or []
    return bucket[-1:] if collapsed else list(bucket)


def _same_item(a: dict, b: dict, id_field: str) -> bool:
    if a.get(id_field) is not None:
        return a.get(id_field) == b.get(id_field)
    strip = lambda e: {k: v for k, v in e.items() if k not in _COMPUTED}
    return strip(a) == strip(b)


def should_show_item(item: dict, key: str, mode, view, bucket_map: dict, anchor_date,
                     week_starts_on: int = 0, id_field: str = "id") -> bool:
    """
    Whether one prepared copy of an item is drawn in cell `key`.

    In the month and week grids a multi-day item is drawn once per row as a
    wide block, so a later copy is hidden when the previous day's cell holds
    the item and showed it in full. A collapsed cell draws one entry spanning
    a single day, so the copy after it is drawn again. The displayed period
    is taken from `anchor_date`: the first displayed day always draws its
    copies. Collapsed cells draw their single entry on their own.
    """
    view = parse_view(view)
    if view not in SPANNING_VIEWS or should_collapse(mode, view, key):
        return True
    if item.get("is_start") or item.get("is_row_start"):
        return True

    d = date.fromisoformat(key[:10])
    first_visible, _ = visible_range(view, anchor_date, week_starts_on)
    if d <= first_visible:
        return True

    previous_key = day_key(d - timedelta(days=1))
    if should_collapse(mode, view, previous_key):
        return True
    previous = bucket_map.get(previous_key, [])
    return not any(_same_item(item, other, id_field) for other in previous)
