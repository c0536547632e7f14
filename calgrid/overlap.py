import heapq

from loguru import logger

import calgrid.settings as settings
from calgrid.logger import LAYOUT


def _effective_end(start: int, end: int) -> int:
    # Zero-length items still hold their column for a minimum span
    return max(end, start + max(settings.MIN_VISUAL_DURATION, 1))


def resolve_overlaps(day_bucket: list[dict]) -> list[dict]:
    """
    Assign side-by-side columns to the time-positioned items of one day.

    Items are ordered by start minute, longer first on ties, then by input
    order. A sweep gives each item the lowest column no open item holds.
    A cluster is a maximal run of items connected by overlaps; its column
    count is its peak concurrency. Every item comes back as a fresh dict with
    `column`, `columns`, `width` = 1/columns and `left` = column * width, plus
    the same two fractions as CSS percentages.
    """
    order = sorted(
        range(len(day_bucket)),
        key=lambda i: (
            day_bucket[i]["start_minute"],
            -_effective_end(day_bucket[i]["start_minute"], day_bucket[i]["end_minute"]),
            i,
        ),
    )

    active: list[tuple[int, int]] = []   # (end, column)
    free: list[int] = []
    next_col = 0
    clusters: list[list[tuple[int, int]]] = []   # [(index, column)]
    current: list[tuple[int, int]] = []

    for i in order:
        start = day_bucket[i]["start_minute"]
        end = _effective_end(start, day_bucket[i]["end_minute"])

        while active and active[0][0] <= start:
            _, col = heapq.heappop(active)
            heapq.heappush(free, col)

        if not active and current:
            clusters.append(current)
            current, free, next_col = [], [], 0

        if free:
            col = heapq.heappop(free)
        else:
            col = next_col
            next_col += 1

        heapq.heappush(active, (end, col))
        current.append((i, col))

    if current:
        clusters.append(current)

    result = []
    for cluster in clusters:
        columns = max(col for _, col in cluster) + 1
        width = 1 / columns
        for i, col in cluster:
            item = day_bucket[i]
            if settings.DEBUG_LAYERS:
                logger.log(LAYOUT, "  • Column {}/{}: {} [{}→{}]", col, columns,
                           item.get("id"), item["start_minute"], item["end_minute"])
            result.append({
                **item,
                "column": col,
                "columns": columns,
                "width": width,
                "left": col * width,
                "width_css": f"{width * 100:.4g}%",
                "left_css": f"{col * width * 100:.4g}%",
            })
    return result
