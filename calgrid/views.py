from enum import Enum


class CurrentView(str, Enum):
    MONTH = "month"
    WEEK = "week"
    WEEK_IN_PLACE = "week_in_place"
    DAY_IN_PLACE = "day_in_place"
    DAY = "day"
    WEEK_TIME = "week_time"
    DAY_REVERSE = "day_reverse"


class CellDisplayMode(str, Enum):
    SHOW_ALL = "show-all"
    COLLAPSE = "collapse"


# Views drawn as a grid of day (or day+hour) cells
CELL_VIEWS = frozenset({
    CurrentView.MONTH,
    CurrentView.WEEK,
    CurrentView.WEEK_IN_PLACE,
    CurrentView.DAY_IN_PLACE,
})
# Views whose items span several cells of one row
SPANNING_VIEWS = frozenset({CurrentView.MONTH, CurrentView.WEEK})
TIME_GRID_VIEWS = frozenset({CurrentView.DAY, CurrentView.WEEK_TIME, CurrentView.DAY_REVERSE})


def parse_view(raw) -> CurrentView:
    """Accept a CurrentView, its value ("week_time") or its name ("WEEK_TIME")."""
    if isinstance(raw, CurrentView):
        return raw
    s = str(raw).strip()
    try:
        return CurrentView(s.lower())
    except ValueError:
        try:
            return CurrentView[s.upper()]
        except KeyError:
            raise ValueError(f"Unknown calendar view: {raw!r}") from None


def parse_display_mode(raw) -> CellDisplayMode:
    if isinstance(raw, CellDisplayMode):
        return raw
    s = str(raw).strip().lower().replace("_", "-")
    try:
        return CellDisplayMode(s)
    except ValueError:
        raise ValueError(f"Unknown cell display mode: {raw!r}") from None
