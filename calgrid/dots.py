from loguru import logger

from calgrid.date_keys import day_key
from calgrid.errors import CalendarError, MissingField
from calgrid.utils import css_color_to_hex


def prepare_color_dots(color_dots, tz_local=None, issues: list | None = None) -> dict:
    """
    Index day markers by day key: {"date_keys": {key: marker}}.
    Colours are normalised to hex. A later marker for the same day wins.
    """
    date_keys = {}
    for dot in color_dots or []:
        try:
            if dot.get("date") is None:
                raise MissingField("date")
            key = day_key(dot["date"], tz_local)
        except CalendarError as e:
            logger.warning("Skipping color dot {}: {}", dot, e)
            if issues is not None:
                issues.append((dot, e))
            continue
        date_keys[key] = {**dot, "color": css_color_to_hex(dot.get("color") or "gray")}
    return {"date_keys": date_keys}
