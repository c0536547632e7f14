from dataclasses import dataclass, field
from datetime import date

import yaml
from loguru import logger

import calgrid.settings as settings
from calgrid.errors import ConfigError, InvalidDate
from calgrid.event_processing import check_week_starts_on
from calgrid.settings import parse_weekday
from calgrid.utils import parse_timestamp
from calgrid.views import CellDisplayMode, CurrentView, parse_display_mode, parse_view


@dataclass(frozen=True)
class CalendarConfig:
    start_field: str
    end_field: str | None
    week_starts_on: int = 0
    view: CurrentView = CurrentView.MONTH
    # A CellDisplayMode, or {CurrentView: {"state": CellDisplayMode, "inactive_cells": frozenset}}
    cell_display_mode: object = CellDisplayMode.SHOW_ALL
    anchor_date: date | None = field(default=None)


def parse_active_time_date_field(raw) -> tuple[str, str | None]:
    """
    Split a "start-end" field pair. Whitespace is dropped, so "from - to"
    gives ("from", "to"); a bare "start" has no end field.
    """
    if not isinstance(raw, str):
        raise ConfigError(f"active_time_date_field must be a string, got {raw!r}")
    parts = ["".join(p.split()) for p in raw.split("-")]
    if len(parts) > 2 or not parts[0]:
        raise ConfigError(f"Cannot read a start-end field pair from {raw!r}")
    end = parts[1] if len(parts) == 2 and parts[1] else None
    return parts[0], end


def _parse_cell_display_mode(raw):
    try:
        if not isinstance(raw, dict):
            return parse_display_mode(raw)
        modes = {}
        for view_name, entry in raw.items():
            entry = entry if isinstance(entry, dict) else {"state": entry}
            modes[parse_view(view_name)] = {
                "state": parse_display_mode(entry.get("state", CellDisplayMode.SHOW_ALL)),
                "inactive_cells": frozenset(entry.get("inactive_cells") or ()),
            }
        return modes
    except ValueError as e:
        raise ConfigError(str(e)) from e


def _parse_week_starts_on(raw) -> int:
    if isinstance(raw, str):
        try:
            raw = parse_weekday(raw)
        except ValueError as e:
            raise ConfigError(str(e)) from e
    return check_week_starts_on(raw)


def config_from_mapping(data: dict | None) -> CalendarConfig:
    """
    Build a validated CalendarConfig. Keys that are absent fall back to the
    environment-driven defaults in calgrid.settings.
    """
    data = data or {}
    start_field, end_field = parse_active_time_date_field(
        data.get("active_time_date_field", settings.ACTIVE_TIME_DATE_FIELD))

    try:
        view = parse_view(data.get("view", settings.DEFAULT_VIEW))
    except ValueError as e:
        raise ConfigError(str(e)) from e

    anchor = data.get("anchor_date")
    if anchor is not None:
        try:
            anchor = parse_timestamp(anchor, field="anchor_date").date()
        except InvalidDate as e:
            raise ConfigError(str(e)) from e

    config = CalendarConfig(
        start_field=start_field,
        end_field=end_field,
        week_starts_on=_parse_week_starts_on(data.get("week_starts_on", settings.WEEK_STARTS_ON)),
        view=view,
        cell_display_mode=_parse_cell_display_mode(
            data.get("cell_display_mode", settings.CELL_DISPLAY_MODE)),
        anchor_date=anchor,
    )
    logger.debug("Calendar config: {}", config)
    return config


def load_config(path: str = "calendar.yaml") -> CalendarConfig:
    """Load a calendar config from YAML."""
    with open(path, 'r', encoding='utf-8') as f:
        logger.debug("Loading configuration from {}", path)
        data = yaml.safe_load(f)
    if data is not None and not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at the top level")
    return config_from_mapping(data)
