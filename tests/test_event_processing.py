import copy

import pytest

from calgrid.errors import ConfigError, EmptyInterval, InvalidDate, MissingField
from calgrid.event_processing import (
    prepare_calendar_data,
    prepare_calendar_data_in_place,
    prepare_calendar_data_with_time,
    prepare_calendar_data_with_time_reverse,
    prepare_for_view,
)
from calgrid.views import CurrentView


def ids(bucket):
    return [entry["id"] for entry in bucket]


# Cell grids (month / week)

def test_multi_day_item_lands_in_every_day(utc):
    items = [{"id": 1, "start": "2024-01-10T10:00", "end": "2024-01-12T10:00"}]

    prepared = prepare_calendar_data(items, "start", "end", week_starts_on=1, tz_local=utc)

    assert sorted(prepared) == ["2024-01-10", "2024-01-11", "2024-01-12"]
    assert prepared["2024-01-10"][0]["is_start"] is True
    assert prepared["2024-01-11"][0]["is_start"] is False
    assert prepared["2024-01-12"][0]["is_start"] is False
    assert prepared["2024-01-10"][0]["length"] == 3
    assert prepared["2024-01-11"][0]["length"] == 2


def test_span_restarts_on_each_week_row(utc):
    # Friday to the following Tuesday
    items = [{"id": 1, "start": "2024-01-12T08:00", "end": "2024-01-16T08:00"}]

    monday_rows = prepare_calendar_data(items, "start", "end", week_starts_on=1, tz_local=utc)
    assert monday_rows["2024-01-12"][0]["length"] == 3
    assert monday_rows["2024-01-15"][0]["is_row_start"] is True
    assert monday_rows["2024-01-15"][0]["is_start"] is False
    assert monday_rows["2024-01-15"][0]["length"] == 2
    assert monday_rows["2024-01-14"][0]["is_row_start"] is False

    sunday_rows = prepare_calendar_data(items, "start", "end", week_starts_on=0, tz_local=utc)
    assert sunday_rows["2024-01-12"][0]["length"] == 2
    assert sunday_rows["2024-01-14"][0]["is_row_start"] is True
    assert sunday_rows["2024-01-14"][0]["length"] == 3


def test_point_event_spans_one_cell(utc):
    prepared = prepare_calendar_data([{"id": 1, "start": "2024-02-01T09:00"}], "start", "end", tz_local=utc)
    assert list(prepared) == ["2024-02-01"]
    assert prepared["2024-02-01"][0]["length"] == 1


def test_cell_buckets_keep_input_order(utc):
    items = [
        {"id": "late", "start": "2024-01-10T15:00", "end": "2024-01-10T16:00"},
        {"id": "early", "start": "2024-01-10T09:00", "end": "2024-01-10T10:00"},
    ]
    prepared = prepare_calendar_data(items, "start", "end", tz_local=utc)
    assert ids(prepared["2024-01-10"]) == ["late", "early"]


def test_broken_items_are_skipped_and_reported(utc):
    items = [
        {"id": 1, "start": "2024-01-10T09:00", "end": "2024-01-10T10:00"},
        {"id": 2, "start": "garbage", "end": "2024-01-10T10:00"},
        {"id": 3, "end": "2024-01-10T10:00"},
        {"id": 4, "start": "2024-01-10T09:00", "end": "also garbage"},
    ]
    issues = []

    prepared = prepare_calendar_data(items, "start", "end", tz_local=utc, issues=issues)

    assert ids(prepared["2024-01-10"]) == [1]
    assert [item["id"] for item, _ in issues] == [2, 3, 4]
    assert isinstance(issues[0][1], InvalidDate)
    assert isinstance(issues[1][1], MissingField)
    assert issues[1][1].field == "start"


def test_end_before_start_becomes_point_event(utc):
    issues = []
    items = [{"id": 1, "start": "2024-01-10T09:00", "end": "2024-01-09T09:00"}]

    prepared = prepare_calendar_data(items, "start", "end", tz_local=utc, issues=issues)

    assert list(prepared) == ["2024-01-10"]
    assert isinstance(issues[0][1], EmptyInterval)


@pytest.mark.parametrize("week_starts_on", [7, -1, "1", True, None])
def test_bad_week_start_fails_the_whole_pass(utc, week_starts_on):
    with pytest.raises(ConfigError):
        prepare_calendar_data([], "start", "end", week_starts_on=week_starts_on, tz_local=utc)


def test_empty_start_field_fails_the_whole_pass(utc):
    with pytest.raises(ConfigError):
        prepare_calendar_data_in_place([], "", "end", tz_local=utc)


def test_source_items_are_not_mutated(utc):
    items = [{"id": 1, "start": "2024-01-10T10:00", "end": "2024-01-12T10:00", "tags": ["x"]}]
    before = copy.deepcopy(items)

    for view in CurrentView:
        prepare_for_view(items, view, "start", "end", 1, tz_local=utc)

    assert items == before


def test_preparation_is_repeatable(utc):
    items = [
        {"id": 1, "start": "2024-01-10T09:00", "end": "2024-01-10T11:00"},
        {"id": 2, "start": "2024-01-10T10:00", "end": "2024-01-11T01:00"},
        {"id": 3, "start": "2024-01-10T10:30"},
    ]
    for view in CurrentView:
        first = prepare_for_view(items, view, "start", "end", 1, tz_local=utc)
        second = prepare_for_view(items, view, "start", "end", 1, tz_local=utc)
        assert first == second


# Time grid

def test_point_event_gets_minimum_visual_duration(utc):
    prepared = prepare_calendar_data_with_time([{"id": 1, "start": "2024-02-01T09:00"}], "start", "end", tz_local=utc)

    entry = prepared["day"]["2024-02-01"][0]
    assert entry["start_minute"] == 540
    assert entry["end_minute"] == 555
    assert entry["grid_row"] == "541 / 556"
    assert prepared["week"] == []


def test_late_point_event_is_cut_at_midnight(utc):
    prepared = prepare_calendar_data_with_time([{"id": 1, "start": "2024-02-01T23:55"}], "start", "end", tz_local=utc)
    entry = prepared["day"]["2024-02-01"][0]
    assert (entry["start_minute"], entry["end_minute"]) == (1435, 1440)


def test_overnight_item_is_clipped_per_day(utc):
    items = [{"id": 1, "start": "2024-01-10T22:00", "end": "2024-01-11T02:00"}]

    prepared = prepare_calendar_data_with_time(items, "start", "end", tz_local=utc)

    first = prepared["day"]["2024-01-10"][0]
    second = prepared["day"]["2024-01-11"][0]
    assert (first["start_minute"], first["end_minute"]) == (1320, 1440)
    assert (second["start_minute"], second["end_minute"]) == (0, 120)
    assert first["is_start"] is True and second["is_start"] is False
    assert ids(prepared["week"]) == [1]


def test_item_ending_at_midnight_stays_on_its_day(utc):
    items = [
        {"id": 1, "start": "2024-01-10T22:00", "end": "2024-01-11T00:00"},
        {"id": 2, "start": "2024-01-10T22:00", "end": "2024-01-12T00:00"},
    ]

    prepared = prepare_calendar_data_with_time(items, "start", "end", tz_local=utc)

    assert sorted(prepared["day"]) == ["2024-01-10", "2024-01-11"]
    assert ids(prepared["day"]["2024-01-11"]) == [2]
    assert (prepared["day"]["2024-01-11"][0]["start_minute"],
            prepared["day"]["2024-01-11"][0]["end_minute"]) == (0, 1440)
    late = [e for e in prepared["day"]["2024-01-10"] if e["id"] == 1][0]
    assert (late["start_minute"], late["end_minute"]) == (1320, 1440)
    assert ids(prepared["week"]) == [2]


def test_time_grid_resolves_overlaps_per_day(utc):
    items = [
        {"id": "b", "start": "2024-01-10T10:00", "end": "2024-01-10T12:00"},
        {"id": "a", "start": "2024-01-10T09:00", "end": "2024-01-10T11:00"},
        {"id": "c", "start": "2024-01-11T10:00", "end": "2024-01-11T12:00"},
    ]

    prepared = prepare_calendar_data_with_time(items, "start", "end", tz_local=utc)

    day = prepared["day"]["2024-01-10"]
    assert ids(day) == ["a", "b"]
    assert [entry["column"] for entry in day] == [0, 1]
    assert {entry["columns"] for entry in day} == {2}
    assert prepared["day"]["2024-01-11"][0]["columns"] == 1


def test_reverse_view_maps_minutes_to_columns(utc):
    items = [
        {"id": "a", "start": "2024-01-10T09:30", "end": "2024-01-10T11:00"},
        {"id": "b", "start": "2024-01-10T10:00", "end": "2024-01-10T10:30"},
        {"id": "n", "start": "2024-01-10T23:00", "end": "2024-01-11T01:00"},
    ]

    prepared = prepare_calendar_data_with_time_reverse(items, "start", "end", tz_local=utc)

    a, b, _ = prepared["day"]["2024-01-10"]
    assert a["grid_column"] == "571 / 661"
    assert "grid_row" not in a
    assert (a["top"], a["height"]) == (0.0, 0.5)
    assert (b["top"], b["height"]) == (0.5, 0.5)
    assert ids(prepared["hour"]["2024-01-10T09:00"]) == ["a"]
    assert ids(prepared["hour"]["2024-01-10T10:00"]) == ["b"]
    assert ids(prepared["hour"]["2024-01-11T00:00"]) == ["n"]
    assert ids(prepared["week"]) == ["n"]


# In place

def test_in_place_orders_chronologically(utc):
    items = [
        {"id": "b", "start": "2024-01-10T15:00", "end": "2024-01-10T16:00"},
        {"id": "a", "start": "2024-01-10T09:00", "end": "2024-01-10T10:00"},
        {"id": "c", "start": "2024-01-10T09:00"},
    ]

    prepared = prepare_calendar_data_in_place(items, "start", "end", tz_local=utc)

    assert ids(prepared["2024-01-10"]) == ["a", "c", "b"]
    assert "start_minute" not in prepared["2024-01-10"][0]


def test_in_place_lists_multi_day_items_on_each_day(utc):
    items = [{"id": 1, "start": "2024-01-10T20:00", "end": "2024-01-11T08:00"}]
    prepared = prepare_calendar_data_in_place(items, "start", "end", tz_local=utc)
    assert prepared["2024-01-10"][0]["is_start"] is True
    assert prepared["2024-01-11"][0]["is_start"] is False


# Dispatch

@pytest.mark.parametrize("view, shape", [
    ("month", "cells"),
    (CurrentView.WEEK, "cells"),
    ("WEEK_IN_PLACE", "cells"),
    ("day_in_place", "cells"),
    ("day", "time"),
    ("week_time", "time"),
    ("day_reverse", "reverse"),
])
def test_prepare_for_view_dispatch(utc, view, shape):
    items = [{"id": 1, "start": "2024-01-10T09:00", "end": "2024-01-10T10:00"}]

    prepared = prepare_for_view(items, view, "start", "end", 1, tz_local=utc)

    if shape == "cells":
        assert list(prepared) == ["2024-01-10"]
    elif shape == "time":
        assert set(prepared) == {"day", "week"}
    else:
        assert set(prepared) == {"day", "hour", "week"}


def test_prepare_for_unknown_view(utc):
    with pytest.raises(ConfigError):
        prepare_for_view([], "year", "start", "end", tz_local=utc)
