import pytest
from dateutil import tz

import calgrid.settings as settings


@pytest.fixture(autouse=True)
def stable_settings(monkeypatch):
    monkeypatch.setattr(settings, "MIN_VISUAL_DURATION", 15)
    monkeypatch.setattr(settings, "DEBUG_LAYERS", False)
    monkeypatch.setattr(settings, "TZ_LOCAL", tz.UTC)


@pytest.fixture
def utc():
    return tz.UTC


@pytest.fixture
def positioned():
    """Build a time-positioned day entry."""
    def make(id_, start_minute, end_minute):
        return {"id": id_, "start_minute": start_minute, "end_minute": end_minute}
    return make
