import hashlib
import json
from collections import OrderedDict

from loguru import logger

from calgrid.config import CalendarConfig
from calgrid.event_processing import prepare_for_view


def compute_items_hash(items, config: CalendarConfig) -> str:
    """
    Content hash of the items plus every setting that changes preparation.
    Values JSON cannot encode are hashed through str().
    """
    h = hashlib.sha256()
    h.update(json.dumps(
        [config.view.value, config.start_field, config.end_field, config.week_starts_on],
    ).encode())
    for item in items:
        h.update(json.dumps(item, sort_keys=True, default=str).encode())
        h.update(b"\x1e")
    return h.hexdigest()


class PreparedDataCache:
    """
    Keeps the last few prepared results so unchanged inputs hand back the
    very same object. Callers must treat results as read-only.
    """

    def __init__(self, maxsize: int = 8, tz_local=None):
        self.maxsize = maxsize
        self.tz_local = tz_local
        self._entries = OrderedDict()

    def __len__(self):
        return len(self._entries)

    def get(self, items, config: CalendarConfig, issues: list | None = None):
        # issues are only collected when the data is actually prepared
        key = compute_items_hash(items, config)
        if key in self._entries:
            self._entries.move_to_end(key)
            logger.debug("Prepared data cache hit for {}", key[:8])
            return self._entries[key]

        prepared = prepare_for_view(
            items, config.view, config.start_field, config.end_field,
            config.week_starts_on, tz_local=self.tz_local, issues=issues,
        )
        self._entries[key] = prepared
        if len(self._entries) > self.maxsize:
            self._entries.popitem(last=False)
        return prepared

    def clear(self):
        self._entries.clear()
