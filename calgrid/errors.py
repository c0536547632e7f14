class CalendarError(ValueError):
    """Base class for everything the preparation engine reports."""


class ConfigError(CalendarError):
    """Configuration that invalidates a whole preparation pass."""


class MissingField(CalendarError):
    def __init__(self, field: str):
        super().__init__(f"Item has no '{field}' field")
        self.field = field


class InvalidDate(CalendarError):
    def __init__(self, field: str | None, value):
        super().__init__(f"Cannot parse {value!r} as a timestamp (field: {field})")
        self.field = field
        self.value = value


class EmptyInterval(CalendarError):
    """Start after end. Not fatal: the item becomes a point event."""

    def __init__(self, start, end):
        super().__init__(f"Interval starts after it ends: {start} > {end}")
        self.start = start
        self.end = end
