from __future__ import annotations

from enum import Enum


class EventKind(str, Enum):
    """The six attendance punch types, one per TIME column of a daily record."""

    TIME_IN = "time_in"
    TIME_OUT = "time_out"
    BREAK_IN = "break_in"
    BREAK_OUT = "break_out"
    OVERTIME_IN = "overtime_in"
    OVERTIME_OUT = "overtime_out"

    @property
    def column(self) -> str:
        return EVENT_COLUMNS[self]


# Closed mapping used to build SQL; the column name never comes from request data.
EVENT_COLUMNS: dict[EventKind, str] = {
    EventKind.TIME_IN: "time_in",
    EventKind.TIME_OUT: "time_out",
    EventKind.BREAK_IN: "break_in",
    EventKind.BREAK_OUT: "break_out",
    EventKind.OVERTIME_IN: "overtime_in",
    EventKind.OVERTIME_OUT: "overtime_out",
}

# Older mobile clients still send the short overtime names.
LEGACY_EVENT_ALIASES: dict[str, EventKind] = {
    "ot_in": EventKind.OVERTIME_IN,
    "ot_out": EventKind.OVERTIME_OUT,
}


class SyncOutcome(str, Enum):
    """Per-record result of an offline batch sync."""

    ACCEPTED = "accepted"
    SKIPPED = "skipped"


class SkipReason(str, Enum):
    MISSING_DATA = "missing_data"
    UNKNOWN_EMPLOYEE = "unknown_employee"
