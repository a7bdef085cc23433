from __future__ import annotations

from datetime import date, time
from typing import Optional, Protocol, Sequence

from ..core.enums import EventKind
from .model import AttendanceMerge, AttendanceRecord, GeoStamp, TimeLogEntry


class AttendanceRepository(Protocol):
    def upsert_event(
        self,
        *,
        employee_id: int,
        date_sched: date,
        kind: EventKind,
        time_value: time,
        geo: GeoStamp,
        notes: Optional[str],
        log: TimeLogEntry,
        photo_url: Optional[str] = None,
    ) -> bool:
        """Create-or-update the day's record in one conditional write.

        Overwrites the event column and the geo, notes and photo columns. Returns True
        when a new row was inserted.
        """

        raise NotImplementedError

    def merge_batch(self, merges: Sequence[AttendanceMerge]) -> None:
        """Apply fill-only-if-null merges atomically: all of them or none."""

        raise NotImplementedError

    def get_for_employee_and_date(self, employee_id: int, date_sched: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_employee(
        self,
        employee_id: int,
        *,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        limit: int = 31,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
