from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Optional

from ..core.enums import EventKind, SkipReason, SyncOutcome


def _fmt_time(value: Optional[time]) -> Optional[str]:
    return value.strftime("%H:%M:%S") if value is not None else None


@dataclass(frozen=True)
class GeoStamp:
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: the canonical daily record of one employee."""

    attendance_id: int
    employee_id: int
    date_sched: date
    time_in: Optional[time] = None
    time_out: Optional[time] = None
    break_in: Optional[time] = None
    break_out: Optional[time] = None
    overtime_in: Optional[time] = None
    overtime_out: Optional[time] = None
    geo: GeoStamp = field(default_factory=GeoStamp)
    notes: Optional[str] = None
    photo_url: Optional[str] = None
    updated_at: Optional[datetime] = None

    def time_for(self, kind: EventKind) -> Optional[time]:
        return getattr(self, kind.column)

    def to_dict(self) -> dict:
        out = {
            "attendance_id": self.attendance_id,
            "employee_id": self.employee_id,
            "date_sched": self.date_sched.isoformat(),
        }
        for kind in EventKind:
            out[kind.value] = _fmt_time(self.time_for(kind))
        out.update(
            {
                "latitude": self.geo.latitude,
                "longitude": self.geo.longitude,
                "address": self.geo.address,
                "notes": self.notes,
                "photo_url": self.photo_url,
                "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            }
        )
        return out


@dataclass(frozen=True)
class TimeLogEntry:
    """Raw journal row written alongside every live event."""

    log_id: str
    employee_id: int
    event_type: EventKind
    event_timestamp: datetime
    geo: GeoStamp


@dataclass(frozen=True)
class EventResult:
    kind: EventKind
    time_value: time
    date_sched: date
    created: bool
    log_id: str

    def to_dict(self) -> dict:
        return {
            "event_type": self.kind.value,
            "time": _fmt_time(self.time_value),
            "date_sched": self.date_sched.isoformat(),
            "created": self.created,
            "log_id": self.log_id,
        }


@dataclass(frozen=True)
class AttendanceMerge:
    """Fill-only-if-null update for one (employee, schedule date) produced by a sync."""

    employee_id: int
    date_sched: date
    times: dict[EventKind, time]
    geo: GeoStamp = field(default_factory=GeoStamp)


@dataclass(frozen=True)
class SyncRecord:
    """One validated entry of an offline batch."""

    index: int
    name: Optional[str]
    timestamps: dict[EventKind, datetime]
    geo: GeoStamp

    @property
    def first_event_at(self) -> Optional[datetime]:
        # Kinds iterate in declaration order: time_in first.
        for kind in EventKind:
            if kind in self.timestamps:
                return self.timestamps[kind]
        return None


@dataclass(frozen=True)
class SyncRecordResult:
    index: int
    outcome: SyncOutcome
    reason: Optional[SkipReason] = None
    employee_id: Optional[int] = None
    date_sched: Optional[date] = None

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "outcome": self.outcome.value,
            "reason": self.reason.value if self.reason else None,
            "employee_id": self.employee_id,
            "date_sched": self.date_sched.isoformat() if self.date_sched else None,
        }


@dataclass(frozen=True)
class SyncReport:
    results: list[SyncRecordResult]

    @property
    def accepted(self) -> int:
        return sum(1 for r in self.results if r.outcome == SyncOutcome.ACCEPTED)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.outcome == SyncOutcome.SKIPPED)

    def to_dict(self) -> dict:
        return {
            "received": len(self.results),
            "accepted": self.accepted,
            "skipped": self.skipped,
            "results": [r.to_dict() for r in self.results],
        }
