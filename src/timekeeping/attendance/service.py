from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Callable, Mapping, Optional, Sequence
from zoneinfo import ZoneInfo

from ..common.datetime_utils import now_utc, parse_iso_datetime, split_schedule
from ..common.logger import get_logger
from ..common.validators import optional_coordinate, optional_text
from ..core.constants import DEFAULT_HISTORY_LIMIT, MAX_HISTORY_LIMIT, MAX_SYNC_BATCH_SIZE
from ..core.enums import LEGACY_EVENT_ALIASES, EventKind, SkipReason, SyncOutcome
from ..core.exceptions import NotFoundError, ValidationError
from ..employees.service import IdentityResolver
from .model import (
    AttendanceMerge,
    AttendanceRecord,
    EventResult,
    GeoStamp,
    SyncRecord,
    SyncRecordResult,
    SyncReport,
    TimeLogEntry,
)
from .repository import AttendanceRepository

logger = get_logger("attendance")

# Accepted spellings of each timestamp field in a sync record.
SYNC_FIELD_NAMES: dict[EventKind, tuple[str, ...]] = {
    EventKind.TIME_IN: ("timeIn", "time_in"),
    EventKind.TIME_OUT: ("timeOut", "time_out"),
    EventKind.BREAK_IN: ("breakIn", "break_in"),
    EventKind.BREAK_OUT: ("breakOut", "break_out"),
    EventKind.OVERTIME_IN: ("overtimeIn", "overtime_in", "otIn", "ot_in"),
    EventKind.OVERTIME_OUT: ("overtimeOut", "overtime_out", "otOut", "ot_out"),
}


def parse_event_kind(value: Any) -> EventKind:
    if isinstance(value, EventKind):
        return value
    if isinstance(value, str):
        raw = value.strip()
        if raw in LEGACY_EVENT_ALIASES:
            return LEGACY_EVENT_ALIASES[raw]
        try:
            return EventKind(raw)
        except ValueError:
            pass
    allowed = ", ".join(k.value for k in EventKind)
    raise ValidationError(f"Invalid eventType. Must be one of: {allowed}", kind="InvalidEventKind")


def parse_geo(payload: Mapping[str, Any]) -> GeoStamp:
    return GeoStamp(
        latitude=optional_coordinate(payload.get("latitude"), "latitude", limit=90),
        longitude=optional_coordinate(payload.get("longitude"), "longitude", limit=180),
        address=optional_text(payload.get("address"), "address"),
    )


def _first_present(payload: Mapping[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        value = payload.get(key)
        if value is not None and value != "":
            return value
    return None


class AttendanceService:
    """Merges attendance events into one canonical record per employee and day.

    Live events (``record_event``) are last-write-wins on the touched column.
    Offline batches (``sync_batch``) only fill columns that are still empty.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        identities: IdentityResolver,
        *,
        timezone: ZoneInfo,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._attendance = attendance
        self._identities = identities
        self._tz = timezone
        self._clock = clock

    def record_event(
        self,
        employee_id: int,
        event_kind: Any,
        *,
        occurred_at: Optional[datetime] = None,
        geo: Optional[GeoStamp] = None,
        notes: Optional[str] = None,
        photo_url: Optional[str] = None,
    ) -> EventResult:
        kind = parse_event_kind(event_kind)
        geo = geo or GeoStamp()
        notes = optional_text(notes, "notes", max_len=2000)
        photo_url = optional_text(photo_url, "photoUrl", max_len=512)

        moment = occurred_at or self._clock()
        date_sched, time_value = split_schedule(moment, self._tz)

        log = TimeLogEntry(
            log_id=str(uuid.uuid4()),
            employee_id=int(employee_id),
            event_type=kind,
            event_timestamp=datetime.combine(date_sched, time_value),
            geo=geo,
        )
        # An unknown employee surfaces from the foreign key as NotFoundError.
        created = self._attendance.upsert_event(
            employee_id=int(employee_id),
            date_sched=date_sched,
            kind=kind,
            time_value=time_value,
            geo=geo,
            notes=notes,
            log=log,
            photo_url=photo_url,
        )
        logger.info(
            "Logged %s=%s for employee #%s on %s (%s)",
            kind.value,
            time_value,
            employee_id,
            date_sched,
            "created" if created else "updated",
        )
        return EventResult(kind=kind, time_value=time_value, date_sched=date_sched, created=created, log_id=log.log_id)

    def sync_batch(self, records: Any) -> SyncReport:
        parsed = self._parse_batch(records)

        results: list[SyncRecordResult] = []
        merges: list[AttendanceMerge] = []
        for record in parsed:
            first_at = record.first_event_at
            if not record.name or first_at is None:
                logger.info("Sync record %s skipped: missing name or event timestamp", record.index)
                results.append(SyncRecordResult(record.index, SyncOutcome.SKIPPED, SkipReason.MISSING_DATA))
                continue

            try:
                employee_id = self._identities.id_by_name(record.name)
            except NotFoundError:
                logger.info("Sync record %s skipped: employee %r not resolvable", record.index, record.name)
                results.append(SyncRecordResult(record.index, SyncOutcome.SKIPPED, SkipReason.UNKNOWN_EMPLOYEE))
                continue

            date_sched, _ = split_schedule(first_at, self._tz)
            times = {kind: split_schedule(moment, self._tz)[1] for kind, moment in record.timestamps.items()}
            merges.append(AttendanceMerge(employee_id=employee_id, date_sched=date_sched, times=times, geo=record.geo))
            results.append(
                SyncRecordResult(
                    record.index,
                    SyncOutcome.ACCEPTED,
                    employee_id=employee_id,
                    date_sched=date_sched,
                )
            )

        if merges:
            # One transaction for the whole batch; a failure here discards every merge.
            self._attendance.merge_batch(merges)

        report = SyncReport(results=results)
        logger.info("Synced batch: %s received, %s accepted, %s skipped", len(results), report.accepted, report.skipped)
        return report

    def list_attendance(
        self,
        employee_id: int,
        *,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> Sequence[AttendanceRecord]:
        if date_from and date_to and date_from > date_to:
            raise ValidationError("'from' must not be after 'to'.")
        limit = max(1, min(MAX_HISTORY_LIMIT, int(limit)))
        return self._attendance.list_for_employee(employee_id, date_from=date_from, date_to=date_to, limit=limit)

    def _parse_batch(self, records: Any) -> list[SyncRecord]:
        if not isinstance(records, list) or not records:
            raise ValidationError("records must be a non-empty array.", kind="InvalidBatch")
        if len(records) > MAX_SYNC_BATCH_SIZE:
            raise ValidationError(f"A batch may hold at most {MAX_SYNC_BATCH_SIZE} records.", kind="InvalidBatch")

        parsed: list[SyncRecord] = []
        for index, raw in enumerate(records):
            if not isinstance(raw, dict):
                raise ValidationError(f"Record {index} must be an object.", kind="InvalidBatch")
            try:
                timestamps = {}
                for kind, keys in SYNC_FIELD_NAMES.items():
                    moment = parse_iso_datetime(_first_present(raw, keys), f"records[{index}].{keys[0]}")
                    if moment is not None:
                        timestamps[kind] = moment
                name = raw.get("name")
                parsed.append(
                    SyncRecord(
                        index=index,
                        name=name.strip() if isinstance(name, str) and name.strip() else None,
                        timestamps=timestamps,
                        geo=parse_geo(raw),
                    )
                )
            except ValidationError as exc:
                raise ValidationError(f"Record {index}: {exc.message}", kind="InvalidBatch") from exc
        return parsed
