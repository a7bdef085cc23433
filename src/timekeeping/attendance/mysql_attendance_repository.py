from __future__ import annotations

from datetime import date, time
from typing import Optional, Sequence

from ..common.datetime_utils import normalize_mysql_time
from ..core.enums import EVENT_COLUMNS, EventKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceMerge, AttendanceRecord, GeoStamp, TimeLogEntry
from .repository import AttendanceRepository

_EVENT_COLUMN_LIST = ", ".join(EVENT_COLUMNS[k] for k in EventKind)

_SELECT = f"""
    SELECT id, employee_id, date_sched, {_EVENT_COLUMN_LIST},
           latitude, longitude, address, notes, photo_url, updated_at
    FROM attendance
"""


def _build_upsert_sql(column: str) -> str:
    return f"""
        INSERT INTO attendance (employee_id, date_sched, {column}, latitude, longitude, address, notes, photo_url)
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
        ON DUPLICATE KEY UPDATE
            {column} = %s,
            latitude = %s,
            longitude = %s,
            address = %s,
            notes = %s,
            photo_url = %s
    """


# One prepared statement per event kind, built once from the closed column mapping.
UPSERT_SQL: dict[EventKind, str] = {kind: _build_upsert_sql(column) for kind, column in EVENT_COLUMNS.items()}

_MERGE_COLUMNS = [EVENT_COLUMNS[k] for k in EventKind] + ["latitude", "longitude", "address"]

# A NULL parameter leaves the stored value alone; a stored value is never replaced.
MERGE_SQL = f"""
    INSERT INTO attendance (employee_id, date_sched, {", ".join(_MERGE_COLUMNS)})
    VALUES ({", ".join(["%s"] * (len(_MERGE_COLUMNS) + 2))})
    ON DUPLICATE KEY UPDATE
        {", ".join(f"{c} = COALESCE({c}, %s)" for c in _MERGE_COLUMNS)}
"""

INSERT_TIME_LOG_SQL = """
    INSERT INTO time_logs (log_id, employee_id, event_type, event_timestamp, latitude, longitude, address)
    VALUES (%s, %s, %s, %s, %s, %s, %s)
"""


def _float_or_none(value) -> Optional[float]:
    # DECIMAL columns come back as Decimal.
    return float(value) if value is not None else None


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["id"]),
        employee_id=int(r["employee_id"]),
        date_sched=r["date_sched"],
        time_in=normalize_mysql_time(r.get("time_in")),
        time_out=normalize_mysql_time(r.get("time_out")),
        break_in=normalize_mysql_time(r.get("break_in")),
        break_out=normalize_mysql_time(r.get("break_out")),
        overtime_in=normalize_mysql_time(r.get("overtime_in")),
        overtime_out=normalize_mysql_time(r.get("overtime_out")),
        geo=GeoStamp(
            latitude=_float_or_none(r.get("latitude")),
            longitude=_float_or_none(r.get("longitude")),
            address=r.get("address"),
        ),
        notes=r.get("notes"),
        photo_url=r.get("photo_url"),
        updated_at=r.get("updated_at"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        aux = (geo.latitude, geo.longitude, geo.address, notes, photo_url)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                UPSERT_SQL[kind],
                (int(employee_id), date_sched, time_value) + aux + (time_value,) + aux,
            )
            # MySQL reports 1 affected row for an insert, 2 for an update, 0 when nothing changed.
            created = cur.rowcount == 1
            cur.execute(
                INSERT_TIME_LOG_SQL,
                (
                    log.log_id,
                    int(log.employee_id),
                    log.event_type.value,
                    log.event_timestamp,
                    log.geo.latitude,
                    log.geo.longitude,
                    log.geo.address,
                ),
            )
            return created

    def merge_batch(self, merges: Sequence[AttendanceMerge]) -> None:
        with db_cursor(self._conn_factory, isolation_level="READ COMMITTED") as (_, cur):
            for merge in merges:
                values = [merge.times.get(k) for k in EventKind] + [
                    merge.geo.latitude,
                    merge.geo.longitude,
                    merge.geo.address,
                ]
                cur.execute(
                    MERGE_SQL,
                    tuple([int(merge.employee_id), merge.date_sched] + values + values),
                )

    def get_for_employee_and_date(self, employee_id: int, date_sched: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE employee_id=%s AND date_sched=%s",
                (int(employee_id), date_sched),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def list_for_employee(
        self,
        employee_id: int,
        *,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        limit: int = 31,
    ) -> Sequence[AttendanceRecord]:
        clauses = ["employee_id=%s"]
        params: list[object] = [int(employee_id)]

        if date_from is not None:
            clauses.append("date_sched >= %s")
            params.append(date_from)
        if date_to is not None:
            clauses.append("date_sched <= %s")
            params.append(date_to)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + f" WHERE {where} ORDER BY date_sched DESC LIMIT %s",
                tuple(params + [int(limit)]),
            )
            return [_to_record(r) for r in fetchall(cur)]
