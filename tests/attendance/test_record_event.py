from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from timekeeping.attendance.model import GeoStamp
from timekeeping.attendance.service import AttendanceService
from timekeeping.core.enums import EventKind
from timekeeping.core.exceptions import NotFoundError, ValidationError


@pytest.mark.parametrize("kind", list(EventKind))
def test_second_event_of_same_kind_wins(attendance_service, attendance_repo, employees, kind):
    emp = employees.add("E-1", "Jane", "Doe")

    attendance_service.record_event(emp.id, kind, occurred_at=datetime(2024, 3, 1, 8, 0, 0))
    attendance_service.record_event(emp.id, kind, occurred_at=datetime(2024, 3, 1, 9, 30, 15))

    rec = attendance_repo.get_for_employee_and_date(emp.id, date(2024, 3, 1))
    assert rec.time_for(kind) == time(9, 30, 15)


def test_time_in_then_time_out_builds_one_daily_row(attendance_service, attendance_repo, employees):
    employees.add("E-42", "Ana", "Cruz", id=42)

    first = attendance_service.record_event(42, "time_in", occurred_at=datetime(2024, 3, 1, 8, 5, 0))
    second = attendance_service.record_event(42, "time_out", occurred_at=datetime(2024, 3, 1, 17, 2, 0))

    assert first.created is True
    assert second.created is False
    assert list(attendance_repo.rows) == [(42, date(2024, 3, 1))]
    rec = attendance_repo.get_for_employee_and_date(42, date(2024, 3, 1))
    assert rec.time_in == time(8, 5, 0)
    assert rec.time_out == time(17, 2, 0)
    assert rec.break_in is None


def test_new_row_sets_only_the_event_column(attendance_service, attendance_repo, employees):
    emp = employees.add("E-1", "Jane", "Doe")

    attendance_service.record_event(emp.id, EventKind.BREAK_IN, occurred_at=datetime(2024, 3, 1, 12, 0, 0))

    rec = attendance_repo.get_for_employee_and_date(emp.id, date(2024, 3, 1))
    assert rec.break_in == time(12, 0)
    assert [k for k in EventKind if rec.time_for(k) is not None] == [EventKind.BREAK_IN]


def test_geo_notes_and_photo_are_last_write_wins(attendance_service, attendance_repo, employees):
    emp = employees.add("E-1", "Jane", "Doe")

    attendance_service.record_event(
        emp.id,
        "time_in",
        occurred_at=datetime(2024, 3, 1, 8, 0),
        geo=GeoStamp(14.5, 121.0, "Main office"),
        notes="early",
        photo_url="uploads/in.jpg",
    )
    rec = attendance_repo.get_for_employee_and_date(emp.id, date(2024, 3, 1))
    assert rec.photo_url == "uploads/in.jpg"

    attendance_service.record_event(emp.id, "time_out", occurred_at=datetime(2024, 3, 1, 17, 0))

    rec = attendance_repo.get_for_employee_and_date(emp.id, date(2024, 3, 1))
    assert rec.geo == GeoStamp()
    assert rec.notes is None
    assert rec.photo_url is None


def test_unknown_employee_is_not_found_and_nothing_persisted(attendance_service, attendance_repo):
    with pytest.raises(NotFoundError) as exc:
        attendance_service.record_event(999, "time_in", occurred_at=datetime(2024, 3, 1, 8, 0))

    assert exc.value.kind == "UnknownEmployee"
    assert attendance_repo.rows == {}
    assert attendance_repo.logs == []


def test_invalid_kind_is_rejected_before_any_write(attendance_service, attendance_repo, employees):
    emp = employees.add("E-1", "Jane", "Doe")

    with pytest.raises(ValidationError) as exc:
        attendance_service.record_event(emp.id, "lunch", occurred_at=datetime(2024, 3, 1, 8, 0))

    assert exc.value.kind == "InvalidEventKind"
    assert attendance_repo.rows == {}


def test_legacy_overtime_alias_is_normalized(attendance_service, attendance_repo, employees):
    emp = employees.add("E-1", "Jane", "Doe")

    result = attendance_service.record_event(emp.id, "ot_in", occurred_at=datetime(2024, 3, 1, 18, 0))

    assert result.kind == EventKind.OVERTIME_IN
    assert attendance_repo.get_for_employee_and_date(emp.id, date(2024, 3, 1)).overtime_in == time(18, 0)


def test_missing_timestamp_uses_clock(attendance_service, attendance_repo, employees, fixed_now):
    emp = employees.add("E-1", "Jane", "Doe")

    result = attendance_service.record_event(emp.id, "time_in")

    assert result.date_sched == fixed_now.date()
    assert result.time_value == fixed_now.time()
    assert attendance_repo.logs[0].event_timestamp == fixed_now


def test_schedule_date_follows_business_timezone(attendance_repo, resolver, employees):
    emp = employees.add("E-1", "Jane", "Doe")
    svc = AttendanceService(attendance_repo, resolver, timezone=ZoneInfo("Asia/Manila"))

    # 23:30 UTC on Feb 29 is 07:30 on Mar 1 in Manila (UTC+8).
    result = svc.record_event(
        emp.id,
        "time_in",
        occurred_at=datetime(2024, 2, 29, 23, 30, 12, 999000, tzinfo=timezone.utc),
    )

    assert result.date_sched == date(2024, 3, 1)
    assert result.time_value == time(7, 30, 12)


def test_offset_timestamps_are_converted(attendance_service, employees):
    emp = employees.add("E-1", "Jane", "Doe")
    tz = timezone(timedelta(hours=-5))

    result = attendance_service.record_event(emp.id, "time_out", occurred_at=datetime(2024, 3, 1, 21, 0, tzinfo=tz))

    assert result.date_sched == date(2024, 3, 2)
    assert result.time_value == time(2, 0)
