from __future__ import annotations

import copy
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

import pytest

from timekeeping.attendance.model import AttendanceRecord, GeoStamp
from timekeeping.attendance.service import AttendanceService
from timekeeping.core.enums import EventKind
from timekeeping.core.exceptions import NotFoundError, TransactionError
from timekeeping.employees.model import Employee
from timekeeping.employees.service import IdentityResolver
from timekeeping.faces.model import DeletedEmbedding, EnrolledFace, FaceEmbedding


class InMemoryEmployees:
    def __init__(self):
        self.by_id: dict[int, Employee] = {}
        self._next_id = 1

    def add(self, employee_id: str, first_name: str, last_name: str, *, id: Optional[int] = None, uuid=None) -> Employee:
        new_id = id if id is not None else self._next_id
        self._next_id = max(self._next_id, new_id) + 1
        emp = Employee(id=new_id, employee_id=employee_id, first_name=first_name, last_name=last_name, uuid=uuid)
        self.by_id[new_id] = emp
        return emp

    def get_by_id(self, id: int) -> Optional[Employee]:
        return self.by_id.get(int(id))

    def get_by_employee_id(self, employee_id: str) -> Optional[Employee]:
        return next((e for e in self.by_id.values() if e.employee_id == employee_id), None)

    def get_by_uuid(self, uuid: str) -> Optional[Employee]:
        return next((e for e in self.by_id.values() if e.uuid and e.uuid == uuid), None)

    def find_ids_by_name(self, first_name: str, last_name: str):
        return [e.id for e in self.by_id.values() if e.first_name == first_name and e.last_name == last_name][:2]

    def create(self, *, employee_id, first_name, last_name, position=None, schedule_type=None) -> int:
        return self.add(employee_id, first_name, last_name).id

    def assign_uuid_if_missing(self, id: int, candidate: str) -> Optional[str]:
        emp = self.by_id.get(int(id))
        if emp is None:
            return None
        if emp.uuid is None:
            self.by_id[emp.id] = Employee(
                id=emp.id,
                employee_id=emp.employee_id,
                first_name=emp.first_name,
                last_name=emp.last_name,
                uuid=candidate,
            )
        return self.by_id[emp.id].uuid

    def clear_uuid(self, id: int) -> None:
        emp = self.by_id[id]
        self.by_id[id] = Employee(id=emp.id, employee_id=emp.employee_id, first_name=emp.first_name, last_name=emp.last_name)

    def delete_by_uuid(self, uuid: str) -> bool:
        emp = self.get_by_uuid(uuid)
        if emp is None:
            return False
        del self.by_id[emp.id]
        return True

    def list_all(self):
        return sorted(self.by_id.values(), key=lambda e: e.id, reverse=True)


class InMemoryAttendance:
    """Mimics the unique key on (employee, date) and the employee foreign key."""

    def __init__(self, employees: InMemoryEmployees):
        self._employees = employees
        self.rows: dict[tuple[int, date], dict] = {}
        self.logs: list = []
        self.fail_on_merge: Optional[int] = None
        self.merge_calls = 0

    def _check_employee(self, employee_id: int) -> None:
        if self._employees.get_by_id(employee_id) is None:
            raise NotFoundError("The referenced employee does not exist.", kind="UnknownEmployee")

    def upsert_event(self, *, employee_id, date_sched, kind, time_value, geo, notes, log, photo_url=None) -> bool:
        self._check_employee(employee_id)
        key = (int(employee_id), date_sched)
        created = key not in self.rows
        row = self.rows.setdefault(key, {})
        row[kind.column] = time_value
        row.update(latitude=geo.latitude, longitude=geo.longitude, address=geo.address, notes=notes, photo_url=photo_url)
        self.logs.append(log)
        return created

    def merge_batch(self, merges) -> None:
        self.merge_calls += 1
        staged = copy.deepcopy(self.rows)
        for n, merge in enumerate(merges):
            if self.fail_on_merge is not None and n == self.fail_on_merge:
                raise TransactionError("The operation failed and was rolled back.")
            self._check_employee(merge.employee_id)
            row = staged.setdefault((merge.employee_id, merge.date_sched), {})
            for kind, value in merge.times.items():
                if row.get(kind.column) is None:
                    row[kind.column] = value
            for field in ("latitude", "longitude", "address"):
                if row.get(field) is None:
                    row[field] = getattr(merge.geo, field)
        self.rows = staged

    def get_for_employee_and_date(self, employee_id: int, date_sched: date) -> Optional[AttendanceRecord]:
        row = self.rows.get((int(employee_id), date_sched))
        if row is None:
            return None
        return AttendanceRecord(
            attendance_id=1,
            employee_id=int(employee_id),
            date_sched=date_sched,
            **{k.column: row.get(k.column) for k in EventKind},
            geo=GeoStamp(row.get("latitude"), row.get("longitude"), row.get("address")),
            notes=row.get("notes"),
            photo_url=row.get("photo_url"),
        )

    def has_history(self, employee_id: int) -> bool:
        return any(e == employee_id for (e, _) in self.rows) or any(log.employee_id == employee_id for log in self.logs)

    def list_for_employee(self, employee_id, *, date_from=None, date_to=None, limit=31):
        dates = sorted((d for (e, d) in self.rows if e == employee_id), reverse=True)
        if date_from:
            dates = [d for d in dates if d >= date_from]
        if date_to:
            dates = [d for d in dates if d <= date_to]
        return [self.get_for_employee_and_date(employee_id, d) for d in dates[:limit]]


class InMemoryFaces:
    def __init__(self, employees: InMemoryEmployees, attendance: InMemoryAttendance):
        self._employees = employees
        self._attendance = attendance
        self.faces: dict[str, FaceEmbedding] = {}
        self.fail_insert = False

    def insert(self, *, entry_id, employee_uuid, embedding, image_url, expression) -> None:
        if self.fail_insert:
            raise TransactionError("The operation failed and was rolled back.")
        self.faces[entry_id] = FaceEmbedding(
            entry_id=entry_id,
            employee_uuid=employee_uuid,
            embedding=list(embedding),
            image_url=image_url,
            expression=expression,
        )

    def register_employee_with_face(
        self, *, employee_id, first_name, last_name, employee_uuid, entry_id, embedding, image_url, expression
    ) -> int:
        emp = self._employees.add(employee_id, first_name, last_name, uuid=employee_uuid)
        self.insert(
            entry_id=entry_id,
            employee_uuid=employee_uuid,
            embedding=embedding,
            image_url=image_url,
            expression=expression,
        )
        return emp.id

    def list_active_for_uuid(self, employee_uuid: str):
        return [f for f in self.faces.values() if f.employee_uuid == employee_uuid and f.is_active]

    def list_all_active(self):
        out = []
        for f in self.faces.values():
            emp = self._employees.get_by_uuid(f.employee_uuid)
            out.append(EnrolledFace(face=f, employee_id=emp.employee_id, name=emp.display_name))
        return out

    def delete_and_cascade(self, entry_id: str) -> Optional[DeletedEmbedding]:
        face = self.faces.pop(entry_id, None)
        if face is None:
            return None
        remaining = [f for f in self.faces.values() if f.employee_uuid == face.employee_uuid]
        identity_deleted = False
        identity_unenrolled = False
        owner = self._employees.get_by_uuid(face.employee_uuid)
        if not remaining and owner is not None:
            if self._attendance.has_history(owner.id):
                self._employees.clear_uuid(owner.id)
                identity_unenrolled = True
            else:
                identity_deleted = self._employees.delete_by_uuid(face.employee_uuid)
        return DeletedEmbedding(
            entry_id=face.entry_id,
            employee_uuid=face.employee_uuid,
            image_url=face.image_url,
            identity_deleted=identity_deleted,
            identity_unenrolled=identity_unenrolled,
        )


class FakeBlobStore:
    def __init__(self):
        self.saved: list[str] = []
        self.deleted: list[str] = []
        self.fail_delete = False
        self.url_prefix = "uploads"
        self.directory = None

    def save(self, upload) -> str:
        url = f"uploads/face-{len(self.saved) + 1}.jpg"
        self.saved.append(url)
        return url

    def delete(self, url: str) -> bool:
        if self.fail_delete:
            raise OSError("disk unavailable")
        self.deleted.append(url)
        return True


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 3, 1, 8, 5, 0)


@pytest.fixture
def employees() -> InMemoryEmployees:
    return InMemoryEmployees()


@pytest.fixture
def attendance_repo(employees) -> InMemoryAttendance:
    return InMemoryAttendance(employees)


@pytest.fixture
def faces_repo(employees, attendance_repo) -> InMemoryFaces:
    return InMemoryFaces(employees, attendance_repo)


@pytest.fixture
def blob_store() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture
def resolver(employees) -> IdentityResolver:
    return IdentityResolver(employees)


@pytest.fixture
def attendance_service(attendance_repo, resolver, fixed_now) -> AttendanceService:
    return AttendanceService(attendance_repo, resolver, timezone=ZoneInfo("UTC"), clock=lambda: fixed_now)


class FakeCursor:
    def __init__(self, conn: "FakeConnection"):
        self._conn = conn
        self._rows: list = []
        self.rowcount = 0
        self.lastrowid = None

    def execute(self, sql, params=None):
        self._conn.executed.append((" ".join(sql.split()), params))
        step = self._conn.responses.pop(0) if self._conn.responses else {}
        if isinstance(step, Exception):
            raise step
        self._rows = step.get("rows", [])
        self.rowcount = step.get("rowcount", 1)
        self.lastrowid = step.get("lastrowid")

    def fetchone(self):
        return self._rows[0] if self._rows else None

    def fetchall(self):
        return list(self._rows)

    def close(self):
        pass


class FakeConnection:
    """Scripted stand-in for a mysql-connector connection.

    Each ``execute`` consumes one entry of ``responses``: a dict with ``rows``,
    ``rowcount`` and ``lastrowid``, or an exception to raise.
    """

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.executed: list[tuple[str, object]] = []
        self.isolation_level = None
        self.commits = 0
        self.rollbacks = 0
        self.closed = False

    def start_transaction(self, isolation_level=None):
        self.isolation_level = isolation_level

    def cursor(self, dictionary=True):
        return FakeCursor(self)

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    def close(self):
        self.closed = True


class FakeConnFactory:
    def __init__(self, *responses, connect_error: Exception | None = None):
        self.conn = FakeConnection(responses)
        self.connect_error = connect_error

    def connect(self):
        if self.connect_error is not None:
            raise self.connect_error
        return self.conn


@pytest.fixture
def fake_db():
    """Build a connection factory whose single connection replays scripted results."""

    return FakeConnFactory
