from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .common.datetime_utils import load_timezone
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.repository import EmployeeRepository
from .employees.service import EmployeeService, IdentityResolver
from .faces.blob_store import LocalBlobStore
from .faces.mysql_face_repository import MySQLFaceEmbeddingRepository
from .faces.repository import FaceEmbeddingRepository
from .faces.service import FaceService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    employees_repo: EmployeeRepository
    attendance_repo: AttendanceRepository
    faces_repo: FaceEmbeddingRepository
    blob_store: LocalBlobStore

    identity_resolver: IdentityResolver
    employee_service: EmployeeService
    attendance_service: AttendanceService
    face_service: FaceService


def wire_services(
    *,
    conn: Optional[DatabaseConnection],
    employees_repo: EmployeeRepository,
    attendance_repo: AttendanceRepository,
    faces_repo: FaceEmbeddingRepository,
    blob_store: LocalBlobStore,
    timezone_name: str = "UTC",
) -> Container:
    identity_resolver = IdentityResolver(employees_repo)
    return Container(
        conn=conn,
        employees_repo=employees_repo,
        attendance_repo=attendance_repo,
        faces_repo=faces_repo,
        blob_store=blob_store,
        identity_resolver=identity_resolver,
        employee_service=EmployeeService(employees_repo),
        attendance_service=AttendanceService(
            attendance_repo,
            identity_resolver,
            timezone=load_timezone(timezone_name),
        ),
        face_service=FaceService(faces_repo, employees_repo, identity_resolver, blob_store),
    )


def build_container(
    *,
    db_config: dict,
    lock_timeout: int,
    upload_dir: str | Path,
    upload_url_prefix: str,
    timezone_name: str,
) -> Container:
    conn = DatabaseConnection(DBConfig.from_mapping(db_config, lock_timeout=lock_timeout))
    return wire_services(
        conn=conn,
        employees_repo=MySQLEmployeeRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        faces_repo=MySQLFaceEmbeddingRepository(conn),
        blob_store=LocalBlobStore(upload_dir, url_prefix=upload_url_prefix),
        timezone_name=timezone_name,
    )
