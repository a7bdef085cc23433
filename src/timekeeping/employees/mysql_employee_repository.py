from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Employee
from .repository import EmployeeRepository

_COLUMNS = "id, employee_id, first_name, last_name, uuid, position, schedule_type, created_at"


def _to_employee(row: dict) -> Employee:
    return Employee(
        id=int(row["id"]),
        employee_id=row["employee_id"],
        first_name=row["first_name"],
        last_name=row.get("last_name") or "",
        uuid=row.get("uuid"),
        position=row.get("position"),
        schedule_type=row.get("schedule_type"),
        created_at=row.get("created_at"),
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, where: str, value) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE {where}=%s", (value,))
            row = fetchone(cur)
            return _to_employee(row) if row else None

    def get_by_id(self, id: int) -> Optional[Employee]:
        return self._get_one("id", int(id))

    def get_by_employee_id(self, employee_id: str) -> Optional[Employee]:
        return self._get_one("employee_id", employee_id)

    def get_by_uuid(self, uuid: str) -> Optional[Employee]:
        return self._get_one("uuid", uuid)

    def find_ids_by_name(self, first_name: str, last_name: str) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            # BINARY keeps the comparison case-sensitive whatever the column collation.
            cur.execute(
                """
                SELECT id
                FROM employees
                WHERE BINARY first_name=%s AND BINARY last_name=%s
                LIMIT 2
                """,
                (first_name, last_name),
            )
            return [int(r["id"]) for r in fetchall(cur)]

    def create(
        self,
        *,
        employee_id: str,
        first_name: str,
        last_name: str,
        position: Optional[str] = None,
        schedule_type: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO employees(employee_id, first_name, last_name, position, schedule_type)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (employee_id, first_name, last_name, position, schedule_type),
            )
            return int(cur.lastrowid)

    def assign_uuid_if_missing(self, id: int, candidate: str) -> Optional[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE employees SET uuid=%s WHERE id=%s AND uuid IS NULL",
                (candidate, int(id)),
            )
            cur.execute("SELECT uuid FROM employees WHERE id=%s", (int(id),))
            row = fetchone(cur)
            return row["uuid"] if row else None

    def list_all(self) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees ORDER BY id DESC")
            return [_to_employee(r) for r in fetchall(cur)]
