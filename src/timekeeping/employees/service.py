from __future__ import annotations

import uuid as uuid_lib
from typing import Optional, Sequence

from ..common.logger import get_logger
from ..common.validators import optional_text, require_non_empty
from ..core.exceptions import ConflictError, NotFoundError
from .model import Employee
from .repository import EmployeeRepository

logger = get_logger("employees")


def split_display_name(name: str) -> tuple[str, str]:
    """Split "First Rest Of Name" into ("First", "Rest Of Name").

    Lossy for multi-word first names; kept for clients that only know a name.
    """

    parts = name.strip().split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


class EmployeeService:
    """Use case: manage employee records (HR)."""

    def __init__(self, employees: EmployeeRepository):
        self._employees = employees

    def create_employee(
        self,
        *,
        employee_id: str,
        first_name: str,
        last_name: str,
        position: Optional[str] = None,
        schedule_type: Optional[str] = None,
    ) -> Employee:
        employee_id = require_non_empty(employee_id, "employee_id")
        first_name = require_non_empty(first_name, "first_name")
        last_name = require_non_empty(last_name, "last_name")
        position = optional_text(position, "position", max_len=100)
        schedule_type = optional_text(schedule_type, "schedule_type", max_len=50)

        if self._employees.get_by_employee_id(employee_id):
            raise ConflictError(f"Employee {employee_id} already exists.", kind="DuplicateEmployee")

        new_id = self._employees.create(
            employee_id=employee_id,
            first_name=first_name,
            last_name=last_name,
            position=position,
            schedule_type=schedule_type,
        )
        logger.info("Created employee %s (id=%s)", employee_id, new_id)
        return Employee(
            id=new_id,
            employee_id=employee_id,
            first_name=first_name,
            last_name=last_name,
            position=position,
            schedule_type=schedule_type,
        )

    def list_employees(self) -> Sequence[Employee]:
        return self._employees.list_all()


class IdentityResolver:
    """Resolves external identifiers to the surrogate id used by attendance."""

    def __init__(self, employees: EmployeeRepository):
        self._employees = employees

    def by_id(self, id: int) -> Employee:
        employee = self._employees.get_by_id(id)
        if not employee:
            raise NotFoundError(f"Employee #{id} does not exist.", kind="UnknownEmployee")
        return employee

    def by_employee_id(self, employee_id: str) -> Employee:
        employee = self._employees.get_by_employee_id(employee_id)
        if not employee:
            raise NotFoundError(f"Employee {employee_id} not found.", kind="UnknownEmployee")
        return employee

    def by_uuid(self, public_id: str) -> Employee:
        employee = self._employees.get_by_uuid(public_id)
        if not employee:
            raise NotFoundError("No employee is enrolled under this identifier.", kind="UnknownEmployee")
        return employee

    def id_by_name(self, name: str) -> int:
        first_name, last_name = split_display_name(name or "")
        if not first_name:
            raise NotFoundError("Employee name is empty.", kind="UnknownEmployee")

        ids = self._employees.find_ids_by_name(first_name, last_name)
        if len(ids) != 1:
            # Ambiguous matches are treated like no match.
            raise NotFoundError(f"Employee '{name}' could not be resolved.", kind="UnknownEmployee")
        return int(ids[0])

    def ensure_public_id(self, employee: Employee) -> str:
        if employee.uuid:
            return employee.uuid

        candidate = str(uuid_lib.uuid4())
        stored = self._employees.assign_uuid_if_missing(employee.id, candidate)
        if stored is None:
            raise NotFoundError(f"Employee {employee.employee_id} not found.", kind="UnknownEmployee")
        if stored != candidate:
            logger.info("Employee %s already received uuid from a concurrent enrollment", employee.employee_id)
        return stored
