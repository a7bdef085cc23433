from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Employee


class EmployeeRepository(Protocol):
    """Repository interface for employees.

    Services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, id: int) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_employee_id(self, employee_id: str) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_uuid(self, uuid: str) -> Optional[Employee]:
        raise NotImplementedError

    def find_ids_by_name(self, first_name: str, last_name: str) -> Sequence[int]:
        """Exact, case-sensitive match on both name parts."""

        raise NotImplementedError

    def create(
        self,
        *,
        employee_id: str,
        first_name: str,
        last_name: str,
        position: Optional[str] = None,
        schedule_type: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def assign_uuid_if_missing(self, id: int, candidate: str) -> Optional[str]:
        """Store ``candidate`` only if the employee has no uuid yet.

        Returns the uuid that is stored afterwards (which may be another
        caller's), or None when the employee does not exist.
        """

        raise NotImplementedError

    def list_all(self) -> Sequence[Employee]:
        raise NotImplementedError
