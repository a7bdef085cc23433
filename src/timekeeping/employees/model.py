from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Employee:
    """Domain entity: an employee.

    ``id`` is the surrogate key used for attendance joins, ``employee_id`` the
    business identifier HR hands out, ``uuid`` the public identifier shared with
    face-recognition clients (assigned on first enrollment).
    """

    id: int
    employee_id: str
    first_name: str
    last_name: str
    uuid: Optional[str] = None
    position: Optional[str] = None
    schedule_type: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "name": self.display_name,
            "uuid": self.uuid,
            "position": self.position,
            "schedule_type": self.schedule_type,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
