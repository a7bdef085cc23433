from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from ..employees.model import Employee


@dataclass(frozen=True)
class FaceEmbedding:
    """Domain entity: one enrolled face embedding."""

    entry_id: str
    employee_uuid: str
    embedding: list[float]
    image_url: Optional[str] = None
    expression: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "entry_id": self.entry_id,
            "employee_uuid": self.employee_uuid,
            "embedding": self.embedding,
            "image_url": self.image_url,
            "expression": self.expression,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class EnrolledFace:
    """Read-model: an active embedding joined with its owner."""

    face: FaceEmbedding
    employee_id: str
    name: str


@dataclass(frozen=True)
class IdentityFaces:
    employee: Employee
    faces: Sequence[FaceEmbedding]

    def to_dict(self) -> dict:
        return {
            "employee_id": self.employee.employee_id,
            "uuid": self.employee.uuid,
            "name": self.employee.display_name,
            "faces": [f.to_dict() for f in self.faces],
        }


@dataclass(frozen=True)
class DeletedEmbedding:
    entry_id: str
    employee_uuid: str
    image_url: Optional[str]
    identity_deleted: bool
    # Owner kept for its attendance history; only its public id was cleared.
    identity_unenrolled: bool = False
