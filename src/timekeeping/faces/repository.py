from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import DeletedEmbedding, EnrolledFace, FaceEmbedding


class FaceEmbeddingRepository(Protocol):
    def insert(
        self,
        *,
        entry_id: str,
        employee_uuid: str,
        embedding: Sequence[float],
        image_url: Optional[str],
        expression: Optional[str],
    ) -> None:
        raise NotImplementedError

    def register_employee_with_face(
        self,
        *,
        employee_id: str,
        first_name: str,
        last_name: str,
        employee_uuid: str,
        entry_id: str,
        embedding: Sequence[float],
        image_url: Optional[str],
        expression: Optional[str],
    ) -> int:
        """Create an employee and its first embedding in one transaction."""

        raise NotImplementedError

    def list_active_for_uuid(self, employee_uuid: str) -> Sequence[FaceEmbedding]:
        raise NotImplementedError

    def list_all_active(self) -> Sequence[EnrolledFace]:
        raise NotImplementedError

    def delete_and_cascade(self, entry_id: str) -> Optional[DeletedEmbedding]:
        """Delete one embedding; remove its owner when no embedding is left.

        An owner with attendance or time-log rows keeps its record and only
        loses its public uuid. Returns None when the entry does not exist.
        """

        raise NotImplementedError
