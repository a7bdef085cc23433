from __future__ import annotations

import json
import uuid
from typing import Any, Optional

import numpy as np
from werkzeug.datastructures import FileStorage

from ..common.logger import get_logger
from ..common.validators import optional_text, require_non_empty
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..employees.repository import EmployeeRepository
from ..employees.service import IdentityResolver, split_display_name
from .blob_store import BlobStore
from .model import FaceEmbedding, IdentityFaces
from .repository import FaceEmbeddingRepository

logger = get_logger("faces")


def parse_embedding(value: Any) -> list[float]:
    """Accept a JSON array (or its string form) of finite numbers.

    Vectors are stored as sent; comparing them is the client's job.
    """

    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            raise ValidationError("embedding must be a JSON array of numbers.", kind="InvalidEmbedding") from None

    if not isinstance(value, (list, tuple)) or not value:
        raise ValidationError("embedding must be a non-empty array of numbers.", kind="InvalidEmbedding")
    if any(isinstance(v, bool) for v in value):
        raise ValidationError("embedding must contain only numbers.", kind="InvalidEmbedding")

    try:
        vector = np.asarray(value, dtype=np.float64)
    except (TypeError, ValueError):
        raise ValidationError("embedding must contain only numbers.", kind="InvalidEmbedding") from None
    if vector.ndim != 1:
        raise ValidationError("embedding must be a 1D vector.", kind="InvalidEmbedding")
    if not np.all(np.isfinite(vector)):
        raise ValidationError("embedding contains NaN or infinite values.", kind="InvalidEmbedding")
    return vector.tolist()


class FaceService:
    """Use cases: enroll, list and delete face embeddings."""

    def __init__(
        self,
        faces: FaceEmbeddingRepository,
        employees: EmployeeRepository,
        identities: IdentityResolver,
        blobs: BlobStore,
    ):
        self._faces = faces
        self._employees = employees
        self._identities = identities
        self._blobs = blobs

    def enroll(
        self,
        *,
        employee_id: str,
        embedding: Any,
        image: Optional[FileStorage],
        expression: Optional[str] = None,
    ) -> FaceEmbedding:
        employee_id = require_non_empty(employee_id, "employee_id")
        vector = parse_embedding(embedding)
        expression = optional_text(expression, "expression", max_len=50)
        if image is None or not image.filename:
            raise ValidationError("An image file is required.", kind="MissingImage")

        employee = self._identities.by_employee_id(employee_id)
        public_id = self._identities.ensure_public_id(employee)

        image_url = self._blobs.save(image)
        entry_id = str(uuid.uuid4())
        try:
            self._faces.insert(
                entry_id=entry_id,
                employee_uuid=public_id,
                embedding=vector,
                image_url=image_url,
                expression=expression,
            )
        except Exception:
            self._discard_blob(image_url)
            raise

        logger.info("Enrolled face %s for employee %s", entry_id, employee_id)
        return FaceEmbedding(
            entry_id=entry_id,
            employee_uuid=public_id,
            embedding=vector,
            image_url=image_url,
            expression=expression,
        )

    def register(
        self,
        *,
        name: str,
        employee_id: Optional[str],
        embedding: Any,
        image_url: Optional[str] = None,
        expression: Optional[str] = None,
    ) -> tuple[str, FaceEmbedding]:
        """Create a new employee together with its first embedding.

        Without an explicit ``employee_id`` the public uuid doubles as business id.
        """

        name = require_non_empty(name, "name")
        vector = parse_embedding(embedding)
        image_url = optional_text(image_url, "imageUrl", max_len=512)
        expression = optional_text(expression, "expression", max_len=50)

        first_name, last_name = split_display_name(name)
        public_id = str(uuid.uuid4())
        employee_id = optional_text(employee_id, "employee_id", max_len=64) or public_id
        if self._employees.get_by_employee_id(employee_id):
            raise ConflictError(f"Employee {employee_id} already exists.", kind="DuplicateEmployee")

        entry_id = str(uuid.uuid4())
        self._faces.register_employee_with_face(
            employee_id=employee_id,
            first_name=first_name,
            last_name=last_name,
            employee_uuid=public_id,
            entry_id=entry_id,
            embedding=vector,
            image_url=image_url,
            expression=expression,
        )
        logger.info("Registered employee %s with first face %s", employee_id, entry_id)
        face = FaceEmbedding(
            entry_id=entry_id,
            employee_uuid=public_id,
            embedding=vector,
            image_url=image_url,
            expression=expression,
        )
        return employee_id, face

    def list_by_identity(self, employee_id: str) -> IdentityFaces:
        employee = self._identities.by_employee_id(employee_id)
        if not employee.uuid:
            raise NotFoundError(f"Employee {employee_id} is not enrolled for face recognition.", kind="NotEnrolled")

        faces = self._faces.list_active_for_uuid(employee.uuid)
        if not faces:
            raise NotFoundError(f"No faces registered for employee {employee_id}.", kind="NoFaces")
        return IdentityFaces(employee=employee, faces=faces)

    def list_all(self) -> list[dict]:
        grouped: dict[str, dict] = {}
        for row in self._faces.list_all_active():
            group = grouped.setdefault(
                row.face.employee_uuid,
                {"employee_id": row.employee_id, "uuid": row.face.employee_uuid, "name": row.name, "faces": []},
            )
            group["faces"].append(row.face.to_dict())
        return list(grouped.values())

    def delete_embedding(self, entry_id: str) -> dict:
        entry_id = require_non_empty(entry_id, "entry_id")
        deleted = self._faces.delete_and_cascade(entry_id)
        if deleted is None:
            raise NotFoundError(f"Face entry {entry_id} not found.", kind="NotFound")

        if deleted.image_url:
            self._discard_blob(deleted.image_url)
        if deleted.identity_deleted:
            logger.info("Removed employee %s after its last face was deleted", deleted.employee_uuid)
        elif deleted.identity_unenrolled:
            logger.info("Unenrolled employee %s; attendance history kept", deleted.employee_uuid)

        return {
            "entry_id": deleted.entry_id,
            "employee_uuid": deleted.employee_uuid,
            "identity_deleted": deleted.identity_deleted,
            "identity_unenrolled": deleted.identity_unenrolled,
        }

    def _discard_blob(self, image_url: str) -> None:
        # Row changes stand even if the file cannot be removed.
        try:
            self._blobs.delete(image_url)
        except OSError:
            logger.warning("Partial failure: could not delete blob %s", image_url, exc_info=True)
