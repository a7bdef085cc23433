from __future__ import annotations

import json
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import DeletedEmbedding, EnrolledFace, FaceEmbedding
from .repository import FaceEmbeddingRepository


def _to_face(r: dict) -> FaceEmbedding:
    return FaceEmbedding(
        entry_id=r["entry_id"],
        employee_uuid=r["employee_uuid"],
        embedding=[float(v) for v in json.loads(r["embedding"])],
        image_url=r.get("image_url"),
        expression=r.get("expression"),
        is_active=bool(r.get("is_active", True)),
        created_at=r.get("created_at"),
    )


INSERT_EMBEDDING_SQL = """
    INSERT INTO face_embeddings(entry_id, employee_uuid, embedding, image_url, expression, is_active)
    VALUES(%s,%s,%s,%s,%s,1)
"""

# Attendance and time logs are never deleted, so an owner with history is only unenrolled.
HAS_HISTORY_SQL = """
    SELECT EXISTS(SELECT 1 FROM attendance WHERE employee_id=%s)
        OR EXISTS(SELECT 1 FROM time_logs WHERE employee_id=%s) AS has_history
"""


class MySQLFaceEmbeddingRepository(FaceEmbeddingRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def insert(
        self,
        *,
        entry_id: str,
        employee_uuid: str,
        embedding: Sequence[float],
        image_url: Optional[str],
        expression: Optional[str],
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                INSERT_EMBEDDING_SQL,
                (entry_id, employee_uuid, json.dumps(list(embedding)), image_url, expression),
            )

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO employees(employee_id, first_name, last_name, uuid)
                VALUES(%s,%s,%s,%s)
                """,
                (employee_id, first_name, last_name, employee_uuid),
            )
            new_id = int(cur.lastrowid)
            cur.execute(
                INSERT_EMBEDDING_SQL,
                (entry_id, employee_uuid, json.dumps(list(embedding)), image_url, expression),
            )
            return new_id

    def list_active_for_uuid(self, employee_uuid: str) -> Sequence[FaceEmbedding]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT entry_id, employee_uuid, embedding, image_url, expression, is_active, created_at
                FROM face_embeddings
                WHERE employee_uuid=%s AND is_active=1
                ORDER BY created_at ASC
                """,
                (employee_uuid,),
            )
            return [_to_face(r) for r in fetchall(cur)]

    def list_all_active(self) -> Sequence[EnrolledFace]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT f.entry_id, f.employee_uuid, f.embedding, f.image_url, f.expression,
                       f.is_active, f.created_at,
                       e.employee_id, e.first_name, e.last_name
                FROM face_embeddings f
                JOIN employees e ON e.uuid = f.employee_uuid
                WHERE f.is_active=1
                ORDER BY e.employee_id ASC, f.created_at ASC
                """
            )
            return [
                EnrolledFace(
                    face=_to_face(r),
                    employee_id=r["employee_id"],
                    name=f"{r['first_name']} {r.get('last_name') or ''}".strip(),
                )
                for r in fetchall(cur)
            ]

    def delete_and_cascade(self, entry_id: str) -> Optional[DeletedEmbedding]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT entry_id, employee_uuid, image_url FROM face_embeddings WHERE entry_id=%s FOR UPDATE",
                (entry_id,),
            )
            row = fetchone(cur)
            if not row:
                return None

            owner = row["employee_uuid"]
            cur.execute("DELETE FROM face_embeddings WHERE entry_id=%s", (entry_id,))
            cur.execute("SELECT COUNT(*) AS remaining FROM face_embeddings WHERE employee_uuid=%s", (owner,))
            remaining = int(fetchone(cur)["remaining"])

            identity_deleted = False
            identity_unenrolled = False
            if remaining == 0:
                # Locking the owner blocks concurrent attendance inserts until commit.
                cur.execute("SELECT id FROM employees WHERE uuid=%s FOR UPDATE", (owner,))
                employee = fetchone(cur)
                if employee:
                    employee_id = int(employee["id"])
                    cur.execute(HAS_HISTORY_SQL, (employee_id, employee_id))
                    if int(fetchone(cur)["has_history"]):
                        cur.execute("UPDATE employees SET uuid=NULL WHERE id=%s", (employee_id,))
                        identity_unenrolled = True
                    else:
                        cur.execute("DELETE FROM employees WHERE id=%s", (employee_id,))
                        identity_deleted = cur.rowcount > 0

            return DeletedEmbedding(
                entry_id=row["entry_id"],
                employee_uuid=owner,
                image_url=row.get("image_url"),
                identity_deleted=identity_deleted,
                identity_unenrolled=identity_unenrolled,
            )
