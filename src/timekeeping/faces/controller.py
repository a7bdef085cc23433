from __future__ import annotations

from flask import Flask, jsonify, request, send_from_directory

from ..api.errors import json_body
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/enroll-face", methods=["POST"], endpoint="enroll_face")
    def enroll_face():
        employee_id = request.form.get("employee_id", "")
        face = container.face_service.enroll(
            employee_id=employee_id,
            embedding=request.form.get("embedding"),
            image=request.files.get("image"),
            expression=request.form.get("expression"),
        )
        return (
            jsonify({"message": f"Face enrolled successfully for employee {employee_id.strip()}", "face": face.to_dict()}),
            201,
        )

    @app.route("/register", methods=["POST"], endpoint="register_face")
    def register_face():
        data = json_body()
        employee_id, face = container.face_service.register(
            name=data.get("name"),
            employee_id=data.get("employee_id"),
            embedding=data.get("embedding"),
            image_url=data.get("imageUrl", data.get("image_url")),
            expression=data.get("expression"),
        )
        return (
            jsonify(
                {
                    "message": "User registered successfully",
                    "employee_id": employee_id,
                    "uuid": face.employee_uuid,
                    "entry_id": face.entry_id,
                }
            ),
            201,
        )

    @app.route("/employee/<employee_id>", methods=["GET"], endpoint="employee_faces")
    def employee_faces(employee_id: str):
        return jsonify(container.face_service.list_by_identity(employee_id).to_dict())

    @app.route("/faces", methods=["GET"], endpoint="list_faces")
    def list_faces():
        return jsonify({"employees": container.face_service.list_all()})

    @app.route("/faces/<entry_id>", methods=["DELETE"], endpoint="delete_face")
    def delete_face(entry_id: str):
        result = container.face_service.delete_embedding(entry_id)
        return jsonify({"message": "Face entry deleted.", **result})

    @app.route(f"/{container.blob_store.url_prefix}/<path:filename>", methods=["GET"], endpoint="uploaded_file")
    def uploaded_file(filename: str):
        return send_from_directory(container.blob_store.directory.resolve(), filename)
