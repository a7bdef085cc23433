from __future__ import annotations

from flask import Flask, jsonify, request

from ..api.errors import json_body
from ..common.datetime_utils import parse_iso_date, parse_iso_datetime
from ..common.validators import optional_text
from ..container import Container
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.exceptions import ValidationError
from .service import parse_event_kind, parse_geo


def register(app: Flask, container: Container) -> None:
    def _resolve_employee(data: dict) -> int:
        """Exactly one identity key per request: surrogate, business id or public uuid."""

        user_id = data.get("userId", data.get("user_id"))
        employee_id = data.get("employee_id")
        employee_uuid = data.get("employee_uuid")

        given = [v for v in (user_id, employee_id, employee_uuid) if v not in (None, "")]
        if not given:
            raise ValidationError("userId, employee_id or employee_uuid is required.", kind="MissingField")
        if len(given) > 1:
            raise ValidationError("Send only one of userId, employee_id, employee_uuid.", kind="AmbiguousIdentity")

        if user_id not in (None, ""):
            if isinstance(user_id, bool) or (isinstance(user_id, float) and not user_id.is_integer()):
                raise ValidationError("userId must be an integer.")
            try:
                return int(user_id)
            except (TypeError, ValueError):
                raise ValidationError("userId must be an integer.") from None
        if employee_id not in (None, ""):
            return container.identity_resolver.by_employee_id(str(employee_id)).id
        return container.identity_resolver.by_uuid(str(employee_uuid)).id

    @app.route("/events", methods=["POST"], endpoint="record_event")
    def record_event():
        data = json_body()
        raw_kind = data.get("eventType", data.get("event_type"))
        if not raw_kind:
            raise ValidationError("eventType is required.", kind="MissingField")

        # Validate everything before touching the datastore.
        kind = parse_event_kind(raw_kind)
        occurred_at = parse_iso_datetime(data.get("occurredAt", data.get("occurred_at")), "occurredAt")
        geo = parse_geo(data)
        notes = optional_text(data.get("notes"), "notes", max_len=2000)
        photo_url = optional_text(data.get("photoUrl", data.get("photo_url")), "photoUrl", max_len=512)

        employee = _resolve_employee(data)
        result = container.attendance_service.record_event(
            employee,
            kind,
            occurred_at=occurred_at,
            geo=geo,
            notes=notes,
            photo_url=photo_url,
        )
        body = {"message": f"Successfully logged '{kind.value}' at {result.time_value}", **result.to_dict()}
        return jsonify(body), 201 if result.created else 200

    @app.route("/attendance/sync", methods=["POST"], endpoint="sync_attendance")
    def sync_attendance():
        payload = request.get_json(silent=True)
        records = payload.get("records") if isinstance(payload, dict) else payload
        report = container.attendance_service.sync_batch(records)
        return jsonify({"message": "Sync completed.", **report.to_dict()})

    @app.route("/attendance/<employee_id>", methods=["GET"], endpoint="employee_attendance")
    def employee_attendance(employee_id: str):
        date_from = request.args.get("from")
        date_to = request.args.get("to")
        try:
            limit = int(request.args.get("limit", DEFAULT_HISTORY_LIMIT))
        except ValueError:
            raise ValidationError("limit must be an integer.") from None

        employee = container.identity_resolver.by_employee_id(employee_id)
        records = container.attendance_service.list_attendance(
            employee.id,
            date_from=parse_iso_date(date_from) if date_from else None,
            date_to=parse_iso_date(date_to) if date_to else None,
            limit=limit,
        )
        return jsonify(
            {
                "employee_id": employee.employee_id,
                "name": employee.display_name,
                "records": [r.to_dict() for r in records],
            }
        )
