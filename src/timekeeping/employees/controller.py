from __future__ import annotations

from flask import Flask, jsonify

from ..api.errors import json_body
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/employees", methods=["POST"], endpoint="create_employee")
    def create_employee():
        data = json_body()
        employee = container.employee_service.create_employee(
            employee_id=data.get("employee_id"),
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            position=data.get("position"),
            schedule_type=data.get("schedule_type"),
        )
        return jsonify({"message": f"Employee {employee.employee_id} created.", "employee": employee.to_dict()}), 201

    @app.route("/employees", methods=["GET"], endpoint="list_employees")
    def list_employees():
        employees = container.employee_service.list_employees()
        return jsonify({"employees": [e.to_dict() for e in employees]})
