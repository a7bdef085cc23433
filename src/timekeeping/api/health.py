from __future__ import annotations

from datetime import datetime, timezone

from flask import Flask, jsonify

from ..container import Container
from ..database.mysql_base import db_cursor, fetchone


def register(app: Flask, container: Container) -> None:
    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        body = {
            "ok": True,
            "service": "timekeeping",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if container.conn is not None:
            # DatastoreUnavailable propagates to the error handler as a 503.
            with db_cursor(container.conn) as (_, cur):
                cur.execute("SELECT NOW() AS now")
                row = fetchone(cur)
            body["database_time"] = str(row["now"]) if row else None
        return jsonify(body)
