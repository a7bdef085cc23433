from __future__ import annotations

import importlib
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .api import errors as api_errors
from .api import health as api_health
from .attendance.controller import register as register_attendance
from .common.logger import get_logger, setup_logging
from .container import Container, build_container
from .database.bootstrap import apply_schema, list_tables
from .database.connection import DBConfig
from .employees.controller import register as register_employees
from .faces.controller import register as register_faces
from .settings import get_settings_module

logger = get_logger("app")


def create_app(container: Optional[Container] = None) -> Flask:
    """Build the Flask app.

    ``container`` lets callers (tests, scripts) supply pre-wired services; by
    default everything is built from the settings module selected by APP_ENV.
    """

    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["MAX_CONTENT_LENGTH"] = int(getattr(settings, "MAX_CONTENT_LENGTH", 8 * 1024 * 1024))

    setup_logging(level=getattr(settings, "LOG_LEVEL", "INFO"), log_dir=getattr(settings, "LOG_DIR", None))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        lock_timeout = int(getattr(settings, "DB_LOCK_TIMEOUT", 10))
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            config = DBConfig.from_mapping(db_config, lock_timeout=lock_timeout)
            apply_schema(config)
            logger.info("Schema ready (tables=%s)", len(list_tables(config)))

        container = build_container(
            db_config=db_config,
            lock_timeout=lock_timeout,
            upload_dir=getattr(settings, "UPLOAD_DIR", "public/uploads"),
            upload_url_prefix=getattr(settings, "UPLOAD_URL_PREFIX", "uploads"),
            timezone_name=getattr(settings, "ATTENDANCE_TIMEZONE", "UTC"),
        )

    app.extensions["timekeeping"] = container

    api_errors.register(app)
    api_health.register(app, container)
    register_employees(app, container)
    register_attendance(app, container)
    register_faces(app, container)

    return app
