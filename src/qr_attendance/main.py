from __future__ import annotations

import importlib
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from types import ModuleType
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from .api.errors import register_error_handlers
from .attendance.controller import register as register_attendance
from .config import get_settings_module
from .container import Container, build_container
from .database.bootstrap import apply_schema, list_tables
from .sessions.controller import register as register_sessions
from .student_ids.controller import register as register_student_ids
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(settings: ModuleType) -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, str(settings.LOG_LEVEL).upper(), logging.INFO))

    if not any(isinstance(h, logging.StreamHandler) and not isinstance(h, RotatingFileHandler) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

    log_file = getattr(settings, "LOG_FILE", None)
    if log_file and not any(isinstance(h, RotatingFileHandler) for h in root.handlers):
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=int(settings.LOG_MAX_BYTES),
            backupCount=int(settings.LOG_BACKUP_COUNT),
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT + " [in %(pathname)s:%(lineno)d]"))
        root.addHandler(file_handler)


def create_app(*, container: Optional[Container] = None, settings_module: Optional[str] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = settings.SECRET_KEY
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    configure_logging(settings)
    logger.info("Starting with settings=%s", settings_module)

    if container is None:
        if settings.STORE_BACKEND == "mysql" and settings.AUTO_INIT_DB:
            schema_path = Path(__file__).resolve().parents[2] / "database" / "schema.sql"
            apply_schema(settings.DB_CONFIG, schema_path=schema_path)
            logger.info("Schema ready (tables=%d)", len(list_tables(settings.DB_CONFIG)))
        container = build_container(settings)

    app.extensions["qr_attendance"] = container

    register_error_handlers(app)
    register_sessions(app, container)
    register_attendance(app, container)
    register_users(app, container)
    register_student_ids(app, container)

    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        return jsonify({"status": "ok"})

    return app
