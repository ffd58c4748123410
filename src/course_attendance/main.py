from __future__ import annotations

import importlib
import logging

from dotenv import load_dotenv
from flask import Flask
from flask_cors import CORS

from .attendance.controller import register as register_attendance
from .common.http import envelope
from .config import get_settings_module
from .container import build_container
from .courses.controller import register as register_courses
from .database.bootstrap import ensure_indexes, list_collections
from .database.seed import ensure_demo_data
from .enrollments.controller import register as register_enrollments
from .users.controller import register as register_users

logger = logging.getLogger(__name__)


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.json.sort_keys = False

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    backend = getattr(settings, "DB_BACKEND", "mongo")
    db_config = dict(getattr(settings, "MONGO_CONFIG", {}))
    logger.debug(
        "settings=%s backend=%s db=%s:%s/%s",
        settings_module,
        backend,
        db_config.get("host"),
        db_config.get("port", 27017),
        db_config.get("database"),
    )

    container = build_container(
        backend=backend,
        db_config=db_config,
        jwt_secret=getattr(settings, "JWT_SECRET"),
        jwt_expires_hours=int(getattr(settings, "JWT_EXPIRES_HOURS", 24)),
        email_domain=getattr(settings, "STUDENT_EMAIL_DOMAIN"),
    )
    app.extensions["container"] = container

    if container.conn is not None and bool(getattr(settings, "AUTO_INIT_DB", False)):
        ensure_indexes(container.conn)
        logger.debug("collections: %s", ", ".join(list_collections(container.conn)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        ensure_demo_data(container)

    CORS(
        app,
        origins=list(getattr(settings, "CORS_ORIGINS", [])),
        allow_headers=["Authorization", "Content-Type"],
        methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    )

    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        db_ok = container.conn.ping() if container.conn is not None else True
        if not db_ok:
            return envelope(503, "Database unavailable", {"database": "down"})
        return envelope(200, "OK", {"database": "up", "backend": backend})

    register_users(app, container)
    register_courses(app, container)
    register_enrollments(app, container)
    register_attendance(app, container)

    return app
