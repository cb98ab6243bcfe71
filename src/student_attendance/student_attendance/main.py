from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask
from flask_cors import CORS

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.responses import ok, register_error_handlers
from .container import Container, build_container
from .database.bootstrap import apply_schema, ensure_admin_user, list_tables
from .reports.controller import register as register_reports
from .students.controller import register as register_students
from .teams.controller import register as register_teams
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def create_app(container: Optional[Container] = None) -> Flask:
    """Application factory.

    Pass a prebuilt ``container`` to run against other repositories (tests use
    in-memory ones); otherwise it is built from the active settings module.
    """

    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logging.basicConfig(
        level=str(getattr(settings, "LOG_LEVEL", "INFO")).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            ensure_admin_user(
                db_config,
                email=getattr(settings, "ADMIN_EMAIL", "admin@test.com"),
                password=getattr(settings, "ADMIN_PASSWORD", "admin123"),
            )

        container = build_container(
            db_config=db_config,
            secret_key=app.secret_key,
            timezone=getattr(settings, "TIMEZONE", None),
            jwt_algorithm=getattr(settings, "JWT_ALGORITHM", "HS256"),
            token_minutes=int(getattr(settings, "ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24)),
        )

    # Origins of the browser client
    CORS(app, resources={r"/api/*": {"origins": list(getattr(settings, "CORS_ORIGINS", []))}})
    register_error_handlers(app)

    register_users(app, container)
    register_students(app, container)
    register_attendance(app, container)
    register_reports(app, container)
    register_teams(app, container)

    @app.route("/api/health", methods=["GET"], endpoint="health")
    def health():
        return ok(message="Student attendance API is running")

    return app
