from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, render_template

from config import get_settings_module

from .claims.controller import register as register_claims
from .common import authorization
from .common.logging_setup import setup_logging
from .container import Container, build_container
from .core.constants import DEFAULT_UPLOAD_URL_PREFIX, MAX_ATTACHMENT_BYTES
from .core.exceptions import AuthorizationError
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables
from .reports.controller import register as register_reports
from .roles.controller import register as register_roles
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[3]


def create_app(container: Optional[Container] = None) -> Flask:
    """Build the Flask app.

    Passing ``container`` skips the MySQL bootstrap and wiring; tests use this
    to run the routes over in-memory repositories.
    """
    load_dotenv(override=False)
    app = Flask(__name__, template_folder="../../../templates", static_folder="../../../static")

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["UPLOAD_FOLDER"] = str(getattr(settings, "UPLOAD_FOLDER", REPO_ROOT / "static" / "images"))
    app.config["UPLOAD_URL_PREFIX"] = getattr(settings, "UPLOAD_URL_PREFIX", DEFAULT_UPLOAD_URL_PREFIX)
    app.config["MAX_ATTACHMENT_BYTES"] = int(getattr(settings, "MAX_ATTACHMENT_BYTES", MAX_ATTACHMENT_BYTES))
    app.config["STRICT_CLAIM_TRANSITIONS"] = bool(getattr(settings, "STRICT_CLAIM_TRANSITIONS", False))

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

        if getattr(settings, "AUTO_INIT_DB", False):
            apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if getattr(settings, "AUTO_SEED_DB", False):
            apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
            ensure_demo_users(db_config)

        container = build_container(
            db_config=db_config,
            upload_folder=app.config["UPLOAD_FOLDER"],
            upload_url_prefix=app.config["UPLOAD_URL_PREFIX"],
            max_attachment_bytes=app.config["MAX_ATTACHMENT_BYTES"],
            strict_transitions=app.config["STRICT_CLAIM_TRANSITIONS"],
        )

    # Mock CSRF
    app.jinja_env.globals["csrf_token"] = lambda: ""

    authorization.install(app, container.auth_service.resolve_caller)

    register_users(app, container)
    register_claims(app, container)
    register_reports(app, container)
    register_roles(app, container)

    @app.errorhandler(404)
    def not_found(_error):
        return render_template("404.html"), 404

    @app.errorhandler(403)
    def forbidden(_error):
        return authorization.render_forbidden()

    app.register_error_handler(AuthorizationError, authorization.render_forbidden)

    return app
