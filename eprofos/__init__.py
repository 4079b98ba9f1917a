from __future__ import annotations

import logging
import os

from flask import Flask

from .config import DevConfig, ProdConfig
from .extensions import db, mail, migrate


def create_app(config_object=None) -> Flask:
    package_dir = os.path.dirname(__file__)
    project_root = os.path.abspath(os.path.join(package_dir, ".."))

    app = Flask(__name__)

    # Ensure instance folder exists (SQLite dev database)
    try:
        os.makedirs(os.path.join(project_root, "instance"), exist_ok=True)
    except OSError:
        # If filesystem is read-only, the app can still run if DATABASE_URL points elsewhere.
        pass

    if config_object is None:
        env = os.environ.get("FLASK_ENV", "development").lower()
        config_object = DevConfig if env != "production" else ProdConfig
    app.config.from_object(config_object)

    # Service loggers ("eprofos.prospects", ...) propagate to the app logger.
    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")), logging.INFO))

    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    mail.init_app(app)

    # Models must be imported before create_all / migrations see the metadata.
    from . import models  # noqa: F401

    # CLI
    from .commands.prospect_cli import init_prospect_cli

    init_prospect_cli(app)

    # DEV: ensure tables exist (use `flask db upgrade` in production)
    if app.config.get("AUTO_CREATE_DB", False):
        with app.app_context():
            db.create_all()

    return app
