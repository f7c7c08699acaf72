from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

import click
from flask import Flask

from .extensions import db, migrate, csrf
from .logging_config import configure_logging
from .services.derangement import DEFAULT_MAX_ATTEMPTS
from .services.locking import DEFAULT_LOCK_TIMEOUT
from .services.uploads import DEFAULT_PHOTO_EXTENSIONS
from .views.api import api_bp
from .views.public import public_bp


def create_app(test_config: Mapping[str, Any] | None = None) -> Flask:
    app = Flask(__name__)

    app.config["SECRET_KEY"] = os.environ.get("SECRET_KEY", "dev-secret-change-me")
    app.config["SQLALCHEMY_DATABASE_URI"] = os.environ.get("DATABASE_URL", "sqlite:///santadraw.db")
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False

    # Fernet key for assignments at rest; derived from SECRET_KEY when unset
    app.config["ASSIGNMENT_ENC_KEY"] = os.environ.get("ASSIGNMENT_ENC_KEY", "").strip()

    app.config["UPLOAD_FOLDER"] = os.environ.get("UPLOAD_FOLDER", os.path.join(app.instance_path, "uploads"))
    app.config["MAX_CONTENT_LENGTH"] = int(os.environ.get("MAX_CONTENT_LENGTH", 5 * 1024 * 1024))
    app.config["ALLOWED_PHOTO_EXTENSIONS"] = DEFAULT_PHOTO_EXTENSIONS

    app.config["DERANGEMENT_MAX_ATTEMPTS"] = int(os.environ.get("DERANGEMENT_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS))
    app.config["DRAW_LOCK_TIMEOUT"] = float(os.environ.get("DRAW_LOCK_TIMEOUT", DEFAULT_LOCK_TIMEOUT))
    app.config["LOG_LEVEL"] = os.environ.get("LOG_LEVEL", "INFO")

    if test_config:
        app.config.update(test_config)

    configure_logging(app.config["LOG_LEVEL"])

    db.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)

    # Bearer-code JSON API, no cookie session to protect
    csrf.exempt(api_bp)

    # Blueprints
    app.register_blueprint(api_bp)
    app.register_blueprint(public_bp)

    @app.cli.command("init-db")
    def init_db_command():
        """Create all tables without going through migrations."""
        db.create_all()
        click.echo("Initialized the database.")

    return app
