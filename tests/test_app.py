import logging

import pytest
from cryptography.fernet import Fernet
from sqlalchemy import text

from santadraw import create_app
from santadraw.extensions import db
from santadraw.models import Draw
from santadraw.security import decrypt_assignment_recipient, encrypt_assignment_recipient


def test_config_comes_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'env.db'}")
    monkeypatch.setenv("DERANGEMENT_MAX_ATTEMPTS", "50")
    monkeypatch.setenv("DRAW_LOCK_TIMEOUT", "1.5")
    monkeypatch.setenv("LOG_LEVEL", "warning")

    app = create_app()

    assert app.config["SQLALCHEMY_DATABASE_URI"].endswith("env.db")
    assert app.config["DERANGEMENT_MAX_ATTEMPTS"] == 50
    assert app.config["DRAW_LOCK_TIMEOUT"] == 1.5
    assert logging.getLogger("santadraw").level == logging.WARNING


def test_init_db_command(tmp_path):
    app = create_app({"SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'cli.db'}"})
    result = app.test_cli_runner().invoke(args=["init-db"])

    assert "Initialized the database." in result.output
    with app.app_context():
        assert db.session.query(Draw).count() == 0


def test_explicit_encryption_key(app):
    key = Fernet.generate_key().decode("utf-8")
    app.config["ASSIGNMENT_ENC_KEY"] = key

    token = encrypt_assignment_recipient(7)
    assert Fernet(key.encode("utf-8")).decrypt(token.encode("utf-8")) == b"7"
    assert decrypt_assignment_recipient(token) == 7


def test_tokens_from_another_secret_are_rejected(app):
    token = encrypt_assignment_recipient(7)
    app.config["SECRET_KEY"] = "rotated"
    with pytest.raises(ValueError):
        decrypt_assignment_recipient(token)


def test_sqlite_connections_enforce_foreign_keys(app):
    assert db.session.execute(text("PRAGMA foreign_keys")).scalar() == 1
    assert db.session.execute(text("PRAGMA busy_timeout")).scalar() == 5000
