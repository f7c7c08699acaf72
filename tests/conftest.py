"""Pytest fixtures: an app bound to a throwaway SQLite file, a client and draw factories."""

import pytest

from santadraw import create_app
from santadraw.extensions import db
from santadraw.services import draws as draw_service


@pytest.fixture
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'test.db'}",
        "UPLOAD_FOLDER": str(tmp_path / "uploads"),
        "WTF_CSRF_ENABLED": False,
        "DRAW_LOCK_TIMEOUT": 2.0,
        "LOG_LEVEL": "DEBUG",
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_draw(app):
    """Create a draft draw, optionally with participants already saved."""

    def _make(names=(), title="Office party", budget=20):
        draw = draw_service.create_draw(title, budget)
        if names:
            draw = draw_service.set_participants(draw.id, [{"name": n} for n in names])
        return draw

    return _make