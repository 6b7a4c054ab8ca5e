"""Shared fixtures for the Whitecore test suite."""

from __future__ import annotations

import itertools
from types import SimpleNamespace
from urllib.parse import parse_qs, urlsplit

import pytest

from app import create_app
from config.config import Config
from extensions import db

ADMIN_USERNAME = "root"
ADMIN_PASSWORD = "admin-pass-1"
CAPTCHA = "k7m2p"


def make_config(tmp_path, **overrides):
    """Config subclass rooted in ``tmp_path``; keyword arguments override attributes."""

    class TestConfig(Config):
        TESTING = True
        SECRET_KEY = "test-secret"
        DATA_ROOT = str(tmp_path)
        UPLOADS_DIR = str(tmp_path / "uploads")
        DOWNLOADS_DIR = str(tmp_path / "downloads")
        SQLALCHEMY_DATABASE_URI = "sqlite:///" + str(tmp_path / "test.sqlite")
        ADMIN_USERNAME = ADMIN_USERNAME
        ADMIN_PASSWORD = ADMIN_PASSWORD
        TELEGRAM_BOT_TOKEN = None
        LOG_LEVEL = "DEBUG"

    for name, value in overrides.items():
        setattr(TestConfig, name, value)
    return TestConfig


def dispose(app) -> None:
    with app.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture()
def app(tmp_path):
    app = create_app(make_config(tmp_path))
    yield app
    dispose(app)


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def fake_clock(monkeypatch):
    """Strictly increasing clock so uploaded filenames never collide."""
    ticks = itertools.count(1_700_000_000)
    monkeypatch.setattr(
        "services.asset_service.time", SimpleNamespace(time=lambda: float(next(ticks)))
    )


# ── Helpers ──────────────────────────────────────────────────────────────────


def prime_captcha(client, answer: str = CAPTCHA) -> str:
    with client.session_transaction() as sess:
        sess["captcha"] = answer
    return answer


def get_flashes(client) -> list:
    with client.session_transaction() as sess:
        return [tuple(item) for item in sess.get("_flashes", [])]


def post_login(client, username, password, captcha=CAPTCHA, next="/", prime=True):
    if prime:
        prime_captcha(client, captcha)
    return client.post(
        "/login",
        data={"username": username, "password": password, "captcha": captcha, "next": next},
    )


def post_register(client, username, email, password, captcha=CAPTCHA, next="/", prime=True):
    if prime:
        prime_captcha(client, captcha)
    return client.post(
        "/register",
        data={
            "username": username,
            "email": email,
            "password": password,
            "captcha": captcha,
            "next": next,
        },
    )


@pytest.fixture()
def admin_client(client):
    response = post_login(client, ADMIN_USERNAME, ADMIN_PASSWORD)
    assert response.status_code == 302
    return client


@pytest.fixture()
def user_client(client):
    response = post_register(client, "alice", "alice@example.com", "wonderland")
    assert response.status_code == 302
    return client


def redirect_target(response) -> tuple:
    """``(path, query dict)`` of a redirect's Location header."""
    parts = urlsplit(response.headers["Location"])
    return parts.path, parse_qs(parts.query)
