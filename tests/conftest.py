"""
tests/conftest.py
"""
from __future__ import annotations

import itertools
from pathlib import Path
from typing import Callable, Generator

import pytest
from flask.testing import FlaskClient

from app import app
from database import drop_db, get_db, init_db
from routes.auth_bp import create_token, create_user

_emails = itertools.count(1)


@pytest.fixture(scope="session")
def _tmp_db_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    """One temp file for the whole test session; tables are rebuilt per test."""
    return tmp_path_factory.mktemp("data") / "test.sqlite3"


@pytest.fixture(scope="session", autouse=True)
def _configure_app(_tmp_db_path: Path) -> None:
    app.config.update(
        TESTING=True,
        DATABASE=str(_tmp_db_path),
        JWT_SECRET="test-secret",
    )


@pytest.fixture(autouse=True)
def _fresh_db(_configure_app) -> None:
    """Every test starts from empty tables."""
    with app.app_context():
        drop_db()
        init_db()


@pytest.fixture
def client() -> Generator[FlaskClient, None, None]:
    with app.test_client() as client:
        yield client


@pytest.fixture
def make_user() -> Callable[..., dict]:
    """
    Factory: creates an account straight in the DB and returns
    {"id", "email", "password", "headers"} where headers carries a bearer token.
    """
    def _make(role: str = "user", name: str = "Tester", password: str = "secret123") -> dict:
        email = f"user{next(_emails)}@example.com"
        with app.app_context():
            user_id = create_user(get_db(), name, email, password, role=role)
            token = create_token(user_id, role)
        return {
            "id": user_id,
            "email": email,
            "password": password,
            "headers": {"Authorization": f"Bearer {token}"},
        }
    return _make


@pytest.fixture
def admin(make_user) -> dict:
    return make_user(role="admin", name="Admin")


@pytest.fixture
def user(make_user) -> dict:
    return make_user(name="Reader")


@pytest.fixture
def post(client, admin) -> dict:
    rv = client.post("/api/posts", json={"title": "First post", "body": "Hello world"},
                     headers=admin["headers"])
    assert rv.status_code == 201, rv.get_json()
    return rv.get_json()
