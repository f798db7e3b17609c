"""Shared fixtures: a throwaway SQLite database and an app client."""
from __future__ import annotations

import os
from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_citycare.db")
os.environ.setdefault("JWT_SECRET", "test-secret-key")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("OFFLINE_SYNC_TIMEOUT_SECONDS", "5")

from app.db.all_models import Base  # noqa: E402
from app.db.session import SessionLocal, engine  # noqa: E402
from app.main import app  # noqa: E402
from app.models.user import User, UserRole  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def _create_schema() -> Iterator[None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_database() -> Iterator[None]:
    with SessionLocal() as session:
        for table in reversed(Base.metadata.sorted_tables):
            session.execute(table.delete())
        session.commit()
    yield


@pytest.fixture
def client() -> Iterator[TestClient]:
    with TestClient(app) as c:
        yield c


@pytest.fixture
def register(client: TestClient) -> Callable[..., dict]:
    """Register an account and return auth headers; role="admin" promotes it."""

    def _register(email: str, name: str = "Test User", role: str = "citizen") -> dict:
        response = client.post(
            "/auth/register",
            json={"name": name, "email": email, "password": "password123"},
        )
        assert response.status_code == 201, response.text
        if role != "citizen":
            with SessionLocal() as session:
                user = session.query(User).filter(User.email == email).one()
                user.role = UserRole(role)
                session.commit()
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _register
