"""Shared pytest fixtures for the test suite.

Fixture overview
----------------
engine / db     in-memory SQLite shared by the app and the test body
client          FastAPI ``TestClient`` whose ``get_db`` dependency uses ``db``
make_user       signs a user up through the API and returns the user payload
make_project    posts a project through the API and returns it
"""

from __future__ import annotations

import os

# Cheap hashes and a fixed backend before any application module reads the env
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["STORE_BACKEND"] = "sql"
os.environ.setdefault("SECRET_KEY", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import init_db
from dependencies import get_db
from main import app
from stores import SqlStore


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def store(db) -> SqlStore:
    return SqlStore(db)


@pytest.fixture
def client(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(client):
    def _make_user(email: str, password: str = "secret123", name: str = "Test User", freelancer: bool = False):
        response = client.post(
            "/api/signup",
            json={
                "fullName": name,
                "email": email,
                "password": password,
                "accountType": "freelancer" if freelancer else "client",
            },
        )
        assert response.status_code == 201, response.text
        return response.json()["user"]

    return _make_user


@pytest.fixture
def make_project(client):
    def _make_project(client_id: int, title: str = "Landing page", **overrides):
        payload = {
            "title": title,
            "description": "Build a landing page for the robotics club",
            "budget": 250.0,
            "deadline": "2026-12-01",
            "category": "Web Development",
            "skills": ["React", "CSS"],
            "client_id": client_id,
        }
        payload.update(overrides)
        response = client.post("/api/projects", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["project"]

    return _make_project
