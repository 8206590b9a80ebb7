"""
Pytest fixtures for the family budget API.

Every test gets a fresh in-memory SQLite database behind the FastAPI app,
plus helpers to register users and open budgets through the HTTP surface.
"""

import os

# Must be set before anything under familybudget is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import familybudget.models  # noqa: F401
from familybudget.database import Base, get_db
from familybudget.main import app


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def sent_emails(monkeypatch):
    """Capture outgoing emails instead of logging them."""
    from familybudget.services import email_service

    outbox = []

    def capture(to, subject, body):
        outbox.append({"to": to, "subject": subject, "body": body})

    monkeypatch.setattr(email_service, "_deliver", capture)
    return outbox


def register(client, name, email, password="secret123", **extra):
    """Register through the API; returns headers, user payload and personal group id."""
    resp = client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": password, **extra},
    )
    assert resp.status_code == 201, resp.text
    data = resp.json()["data"]
    return {
        "headers": {"Authorization": f"Bearer {data['access_token']}"},
        "refresh_token": data["refresh_token"],
        "user": data["user"],
        "group_id": data["user"]["groups"][0]["group_id"],
    }


def open_budget(client, headers, group_id, start, end):
    return client.post(
        "/api/budgets",
        json={"group_id": group_id, "start_date": start, "end_date": end},
        headers=headers,
    )


def add_item(client, headers, budget_id, group_id, category, name, amount):
    return client.post(
        "/api/budget-items",
        json={
            "budget_id": budget_id,
            "group_id": group_id,
            "category": category,
            "name": name,
            "planned_amount": amount,
        },
        headers=headers,
    )


def add_transaction(client, headers, group_id, day, category, type_, amount, description=None):
    body = {"group_id": group_id, "date": day, "category": category, "type": type_, "amount": amount}
    if description is not None:
        body["description"] = description
    return client.post("/api/transactions", json=body, headers=headers)


@pytest.fixture
def alice(client):
    return register(client, "Alice", "alice@example.com")


@pytest.fixture
def bob(client):
    return register(client, "Bob", "bob@example.com")
