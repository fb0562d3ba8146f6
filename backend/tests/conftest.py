import os
import tempfile
from pathlib import Path

# Must be set before the app (and its engine) is imported
TEST_DB = Path(tempfile.gettempdir()) / "company_reviews_test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB}"
os.environ["ENV"] = "test"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["ADMIN_EMAILS"] = "boss@example.com"

import pytest
from fastapi.testclient import TestClient

from app.core.middleware import rate_limiter
from app.db.session import SessionLocal, engine
from app.main import app
from app.models import Base, Company

PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    rate_limiter.reset()
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def register(client, email: str, role: str = "user", name: str | None = None, password: str = PASSWORD) -> str:
    r = client.post(
        "/api/auth/register",
        json={"name": name or email.split("@")[0], "email": email, "password": password, "role": role},
    )
    assert r.status_code == 201, r.text
    # Keep requests explicit: authenticate through the header only
    client.cookies.clear()
    return r.json()["token"]


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def make_company(db, name: str, **fields) -> Company:
    company = Company(name=name, **fields)
    db.add(company)
    db.commit()
    db.refresh(company)
    return company


@pytest.fixture
def admin_token(client):
    return register(client, "admin@example.com", role="admin")


@pytest.fixture
def user_token(client):
    return register(client, "alice@example.com")
