import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Must be set before gradebook.config is first imported
os.environ.setdefault("GRADEBOOK_DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("GRADEBOOK_PASSWORD_HASH_ITERATIONS", "1000")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gradebook.db import Base, get_db
from gradebook.main import app
from gradebook.services.auth import AuthenticationGateway

# In-memory SQLite keeps every test isolated
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def session():
    """
    Create a fresh database session for each test.
    """
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(session):
    """
    Create a TestClient whose requests share the test session.
    """
    def override_get_db():
        try:
            yield session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def gateway(session):
    return AuthenticationGateway(session)


@pytest.fixture
def teacher(gateway):
    return gateway.register_teacher("Ana Torres", "ana@school.test", "secret-ana")


@pytest.fixture
def other_teacher(gateway):
    return gateway.register_teacher("Luis Gomez", "luis@school.test", "secret-luis")


@pytest.fixture
def student(gateway, teacher):
    return gateway.register_student(
        "Sofia Ruiz",
        "sofia",
        "secret-sofia",
        teacher.id,
        grade_level="7A",
        subjects=["Math", "History"],
    )


def auth_headers(client: TestClient, identifier: str, password: str) -> dict:
    response = client.post(
        "/api/v2/auth/login",
        data={"username": identifier, "password": password},
    )
    assert response.status_code == 200, response.text
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}
