import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
import os
from typing import Any, Callable, Generator

# Set environment variables BEFORE importing settings or the app
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SECRET_KEY"] = "testsecretkey"
os.environ["FIRST_SUPERUSER_EMAIL"] = "testadmin@example.com"
os.environ["FIRST_SUPERUSER_PASSWORD"] = "testpassword"

# Import all model modules first so Base.metadata is complete
import app.models
from app.models.base import Base

from app.main import app

engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

from app.dependencies import get_db
from app.crud.user import create_user
from app.crud.template import create_template
from app.core.enums import UserRole
from app.core import security

PASSWORD = "testpassword"


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Fresh schema per test. The crud layer commits and rolls back on its own,
    so isolation comes from recreating the tables rather than an outer transaction.
    """
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """
    TestClient with `get_db` overridden to the test session. Entering the
    context runs startup/shutdown (the event publisher).
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    del app.dependency_overrides[get_db]


def _make_user(db: Session, name: str, email: str, role: UserRole = UserRole.USER):
    return create_user(db, {"name": name, "email": email, "password": PASSWORD, "role": role})


def _headers(user: Any) -> dict[str, str]:
    token, _ = security.create_access_token(user.id, user.role.value)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def test_user(db: Session) -> Any:
    return _make_user(db, "Test User", "testuser@example.com")


@pytest.fixture(scope="function")
def second_user(db: Session) -> Any:
    return _make_user(db, "Second User", "second@example.com")


@pytest.fixture(scope="function")
def admin_user(db: Session) -> Any:
    return _make_user(db, "Test Admin", "testadmin@example.com", role=UserRole.ADMIN)


@pytest.fixture(scope="function")
def user_headers(test_user: Any) -> dict[str, str]:
    return _headers(test_user)


@pytest.fixture(scope="function")
def second_user_headers(second_user: Any) -> dict[str, str]:
    return _headers(second_user)


@pytest.fixture(scope="function")
def admin_headers(admin_user: Any) -> dict[str, str]:
    return _headers(admin_user)


@pytest.fixture
def template_factory(db: Session, test_user: Any) -> Callable[..., Any]:
    """
    Create a template directly through the crud layer. Defaults to a public
    template owned by test_user with one required TEXT question.
    """
    def _create(owner: Any = None, **overrides):
        data = {
            "title": "Customer feedback",
            "description": "Short survey after purchase",
            "topic": "Retail",
            "is_public": True,
            "tags": [],
            "questions": [{"title": "Your name", "type": "TEXT", "is_required": True}],
            "allowed_user_ids": [],
        }
        data.update(overrides)
        return create_template(db, data, owner_id=(owner or test_user).id)
    return _create
