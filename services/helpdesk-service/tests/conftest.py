import itertools

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from helpdesk.main import app
from helpdesk.core.db import Base, get_db
from helpdesk.core.security import create_access_token
from helpdesk.models.category import Category
from helpdesk.models.user import UserRole
from helpdesk.services.user_service import UserService

# In-memory SQLite shared by the test session and the app's request sessions
SQLALCHEMY_DATABASE_URL = "sqlite://"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}, poolclass=StaticPool
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

_counter = itertools.count(1)


@pytest.fixture(scope="function")
def db_session():
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    def _make_user(role=UserRole.USER, name=None, email=None, password="secret123"):
        n = next(_counter)
        return UserService(db_session).create_user(
            name or f"{role.title()} {n}",
            email or f"{role}{n}@example.com",
            password,
            role=role,
        )

    return _make_user


@pytest.fixture
def user(make_user):
    return make_user(UserRole.USER)


@pytest.fixture
def agent(make_user):
    return make_user(UserRole.AGENT)


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.ADMIN)


@pytest.fixture
def category(db_session, admin):
    category = Category(name="Technical Support", color="#3B82F6", created_by_id=admin.id)
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(subject=str(user.id))}"}
