import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["LOG_LEVEL"] = "WARNING"

from database import Base, get_db  # noqa: E402
from main import app  # noqa: E402
from models.component import Component  # noqa: E402
from models.request import ComponentRequest, RequestItem, RequestStatus  # noqa: E402
from models.users import User, UserRole  # noqa: E402
from services.permissions import Caller  # noqa: E402
from utils.hashing import get_password_hash  # noqa: E402
from utils.tokenJWT import token_for  # noqa: E402

PASSWORD = "password123"
# bcrypt is slow on purpose; hash once for every seeded account
PASSWORD_HASH = get_password_hash(PASSWORD)


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture()
def make_user(db_session):
    counter = {"n": 0}

    def _make(role: UserRole = UserRole.STUDENT, email: str = None, name: str = None) -> User:
        counter["n"] += 1
        user = User(
            email=email or f"{role.value.lower()}{counter['n']}@iiitnr.edu.in",
            password_hash=PASSWORD_HASH,
            name=name or f"{role.value.title()} {counter['n']}",
            role=role,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture()
def make_component(db_session):
    def _make(name: str = "Arduino Uno", total: int = 10, available: int = None) -> Component:
        component = Component(
            name=name,
            total_quantity=total,
            available_quantity=total if available is None else available,
        )
        db_session.add(component)
        db_session.commit()
        db_session.refresh(component)
        return component

    return _make


@pytest.fixture()
def make_request(db_session):
    def _make(owner: User, faculty: User, items, status: RequestStatus = RequestStatus.PENDING,
              title: str = "Line follower") -> ComponentRequest:
        request = ComponentRequest(
            user_id=owner.id,
            target_faculty_id=faculty.id,
            project_title=title,
            status=status,
            items=[RequestItem(component_id=c.id, quantity=q) for c, q in items],
        )
        db_session.add(request)
        db_session.commit()
        db_session.refresh(request)
        return request

    return _make


def caller_for(user: User) -> Caller:
    return Caller(user_id=user.id, role=user.role)


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {token_for(user)}"}
