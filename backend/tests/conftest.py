"""Pytest configuration and shared fixtures."""

import os

# Settings are read at import time; point them at an in-memory database first
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = os.environ.get("TEST_DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-0123456789abcdef0123456789")
os.environ.setdefault("AUTO_SUBMIT_GRACE_SECONDS", "60")

from collections.abc import Generator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from mockexam.db.engine import engine  # noqa: E402
from mockexam.db.init_db import create_schema  # noqa: E402
from mockexam.db.session import get_db  # noqa: E402
from mockexam.main import create_app  # noqa: E402
from mockexam.models.user import User  # noqa: E402
from tests.helpers.auth import auth_headers_for  # noqa: E402
from tests.helpers.seed import (  # noqa: E402
    PaperFixture,
    create_paper,
    create_test_admin,
    create_test_student,
    enroll,
)


@pytest.fixture(scope="session", autouse=True)
def _schema() -> None:
    create_schema(engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Test session wrapped in an outer transaction that is rolled back afterwards.

    Application commits only release a SAVEPOINT, so nothing leaks between tests.
    """
    connection = engine.connect()
    trans = connection.begin()
    session = Session(
        bind=connection,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )
    try:
        yield session
    finally:
        session.close()
        trans.rollback()
        connection.close()


@pytest.fixture
def client(db: Session) -> Generator[TestClient, None, None]:
    """API client whose requests share the test session."""
    app = create_app()

    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def student(db: Session) -> User:
    return create_test_student(db)


@pytest.fixture
def admin(db: Session) -> User:
    return create_test_admin(db)


@pytest.fixture
def auth_headers_student(student: User) -> dict[str, str]:
    return auth_headers_for(student)


@pytest.fixture
def auth_headers_admin(admin: User) -> dict[str, str]:
    return auth_headers_for(admin)


@pytest.fixture
def history_paper(db: Session) -> PaperFixture:
    """The two-question history/geography paper, 2 marks each."""
    return create_paper(
        db,
        questions=[
            ("Who was the first Governor-General of India?", 2,
             ["Lord Mountbatten", "Warren Hastings", "Lord Canning", "Lord Dalhousie"], 1),
            ("Which is the longest river in India?", 2,
             ["Yamuna", "Ganges", "Brahmaputra", "Godavari"], 1),
        ],
    )


@pytest.fixture
def enrolled_paper(db: Session, student: User, history_paper: PaperFixture) -> PaperFixture:
    enroll(db, student, history_paper.exam)
    return history_paper
