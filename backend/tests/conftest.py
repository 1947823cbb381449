"""
Shared fixtures for the classbook test suite.

Every test gets a fresh in-memory SQLite database behind a StaticPool so
that the test session and the sessions opened by API requests see the
same data. Time is pinned with a FixedClock.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from fastapi.testclient import TestClient  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from classbook.api.dependencies.database import get_db  # noqa: E402
from classbook.api.dependencies.services import get_clock  # noqa: E402
from classbook.core.clock import FixedClock  # noqa: E402
from classbook.database import Base  # noqa: E402
from classbook.main import create_app  # noqa: E402

# Import models so Base.metadata is populated for create_all.
import classbook.models  # noqa: F401,E402

from tests._utils.builders import make_user  # noqa: E402
from tests._utils.constants import NOW  # noqa: E402


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(
        bind=engine, autocommit=False, autoflush=False, expire_on_commit=False, future=True
    )


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def teacher(db):
    return make_user(db, role="teacher", full_name="Teacher One", has_financial_module=True)


@pytest.fixture
def other_teacher(db):
    return make_user(db, role="teacher", full_name="Teacher Two")


@pytest.fixture
def student(db):
    return make_user(db, role="student", full_name="Student A")


@pytest.fixture
def other_student(db):
    return make_user(db, role="student", full_name="Student B")


@pytest.fixture
def outsider(db):
    return make_user(db, role="student", full_name="Not Enrolled")


@pytest.fixture
def client(session_factory, clock):
    app = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    yield TestClient(app)
    app.dependency_overrides.clear()
