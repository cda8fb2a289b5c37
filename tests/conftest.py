"""
Pytest configuration and shared fixtures for the test suite.
Points the app at an in-memory database and provides a small sample curriculum.
"""
import os
import sys
import tempfile
from datetime import datetime, timedelta
from pathlib import Path

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_DIR", str(Path(tempfile.gettempdir()) / "lms-test-logs"))
os.environ.setdefault("LOG_LEVEL", "WARNING")

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from lms.config import Base
from lms.models.models import Module, ModuleProgress, Phase, Section, User
from lms.schemas.user_schemas import CurrentUser
from lms.utils.jwt import get_password_hash

# Hashing once keeps fixtures fast; bcrypt is deliberately slow.
TEST_PASSWORD = "testpass123"
TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


def as_current(user: User) -> CurrentUser:
    return CurrentUser(id=user.id, email=user.email, role=user.role, full_name=user.full_name)


@pytest.fixture
def in_memory_engine():
    """Fresh in-memory SQLite engine with the schema created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def session_factory(in_memory_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=in_memory_engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_user(db_session):
    def _make(email: str, role: str = "student", full_name: str | None = None) -> User:
        user = User(email=email, hashed_password=TEST_PASSWORD_HASH, role=role, full_name=full_name)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def student(make_user) -> User:
    return make_user("student@example.com", "student", "Sam Student")


@pytest.fixture
def instructor(make_user) -> User:
    return make_user("instructor@example.com", "instructor", "Ivy Instructor")


@pytest.fixture
def student_ctx(student) -> CurrentUser:
    return as_current(student)


@pytest.fixture
def instructor_ctx(instructor) -> CurrentUser:
    return as_current(instructor)


@pytest.fixture
def curriculum(db_session):
    """
    Two phases, inserted out of order so that sorting is exercised:

    P1 "Foundations" (order 1)
      S1 "Basics" (order 1): M1, M2, M3
      S2 "Tooling" (order 2): M4, M5 (unpublished)
    P2 "Advanced" (order 2)
      S3 "Deep dive" (order 1): M6
    """
    now = datetime.utcnow()
    p2 = Phase(id="p2", title="Advanced", description="Second phase", order_index=2)
    p1 = Phase(id="p1", title="Foundations", description="First phase", order_index=1)
    s2 = Section(id="s2", phase_id="p1", title="Tooling", description="", order_index=2)
    s1 = Section(id="s1", phase_id="p1", title="Basics", description="", order_index=1)
    s3 = Section(id="s3", phase_id="p2", title="Deep dive", description="", order_index=1)
    m3 = Module(id="m3", section_id="s1", title="Functions", content="# Functions", content_type="markdown", order_index=3,
                deadline=now + timedelta(days=3))
    m1 = Module(id="m1", section_id="s1", title="Variables", content="# Variables", content_type="markdown", order_index=1,
                deadline=now - timedelta(days=2, hours=1))
    m2 = Module(id="m2", section_id="s1", title="Loops", content="Loops in text", content_type="text", order_index=2,
                deadline=now + timedelta(days=1))
    m5 = Module(id="m5", section_id="s2", title="Draft module", content="wip", content_type="text", order_index=2,
                is_published=False)
    m4 = Module(id="m4", section_id="s2", title="Editors", content="", content_type="external_link",
                external_url="https://example.com/editors", order_index=1)
    m6 = Module(id="m6", section_id="s3", title="Concurrency", content="# Concurrency", content_type="markdown",
                order_index=1, deadline=now + timedelta(days=10))
    db_session.add_all([p2, p1, s2, s1, s3, m3, m1, m2, m5, m4, m6])
    db_session.commit()
    return {
        "p1": p1, "p2": p2,
        "s1": s1, "s2": s2, "s3": s3,
        "m1": m1, "m2": m2, "m3": m3, "m4": m4, "m5": m5, "m6": m6,
    }


@pytest.fixture
def complete(db_session):
    """Insert a completed progress row directly."""
    def _complete(user: User, module_id: str, when: datetime | None = None) -> ModuleProgress:
        record = ModuleProgress(
            id=f"{user.id}-{module_id}",
            user_id=user.id,
            module_id=module_id,
            is_completed=True,
            completed_at=when or datetime.utcnow(),
        )
        db_session.add(record)
        db_session.commit()
        return record

    return _complete
