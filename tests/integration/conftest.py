"""
Integration test fixtures. Overrides get_db with the in-memory DB and logs clients in by cookie.
"""
import pytest
from fastapi.testclient import TestClient

from lms.utils.jwt import create_access_token


@pytest.fixture
def override_get_db(session_factory):
    """get_db replacement bound to the per-test in-memory engine."""
    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    return _get_db


@pytest.fixture
def api_client(override_get_db):
    """FastAPI TestClient with in-memory DB override and no credentials."""
    from lms.api import app
    from lms.config import get_db
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


def _clear_overrides():
    from lms.api import app
    app.dependency_overrides.clear()


def _client_for(override_get_db, email: str):
    from lms.api import app
    from lms.config import get_db
    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app, cookies={"access_token": create_access_token(email)})


@pytest.fixture
def student_client(override_get_db, student):
    with _client_for(override_get_db, student.email) as client:
        yield client
    _clear_overrides()


@pytest.fixture
def instructor_client(override_get_db, instructor):
    with _client_for(override_get_db, instructor.email) as client:
        yield client
    _clear_overrides()
