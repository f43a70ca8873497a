import os
import tempfile
from pathlib import Path

import pytest

# Point the app at a throwaway SQLite file before it is imported.
_DB_DIR = Path(tempfile.mkdtemp(prefix="course_library_tests_"))
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR / 'test.db'}"
os.environ["ENV"] = "dev"
os.environ["JWT_SECRET"] = "test-secret-key-that-is-long-enough-for-hs256"

from fastapi.testclient import TestClient  # noqa: E402

from course_library.database import create_db_and_tables, drop_db_and_tables  # noqa: E402
from course_library.main import app  # noqa: E402


@pytest.fixture(autouse=True)
def reset_db():
    """Give every test an empty schema."""
    drop_db_and_tables()
    create_db_and_tables()
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def login_as():
    """Register an account and return `(client, user)` with its session cookie set.

    Each call gets its own `TestClient`, so several accounts can act in
    one test without sharing cookies.
    """
    def _login(email, role='STUDENT', name=None, password='secret123'):
        c = TestClient(app)
        r = c.post('/auth/register', json={'email': email, 'password': password, 'name': name or email.split('@')[0], 'role': role})
        assert r.status_code == 201, r.text
        r = c.post('/auth/login', json={'email': email, 'password': password})
        assert r.status_code == 200, r.text
        return c, r.json()['user']
    return _login


@pytest.fixture
def professor(login_as):
    return login_as('prof@example.com', role='PROFESSOR', name='Prof')


@pytest.fixture
def student(login_as):
    return login_as('student@example.com', name='Student')


@pytest.fixture
def course(professor):
    """A course owned by the `professor` fixture."""
    c, _ = professor
    r = c.post('/courses', json={'title': 'Web Basics', 'description': 'HTML and CSS', 'category': 'Web'})
    assert r.status_code == 200, r.text
    return r.json()
