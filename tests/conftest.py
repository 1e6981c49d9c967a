"""Shared fixtures: a temporary SQLite database, seeded users, and a test client."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from journal.config.app_config import AppConfig, clear_config_cache
from journal.core.models import Role
from journal.core.tokens import issue_token
from journal.db.courses_repository import insert_discipline
from journal.db.database import init_db
from journal.db.users_repository import insert_user
from journal.web.api import create_app

SECRET = "0123456789abcdef0123456789abcdef"

# id order matters: tests refer to these ids directly
SEED_USERS = [
    ("admin@x.com", Role.ADMIN, "Adminov", "Admin", "Adminovich"),  # 1
    ("student@x.com", Role.STUDENT, "Ivanov", "Ivan", "Ivanovich"),  # 2
    ("student2@x.com", Role.STUDENT, "Sidorova", "Anna", "Petrovna"),  # 3
    ("teacher2@x.com", Role.TEACHER, "Smirnov", "Oleg", "Olegovich"),  # 4
    ("teacher@x.com", Role.TEACHER, "Petrov", "Petr", "Petrovich"),  # 5
]
SEED_DISCIPLINES = ["Calculus", "Data Structures", "Physics"]  # 1, 2, 3

ADMIN_ID, STUDENT_ID, STUDENT2_ID, TEACHER2_ID, TEACHER_ID = 1, 2, 3, 4, 5


@pytest.fixture(autouse=True)
def _fresh_config_cache():
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def secret() -> str:
    return SECRET


@pytest.fixture
def db_path(tmp_path) -> Path:
    """Empty database with schema."""
    path = tmp_path / "storage" / "journal.db"
    init_db(path)
    return path


@pytest.fixture
def seeded(db_path) -> Path:
    """Database with SEED_USERS and SEED_DISCIPLINES."""
    for email, role, last, first, patronymic in SEED_USERS:
        insert_user(email, role, last, first, patronymic)
    for name in SEED_DISCIPLINES:
        insert_discipline(name)
    return db_path


@pytest.fixture
def config(db_path, secret) -> AppConfig:
    return AppConfig(storage_path=db_path, secret=secret)


@pytest.fixture
def client(config, seeded) -> TestClient:
    """Test client over the seeded database."""
    return TestClient(create_app(config))


@pytest.fixture
def auth_headers(secret):
    """Build an Authorization header for an email."""

    def _headers(email: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {issue_token(email, secret)}"}

    return _headers
