from __future__ import annotations

import os
import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Configure before the app (and its settings) are imported
_DB_DIR = tempfile.mkdtemp(prefix="ezevent-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{Path(_DB_DIR) / 'test.db'}")
os.environ.setdefault("JWT_SECRET", "test_jwt_secret_32_chars_minimum")
os.environ.setdefault("ENV", "local")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("PUBLIC_BASE_URL", "http://testserver.local")

from ezevent.db import SessionLocal, init_db  # noqa: E402
from ezevent.main import app  # noqa: E402
from ezevent.models import Base  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def create_schema():
    init_db()
    yield


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def clean_db(create_schema):
    # Ensure a clean slate for each test
    db = SessionLocal()
    try:
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())
        db.commit()
    finally:
        db.close()
    yield
