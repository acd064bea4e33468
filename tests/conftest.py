import os
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure predictable environment variables for tests before importing the app.
BASE_DIR = Path(__file__).resolve().parents[1]
TEST_DB_PATH = BASE_DIR / "test.db"

if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ.setdefault("DAILY_STEP_GOAL", "10000")

import steps_tracker.main as main  # noqa: E402  (import after env vars are set)
from steps_tracker.database import Base, SessionLocal, engine  # noqa: E402
from steps_tracker.models.daily_steps import DailySteps  # noqa: E402
from steps_tracker.services import steps_service  # noqa: E402


@pytest.fixture(autouse=True)
def clean_table():
    """Start every test from an empty daily_steps table."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        session.query(DailySteps).delete()
        session.commit()
    finally:
        session.close()
    yield


@pytest.fixture()
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def clock(monkeypatch):
    """Replace the service clock with one that advances a second per reading."""
    state = {"now": datetime(2024, 1, 15, 8, 0, 0)}

    def _tick():
        state["now"] += timedelta(seconds=1)
        return state["now"]

    monkeypatch.setattr(steps_service, "_utcnow", _tick)
    return state


@pytest.fixture()
def client():
    with TestClient(main.app) as test_client:
        yield test_client
