import os

# Must be set before the app modules create their engine
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"

from datetime import date  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.auth import get_current_user  # noqa: E402
from app.database import Base, SessionLocal, engine, get_db  # noqa: E402
from app.domain.jobs.repository import JobRepository  # noqa: E402
from app.domain.recurring_jobs.repository import RecurringJobRepository  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Client, User  # noqa: E402


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def user(db):
    owner = User(auth_uid="uid-owner", email="owner@example.com", full_name="Olive Owner", plan="free")
    db.add(owner)
    db.commit()
    db.refresh(owner)
    return owner


@pytest.fixture
def other_user(db):
    other = User(auth_uid="uid-other", email="other@example.com", plan="free")
    db.add(other)
    db.commit()
    db.refresh(other)
    return other


@pytest.fixture
def client_record(db, user):
    record = Client(user_id=user.id, name="Acme Offices", email="facilities@acme.test")
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@pytest.fixture
def recurring_repo(db):
    return RecurringJobRepository(db)


@pytest.fixture
def job_repo(db):
    return JobRepository(db)


@pytest.fixture
def make_definition(recurring_repo, user, client_record):
    """Create a recurring job definition with sensible defaults"""

    def _make(**overrides):
        fields = {
            "user_id": user.id,
            "client_id": client_record.id,
            "title": "Weekly office clean",
            "description": "Vacuum and mop",
            "frequency": "weekly",
            "start_date": date(2024, 5, 21),
            "end_date": None,
            "scheduled_time": "09:00",
            "agreed_hours": 3.0,
            "is_active": True,
        }
        fields.update(overrides)
        return recurring_repo.create(**fields).unwrap()

    return _make


@pytest.fixture
def make_job(job_repo, user, client_record):
    """Create a one-off job with sensible defaults"""

    def _make(**overrides):
        fields = {
            "user_id": user.id,
            "client_id": client_record.id,
            "title": "Move-out clean",
            "scheduled_date": date(2024, 6, 3),
            "scheduled_time": "10:00",
            "status": "scheduled",
        }
        fields.update(overrides)
        return job_repo.create(**fields).unwrap()

    return _make


@pytest.fixture
def api(db, user):
    """HTTP client authenticated as ``user``"""
    app.dependency_overrides[get_current_user] = lambda: user
    app.dependency_overrides[get_db] = lambda: db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
