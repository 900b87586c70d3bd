"""Shared fixtures: in-memory database, app, admin token and row factories."""

import os

# Settings are read once and cached, so the environment must be in place before any app import.
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("ALLOWED_HOSTS", '["*"]')
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-long-enough-1234")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_JSON", "false")

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from agency_admin.bootstrap import create_admin
from agency_admin.core.database import Database, utcnow
from agency_admin.core.rate_limit import limiter
from agency_admin.core.security import create_access_token
from agency_admin.main import create_app
from agency_admin.models import CalculatorLead, CalculatorType, ErrorLevel, ErrorLog, LeadQuality, compute_fingerprint

ADMIN_EMAIL = "admin@agency.test"
ADMIN_PASSWORD = "Sup3r-Secret-Pass!"


@pytest.fixture
def database():
    db = Database("sqlite://", poolclass=StaticPool)
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def db_session(database):
    session = database.session()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def client(database):
    app = create_app(database=database)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_user(db_session):
    return create_admin(db_session, ADMIN_EMAIL, "Test Admin", ADMIN_PASSWORD)


@pytest.fixture
def admin_token(admin_user):
    return create_access_token(str(admin_user.id), admin_user.session_version)


@pytest.fixture
def auth_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def make_error(db_session):
    def _make_error(
        error_type: str = "TypeError",
        message: str = "Cannot read properties of undefined",
        route: str | None = "/contact",
        level: ErrorLevel = ErrorLevel.error,
        created_at: datetime | None = None,
        resolved_at: datetime | None = None,
        resolved_by: str | None = None,
        fingerprint: str | None = None,
    ) -> ErrorLog:
        row = ErrorLog(
            fingerprint=fingerprint or compute_fingerprint(error_type, message, route),
            error_type=error_type,
            message=message,
            route=route,
            level=level,
            created_at=created_at or utcnow(),
            resolved_at=resolved_at,
            resolved_by=resolved_by if resolved_at else None,
        )
        db_session.add(row)
        db_session.commit()
        return row

    return _make_error


@pytest.fixture
def make_lead(db_session):
    def _make_lead(
        created_at: datetime | None = None,
        calculator_type: CalculatorType = CalculatorType.roi_calculator,
        lead_quality: LeadQuality = LeadQuality.warm,
        contacted: bool = False,
        converted: bool = False,
        email: str = "lead@example.com",
        **extra,
    ) -> CalculatorLead:
        row = CalculatorLead(
            email=email,
            calculator_type=calculator_type,
            lead_quality=lead_quality,
            contacted=contacted,
            converted=converted,
            created_at=created_at or utcnow() - timedelta(minutes=5),
            **extra,
        )
        db_session.add(row)
        db_session.commit()
        return row

    return _make_lead
