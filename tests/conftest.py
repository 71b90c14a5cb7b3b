import pytest
import os
from datetime import date, datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from app.database import Base, get_db
from app.main import app
from app.models.appraisal import AppraisalCycle, AppraisalParticipant, GoalRatingSubmission, ParticipantStatus
from app.models.calibration import CalibrationAdjustment, CalibrationSession
from app.models.company import Company
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture(scope="function")
def db_session():
    """Fresh schema per test; services commit and roll back on their own."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)

@pytest.fixture(scope="function")
def company(db_session):
    """Create a default company for tests."""
    company = Company(name="Alpha Corp")
    db_session.add(company)
    db_session.commit()
    return company

@pytest.fixture(scope="function")
def make_cycle(db_session, company):
    """Factory for appraisal cycles in the default company."""
    def _make_cycle(name="2024 Annual", end_date=date(2024, 12, 31), evaluation_deadline=datetime(2024, 12, 15), company_id=None):
        cycle = AppraisalCycle(
            company_id=company_id or company.id,
            name=name,
            start_date=date(end_date.year, 1, 1) if end_date else None,
            end_date=end_date,
            evaluation_deadline=evaluation_deadline,
        )
        db_session.add(cycle)
        db_session.commit()
        return cycle
    return _make_cycle

@pytest.fixture(scope="function")
def add_review(db_session):
    """Factory for one manager/employee review assignment with an optional rating."""
    def _add_review(cycle, manager_id, employee_id, score=None, comment=None, submitted_at=None,
                    status=ParticipantStatus.COMPLETED.value):
        participant = AppraisalParticipant(
            cycle_id=cycle.id,
            employee_id=employee_id,
            manager_id=manager_id,
            status=status,
            manager_submitted_at=submitted_at,
        )
        db_session.add(participant)
        db_session.flush()
        if score is not None or comment is not None:
            db_session.add(GoalRatingSubmission(
                participant_id=participant.id,
                manager_score=score,
                manager_comment=comment,
            ))
        db_session.commit()
        return participant
    return _add_review

@pytest.fixture(scope="function")
def add_calibration(db_session, company):
    """Factory for a calibration session from (employee_id, original, adjusted) tuples."""
    def _add_calibration(adjustments, cycle=None, name="Calibration"):
        session = CalibrationSession(company_id=company.id, cycle_id=cycle.id if cycle else None, name=name)
        db_session.add(session)
        db_session.flush()
        for employee_id, original, adjusted in adjustments:
            db_session.add(CalibrationAdjustment(
                session_id=session.id,
                employee_id=employee_id,
                original_score=original,
                adjusted_score=adjusted,
            ))
        db_session.commit()
        return session
    return _add_calibration

@pytest.fixture(scope="function")
def client(db_session):
    """Get a TestClient that uses the test database session via dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
