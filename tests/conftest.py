import pytest
import os
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

from app.database import Base, get_db
from app.main import app
from app.models.identifiers import ReviewCycleId, UserId
from app.models.manager_evaluation import ManagerEvaluation
from app.models.peer_feedback import PeerFeedback
from app.models.review_cycle import CycleDeadlines, ReviewCycle
from app.models.review_values import EngineerLevel, PillarScores
from app.models.user import User, UserRole
from app.repositories import ports
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Create tables once for the whole test session."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Get a clean database session for each test function with rollback safety."""
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()


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


# --- Domain builders ---

def _deadlines(offset_days: int) -> CycleDeadlines:
    base = datetime.now(timezone.utc) + timedelta(days=offset_days)
    return CycleDeadlines(
        self_review=base,
        peer_feedback=base + timedelta(days=7),
        manager_evaluation=base + timedelta(days=14),
        calibration=base + timedelta(days=21),
        feedback_delivery=base + timedelta(days=28),
    )


@pytest.fixture
def make_cycle():
    """
    Builds a ReviewCycle. offset_days shifts the first deadline relative to now;
    a large negative offset puts every deadline in the past.
    """
    def _make_cycle(offset_days: int = 30, name: str = "2025 Annual Review", **kwargs) -> ReviewCycle:
        return ReviewCycle.create(name=name, year=2025, deadlines=_deadlines(offset_days), **kwargs)
    return _make_cycle


@pytest.fixture
def make_user():
    def _make_user(
        email: str,
        role: UserRole = UserRole.EMPLOYEE,
        level: EngineerLevel = EngineerLevel.MID,
        manager: User = None,
    ) -> User:
        return User(
            id=UserId.generate(),
            email=email,
            full_name=email.split("@")[0].title(),
            role=role,
            level=level,
            department="Engineering",
            manager_id=manager.id if manager else None,
            is_active=True,
        )
    return _make_user


@pytest.fixture
def make_evaluation():
    def _make_evaluation(
        employee: User,
        manager: User,
        cycle_id: ReviewCycleId,
        scores: PillarScores = PillarScores(3, 3, 3, 3, 3),
        level: EngineerLevel = EngineerLevel.MID,
        submitted: bool = True,
    ) -> ManagerEvaluation:
        evaluation = ManagerEvaluation.create(
            cycle_id=cycle_id,
            employee_id=employee.id,
            manager_id=manager.id,
            scores=scores,
            narrative="Consistently strong delivery",
            employee_level=level,
        )
        if submitted:
            evaluation.submit()
        return evaluation
    return _make_evaluation


@pytest.fixture
def make_peer_feedback():
    def _make_peer_feedback(reviewee: User, reviewer: User, cycle_id: ReviewCycleId, scores: PillarScores, **kwargs):
        return PeerFeedback.create(
            cycle_id=cycle_id,
            reviewee_id=reviewee.id,
            reviewer_id=reviewer.id,
            scores=scores,
            **kwargs,
        )
    return _make_peer_feedback


# --- Repository mocks ---

def _repository_mock(port):
    repo = AsyncMock(spec=port)
    # save returns what it was given, like the SQLAlchemy adapters
    repo.save.side_effect = lambda entity: entity
    repo.find_by_id.return_value = None
    return repo


@pytest.fixture
def cycle_repo():
    repo = _repository_mock(ports.ReviewCycleRepository)
    repo.find_active.return_value = None
    return repo


@pytest.fixture
def user_repo():
    repo = _repository_mock(ports.UserRepository)
    repo.find_by_manager_id.return_value = []
    return repo


@pytest.fixture
def self_review_repo():
    repo = _repository_mock(ports.SelfReviewRepository)
    repo.find_by_user_and_cycle.return_value = None
    return repo


@pytest.fixture
def peer_feedback_repo():
    repo = _repository_mock(ports.PeerFeedbackRepository)
    repo.find_by_reviewee_and_cycle.return_value = []
    repo.find_by_reviewer_and_cycle.return_value = []
    return repo


@pytest.fixture
def evaluation_repo():
    repo = _repository_mock(ports.ManagerEvaluationRepository)
    repo.find_by_employee_and_cycle.return_value = None
    repo.find_by_cycle.return_value = []
    return repo


@pytest.fixture
def final_score_repo():
    repo = _repository_mock(ports.FinalScoreRepository)
    repo.find_by_user_and_cycle.return_value = None
    repo.find_by_cycle.return_value = []
    return repo
