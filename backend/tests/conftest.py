"""
Pytest configuration and shared fixtures for testing.
"""
import sys
from pathlib import Path

# Add project root and backend/ to path so libs/ and assessment_scoring/ are
# importable without an installed package
project_root = Path(__file__).parent.parent.parent
backend_root = Path(__file__).parent.parent
for path in (project_root, backend_root):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

import uuid  # noqa: E402
from datetime import datetime, timedelta, timezone  # noqa: E402
from typing import Any, Dict, List, Optional, Sequence  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from libs.domain_types import (  # noqa: E402
    AttemptStatus,
    QuestionOrientation,
    ScoringStandard,
    TestCategory,
)

from assessment_scoring.core.unit_of_work import SessionUnitOfWork  # noqa: E402
from assessment_scoring.models import (  # noqa: E402
    AttemptAnswer,
    Base,
    BatteryTest,
    Option,
    Question,
    TestAttempt,
)
from assessment_scoring.models import models  # noqa: E402
from assessment_scoring.repositories.sql import (  # noqa: E402
    SqlAnswerStore,
    SqlAttemptStore,
    SqlBatteryWeightStore,
    SqlProgressStore,
    SqlTestReader,
)
from assessment_scoring.scoring import AnswerKeyResolver  # noqa: E402


# Use SQLite for tests. Path is relative to this file so the .db lands inside
# tests/ regardless of the working directory.
_TEST_DB = Path(__file__).parent / "test.db"
SQLALCHEMY_DATABASE_URL = f"sqlite:///{_TEST_DB}"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
)

# Fixed "now" for time-dependent behaviour
NOW = datetime(2026, 3, 2, 12, 0, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return NOW


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    """
    # Create all tables
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        # Drop all tables after test
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(db_session):
    """Session factory bound to the test database (tables already created)."""
    return TestingSessionLocal


@pytest.fixture
def clock():
    return fixed_clock


@pytest.fixture
def stores(db_session) -> Dict[str, Any]:
    """SQL stores, resolver and unit of work sharing the test session."""
    return {
        "tests": SqlTestReader(db_session),
        "attempts": SqlAttemptStore(db_session),
        "answers": SqlAnswerStore(db_session),
        "weights": SqlBatteryWeightStore(db_session),
        "progress": SqlProgressStore(db_session),
        "uow": SessionUnitOfWork(db_session),
        "resolver": AnswerKeyResolver(SqlTestReader(db_session), clock=fixed_clock),
    }


@pytest.fixture
def create_test(db_session):
    """
    Factory for tests with questions and options.

    Each question definition is a dict with optional keys ``points``, ``orientation``,
    ``dimension``, ``text`` and ``options``; each option definition is a dict with
    optional ``is_correct``, ``scoring_value`` and ``text``.
    """

    def _create(
        questions: Sequence[Dict[str, Any]] = (),
        *,
        category: TestCategory = TestCategory.STANDARD,
        scoring_standard: Optional[ScoringStandard] = None,
        duration: int = 60,
        is_active: bool = True,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        title: str = "Sample test",
    ) -> models.Test:
        test = models.Test(
            title=title,
            category=category,
            scoring_standard=scoring_standard,
            duration=duration,
            is_active=is_active,
            start_date=start_date,
            end_date=end_date,
        )
        for q_pos, q_def in enumerate(questions):
            question = Question(
                text=q_def.get("text", f"Question {q_pos + 1}"),
                points=q_def.get("points", 10),
                orientation=q_def.get("orientation"),
                dimension=q_def.get("dimension"),
                position=q_pos,
            )
            for o_pos, o_def in enumerate(q_def.get("options", [])):
                question.options.append(
                    Option(
                        text=o_def.get("text", f"Option {o_pos + 1}"),
                        is_correct=o_def.get("is_correct", False),
                        scoring_value=o_def.get("scoring_value"),
                        position=o_pos,
                    )
                )
            test.questions.append(question)
        db_session.add(test)
        db_session.commit()
        return test

    return _create


@pytest.fixture
def create_likert_test(create_test):
    """Factory for psychometric tests with five-point options per question."""

    def _create(
        orientations: Sequence[QuestionOrientation],
        dimensions: Optional[Sequence[Optional[str]]] = None,
        scoring_standard: Optional[ScoringStandard] = ScoringStandard.ONE_TO_FIVE,
    ) -> models.Test:
        dimensions = dimensions or [None] * len(orientations)
        return create_test(
            [
                {
                    "orientation": orientation,
                    "dimension": dimension,
                    "points": 0,
                    "options": [{"scoring_value": v} for v in range(1, 6)],
                }
                for orientation, dimension in zip(orientations, dimensions)
            ],
            category=TestCategory.PSYCHOMETRIC,
            scoring_standard=scoring_standard,
        )

    return _create


@pytest.fixture
def create_attempt(db_session):
    """Factory for test attempts."""

    def _create(
        test: models.Test,
        *,
        user_id: Optional[uuid.UUID] = None,
        battery_id: Optional[uuid.UUID] = None,
        status: AttemptStatus = AttemptStatus.IN_PROGRESS,
        started_at: Optional[datetime] = NOW - timedelta(minutes=10),
        submitted_at: Optional[datetime] = None,
        percentage: float = 0.0,
        time_spent_sec: int = 0,
    ) -> TestAttempt:
        attempt = TestAttempt(
            test_id=test.id,
            user_id=user_id or uuid.uuid4(),
            battery_id=battery_id,
            status=status,
            started_at=started_at,
            submitted_at=submitted_at,
            percentage=percentage,
            time_spent_sec=time_spent_sec,
        )
        db_session.add(attempt)
        db_session.commit()
        return attempt

    return _create


@pytest.fixture
def create_answer(db_session):
    """Factory for stored answers."""

    def _create(
        attempt: TestAttempt, question: Question, options: List[Option]
    ) -> AttemptAnswer:
        answer = AttemptAnswer(
            attempt_id=attempt.id,
            question_id=question.id,
            selected_option_ids=[o.id for o in options],
        )
        db_session.add(answer)
        db_session.commit()
        return answer

    return _create


@pytest.fixture
def create_battery(db_session):
    """Factory for battery weight rows. Returns the battery id."""

    def _create(weights: Dict[uuid.UUID, float]) -> uuid.UUID:
        battery_id = uuid.uuid4()
        for test_id, weight in weights.items():
            db_session.add(
                BatteryTest(battery_id=battery_id, test_id=test_id, weight=weight)
            )
        db_session.commit()
        return battery_id

    return _create
