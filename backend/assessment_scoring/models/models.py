"""
Database models for the scoring core.

Only the tables scoring reads or writes are mapped here. Users, batteries,
groups and companies belong to the surrounding platform; their ids appear as
plain UUID columns without foreign keys.
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from libs.domain_types import (
    AttemptStatus,
    ProgressStatus,
    QuestionOrientation,
    ScoringStandard,
    TestCategory,
)

from .base import Base
from .types import StringArray


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Test(Base):
    """Test definition: duration, category and activity window."""

    __tablename__ = "tests"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    duration = Column(Integer, nullable=False, default=60)  # minutes
    category = Column(
        Enum(TestCategory), nullable=False, default=TestCategory.STANDARD
    )
    scoring_standard = Column(
        Enum(ScoringStandard), nullable=True
    )  # Psychometric tests only
    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    questions = relationship(
        "Question",
        back_populates="test",
        cascade="all, delete-orphan",
        order_by="Question.position",
    )

    __table_args__ = (CheckConstraint("duration >= 0", name="ck_tests_duration"),)


class Question(Base):
    """Question belonging to exactly one test."""

    __tablename__ = "questions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    test_id = Column(
        Uuid, ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    text = Column(Text, nullable=False, default="")
    points = Column(Integer, nullable=False, default=1)  # Standard tests
    orientation = Column(
        Enum(QuestionOrientation), nullable=True
    )  # Psychometric tests only
    dimension = Column(String(100), nullable=True)  # Named sub-scale
    position = Column(Integer, nullable=False, default=0)

    test = relationship("Test", back_populates="questions")
    options = relationship(
        "Option",
        back_populates="question",
        cascade="all, delete-orphan",
        order_by="Option.position",
    )

    __table_args__ = (CheckConstraint("points >= 0", name="ck_questions_points"),)


class Option(Base):
    """Answer option belonging to exactly one question."""

    __tablename__ = "options"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    question_id = Column(
        Uuid,
        ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    text = Column(Text, nullable=False, default="")
    is_correct = Column(Boolean, nullable=False, default=False)  # Standard tests
    scoring_value = Column(Integer, nullable=True)  # Psychometric tests
    position = Column(Integer, nullable=False, default=0)

    question = relationship("Question", back_populates="options")


class TestAttempt(Base):
    """One scored instance of a user taking a single test."""

    __tablename__ = "test_attempts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    test_id = Column(
        Uuid, ForeignKey("tests.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(Uuid, nullable=False)
    battery_id = Column(Uuid, nullable=True)  # Set when taken as part of a battery
    status = Column(
        Enum(AttemptStatus), default=AttemptStatus.IN_PROGRESS, nullable=False
    )
    total_points = Column(Integer, nullable=False, default=0)
    awarded_points = Column(Integer, nullable=False, default=0)
    percentage = Column(Numeric(5, 2, asdecimal=False), nullable=False, default=0)
    correct_count = Column(Integer, nullable=False, default=0)
    time_spent_sec = Column(Integer, nullable=False, default=0)
    is_timed_out = Column(Boolean, nullable=False, default=False)
    started_at = Column(DateTime(timezone=True), nullable=True)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    answers = relationship(
        "AttemptAnswer", back_populates="attempt", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_test_attempts_test_user", "test_id", "user_id"),
        Index(
            "ix_test_attempts_user_battery_status", "user_id", "battery_id", "status"
        ),
        CheckConstraint(
            "percentage >= 0 AND percentage <= 100", name="ck_test_attempts_percentage"
        ),
    )


class AttemptAnswer(Base):
    """Selected options for one question of one attempt."""

    __tablename__ = "attempt_answers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    attempt_id = Column(
        Uuid,
        ForeignKey("test_attempts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question_id = Column(
        Uuid, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    selected_option_ids = Column(StringArray(), nullable=False, default=list)
    is_correct = Column(Boolean, nullable=True)  # NULL until scored; NULL for psychometric answers
    points_awarded = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    attempt = relationship("TestAttempt", back_populates="answers")

    __table_args__ = (
        UniqueConstraint("attempt_id", "question_id", name="uq_attempt_question"),
        CheckConstraint("points_awarded >= 0", name="ck_attempt_answers_points"),
    )


class BatteryTest(Base):
    """Weight of one test inside a battery (percentage of completion, 0-100)."""

    __tablename__ = "battery_tests"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    battery_id = Column(Uuid, nullable=False, index=True)
    test_id = Column(
        Uuid, ForeignKey("tests.id", ondelete="CASCADE"), nullable=False
    )
    weight = Column(Numeric(5, 2, asdecimal=False), nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("battery_id", "test_id", name="uq_battery_test"),
        CheckConstraint(
            "weight >= 0 AND weight <= 100", name="ck_battery_tests_weight"
        ),
    )


class BatteryProgress(Base):
    """Battery completion state for one user, recomputed on each submission."""

    __tablename__ = "battery_progress"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    battery_id = Column(Uuid, nullable=False)
    user_id = Column(Uuid, nullable=False, index=True)
    status = Column(
        Enum(ProgressStatus), default=ProgressStatus.NOT_STARTED, nullable=False
    )
    completed_tests = Column(Integer, nullable=False, default=0)
    total_tests = Column(Integer, nullable=False, default=0)
    progress_percentage = Column(
        Numeric(5, 2, asdecimal=False), nullable=False, default=0
    )
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    last_attempt_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(
        DateTime(timezone=True),
        default=_utc_now,
        onupdate=_utc_now,
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("battery_id", "user_id", name="uq_battery_progress_user"),
    )
