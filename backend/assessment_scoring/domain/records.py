"""
Plain records exchanged between the scoring core and its data stores.

Stores return these instead of ORM rows so scoring logic never depends on a
session being open or on a particular storage engine.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, FrozenSet, List, Optional

from libs.domain_types import (
    AttemptStatus,
    ProgressStatus,
    QuestionOrientation,
    ScoringStandard,
    TestCategory,
)


@dataclass
class OptionRecord:
    """Answer option with its answer-key metadata."""

    id: uuid.UUID
    is_correct: bool = False
    scoring_value: Optional[int] = None
    text: str = ""


@dataclass
class QuestionRecord:
    """Question with its options in display order."""

    id: uuid.UUID
    points: int = 0
    orientation: Optional[QuestionOrientation] = None
    dimension: Optional[str] = None
    text: str = ""
    options: List[OptionRecord] = field(default_factory=list)

    @property
    def option_ids(self) -> FrozenSet[uuid.UUID]:
        return frozenset(o.id for o in self.options)

    @property
    def correct_option_ids(self) -> FrozenSet[uuid.UUID]:
        return frozenset(o.id for o in self.options if o.is_correct)

    @property
    def label(self) -> str:
        """Text used to name the question in error messages."""
        return self.text or str(self.id)

    def find_option(self, option_id: uuid.UUID) -> Optional[OptionRecord]:
        for option in self.options:
            if option.id == option_id:
                return option
        return None


@dataclass
class TestRecord:
    """Test with its full answer key (questions and options)."""

    id: uuid.UUID
    duration: int = 60  # minutes
    category: TestCategory = TestCategory.STANDARD
    scoring_standard: Optional[ScoringStandard] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: bool = True
    title: str = ""
    questions: List[QuestionRecord] = field(default_factory=list)

    def questions_by_id(self) -> Dict[uuid.UUID, QuestionRecord]:
        return {q.id: q for q in self.questions}


@dataclass
class AttemptRecord:
    """Test attempt and, once scored, its aggregate result."""

    id: uuid.UUID
    test_id: uuid.UUID
    user_id: uuid.UUID
    status: AttemptStatus = AttemptStatus.IN_PROGRESS
    battery_id: Optional[uuid.UUID] = None
    total_points: int = 0
    awarded_points: int = 0
    percentage: float = 0.0
    correct_count: int = 0
    time_spent_sec: int = 0
    is_timed_out: bool = False
    started_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None


@dataclass
class AnswerRecord:
    """Options a user selected for one question of an attempt."""

    attempt_id: uuid.UUID
    question_id: uuid.UUID
    selected_option_ids: List[uuid.UUID] = field(default_factory=list)
    is_correct: Optional[bool] = None
    points_awarded: int = 0
    id: Optional[uuid.UUID] = None


@dataclass
class BatteryTestRecord:
    """Weight (0-100) of one test within a battery."""

    battery_id: uuid.UUID
    test_id: uuid.UUID
    weight: float


@dataclass
class ProgressRecord:
    """Battery completion state for one user."""

    battery_id: uuid.UUID
    user_id: uuid.UUID
    status: ProgressStatus = ProgressStatus.NOT_STARTED
    completed_tests: int = 0
    total_tests: int = 0
    progress_percentage: float = 0.0
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    last_attempt_at: Optional[datetime] = None
    id: Optional[uuid.UUID] = None
