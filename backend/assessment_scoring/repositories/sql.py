"""
SQLAlchemy implementations of the scoring data-access interfaces.

All stores share the caller's session and never commit; committing and rolling
back is the job of the unit of work that wraps the scoring operation
(``core.unit_of_work``). Reads use ``populate_existing`` so that rows rewritten
by guarded UPDATE statements are never served stale from the identity map.
"""

import logging
import uuid
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session, selectinload

from libs.domain_types import AttemptStatus

from assessment_scoring.core.datetime_utils import optional_timezone_aware
from assessment_scoring.core.errors import ErrorMessages, raise_bad_request
from assessment_scoring.domain.records import (
    AnswerRecord,
    AttemptRecord,
    BatteryTestRecord,
    OptionRecord,
    ProgressRecord,
    QuestionRecord,
    TestRecord,
)
from assessment_scoring.models.models import (
    AttemptAnswer,
    BatteryProgress,
    BatteryTest,
    Question,
    Test,
    TestAttempt,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Row -> record conversion
# =============================================================================


def test_to_record(test: Test) -> TestRecord:
    return TestRecord(
        id=test.id,
        duration=test.duration,
        category=test.category,
        scoring_standard=test.scoring_standard,
        start_date=optional_timezone_aware(test.start_date),
        end_date=optional_timezone_aware(test.end_date),
        is_active=test.is_active,
        title=test.title,
        questions=[
            QuestionRecord(
                id=q.id,
                points=q.points,
                orientation=q.orientation,
                dimension=q.dimension,
                text=q.text,
                options=[
                    OptionRecord(
                        id=o.id,
                        is_correct=o.is_correct,
                        scoring_value=o.scoring_value,
                        text=o.text,
                    )
                    for o in q.options
                ],
            )
            for q in test.questions
        ],
    )


def attempt_to_record(row: TestAttempt) -> AttemptRecord:
    return AttemptRecord(
        id=row.id,
        test_id=row.test_id,
        user_id=row.user_id,
        status=row.status,
        battery_id=row.battery_id,
        total_points=row.total_points,
        awarded_points=row.awarded_points,
        percentage=float(row.percentage),
        correct_count=row.correct_count,
        time_spent_sec=row.time_spent_sec,
        is_timed_out=row.is_timed_out,
        started_at=optional_timezone_aware(row.started_at),
        submitted_at=optional_timezone_aware(row.submitted_at),
    )


def answer_to_record(row: AttemptAnswer) -> AnswerRecord:
    return AnswerRecord(
        id=row.id,
        attempt_id=row.attempt_id,
        question_id=row.question_id,
        selected_option_ids=[uuid.UUID(v) for v in row.selected_option_ids or []],
        is_correct=row.is_correct,
        points_awarded=row.points_awarded,
    )


def progress_to_record(row: BatteryProgress) -> ProgressRecord:
    return ProgressRecord(
        id=row.id,
        battery_id=row.battery_id,
        user_id=row.user_id,
        status=row.status,
        completed_tests=row.completed_tests,
        total_tests=row.total_tests,
        progress_percentage=float(row.progress_percentage),
        started_at=optional_timezone_aware(row.started_at),
        completed_at=optional_timezone_aware(row.completed_at),
        last_attempt_at=optional_timezone_aware(row.last_attempt_at),
    )


# =============================================================================
# Stores
# =============================================================================


class SqlTestReader:
    """Loads tests with questions and options in position order."""

    def __init__(self, db: Session):
        self.db = db

    def get_test_with_questions(self, test_id: uuid.UUID) -> Optional[TestRecord]:
        test = (
            self.db.query(Test)
            .options(selectinload(Test.questions).selectinload(Question.options))
            .filter(Test.id == test_id)
            .first()
        )
        return test_to_record(test) if test is not None else None


class SqlAttemptStore:
    """Attempt persistence with status-guarded writes."""

    def __init__(self, db: Session):
        self.db = db

    def find_attempt(
        self, attempt_id: uuid.UUID, *, for_update: bool = False
    ) -> Optional[AttemptRecord]:
        query = (
            self.db.query(TestAttempt)
            .filter(TestAttempt.id == attempt_id)
            .populate_existing()
        )
        if for_update:
            # Row lock on PostgreSQL; SQLite serializes writers instead
            query = query.with_for_update()
        row = query.first()
        return attempt_to_record(row) if row is not None else None

    def add_attempt(self, attempt: AttemptRecord) -> AttemptRecord:
        row = TestAttempt(
            id=attempt.id,
            test_id=attempt.test_id,
            user_id=attempt.user_id,
            battery_id=attempt.battery_id,
            status=attempt.status,
            time_spent_sec=attempt.time_spent_sec,
            started_at=attempt.started_at,
        )
        self.db.add(row)
        self.db.flush()
        return attempt_to_record(row)

    def save_attempt(
        self, attempt: AttemptRecord, *, expected_status: AttemptStatus
    ) -> AttemptRecord:
        updated = (
            self.db.query(TestAttempt)
            .filter(
                TestAttempt.id == attempt.id,
                TestAttempt.status == expected_status,
            )
            .update(
                {
                    TestAttempt.status: attempt.status,
                    TestAttempt.total_points: attempt.total_points,
                    TestAttempt.awarded_points: attempt.awarded_points,
                    TestAttempt.percentage: attempt.percentage,
                    TestAttempt.correct_count: attempt.correct_count,
                    TestAttempt.time_spent_sec: attempt.time_spent_sec,
                    TestAttempt.is_timed_out: attempt.is_timed_out,
                    TestAttempt.submitted_at: attempt.submitted_at,
                },
                synchronize_session=False,
            )
        )
        if updated != 1:
            logger.warning(
                f"Guarded write lost for attempt {attempt.id}: "
                f"expected status {expected_status.value}"
            )
            raise_bad_request(ErrorMessages.ATTEMPT_NOT_IN_PROGRESS)
        return attempt

    def find_submitted_attempts(
        self, user_id: uuid.UUID, battery_id: uuid.UUID
    ) -> List[AttemptRecord]:
        rows = (
            self.db.query(TestAttempt)
            .filter(
                TestAttempt.user_id == user_id,
                TestAttempt.battery_id == battery_id,
                TestAttempt.status == AttemptStatus.SUBMITTED,
            )
            .order_by(TestAttempt.submitted_at, TestAttempt.id)
            .populate_existing()
            .all()
        )
        return [attempt_to_record(row) for row in rows]


class SqlAnswerStore:
    """Answer persistence keyed by (attempt_id, question_id)."""

    def __init__(self, db: Session):
        self.db = db

    def find_answers(self, attempt_id: uuid.UUID) -> List[AnswerRecord]:
        rows = (
            self.db.query(AttemptAnswer)
            .filter(AttemptAnswer.attempt_id == attempt_id)
            .order_by(AttemptAnswer.created_at, AttemptAnswer.id)
            .populate_existing()
            .all()
        )
        return [answer_to_record(row) for row in rows]

    def find_answer(
        self, attempt_id: uuid.UUID, question_id: uuid.UUID
    ) -> Optional[AnswerRecord]:
        row = self._find_row(attempt_id, question_id)
        return answer_to_record(row) if row is not None else None

    def save_answers(self, answers: Sequence[AnswerRecord]) -> List[AnswerRecord]:
        saved: List[AnswerRecord] = []
        for answer in answers:
            row = self._find_row(answer.attempt_id, answer.question_id)
            if row is None:
                row = AttemptAnswer(
                    id=answer.id or uuid.uuid4(),
                    attempt_id=answer.attempt_id,
                    question_id=answer.question_id,
                )
                self.db.add(row)
            row.selected_option_ids = [str(v) for v in answer.selected_option_ids]
            row.is_correct = answer.is_correct
            row.points_awarded = answer.points_awarded
            saved.append(row)
        self.db.flush()
        return [answer_to_record(row) for row in saved]

    def _find_row(
        self, attempt_id: uuid.UUID, question_id: uuid.UUID
    ) -> Optional[AttemptAnswer]:
        return (
            self.db.query(AttemptAnswer)
            .filter(
                AttemptAnswer.attempt_id == attempt_id,
                AttemptAnswer.question_id == question_id,
            )
            .populate_existing()
            .first()
        )


class SqlBatteryWeightStore:
    """Battery test weight persistence."""

    def __init__(self, db: Session):
        self.db = db

    def find_battery_tests(self, battery_id: uuid.UUID) -> List[BatteryTestRecord]:
        rows = (
            self.db.query(BatteryTest)
            .filter(BatteryTest.battery_id == battery_id)
            .order_by(BatteryTest.test_id)
            .all()
        )
        return [
            BatteryTestRecord(
                battery_id=row.battery_id, test_id=row.test_id, weight=float(row.weight)
            )
            for row in rows
        ]

    def replace_battery_tests(
        self, battery_id: uuid.UUID, rows: Sequence[BatteryTestRecord]
    ) -> List[BatteryTestRecord]:
        self.db.query(BatteryTest).filter(BatteryTest.battery_id == battery_id).delete(
            synchronize_session="fetch"
        )
        for record in rows:
            self.db.add(
                BatteryTest(
                    battery_id=battery_id, test_id=record.test_id, weight=record.weight
                )
            )
        self.db.flush()
        return self.find_battery_tests(battery_id)


class SqlProgressStore:
    """Battery progress persistence keyed by (battery_id, user_id)."""

    def __init__(self, db: Session):
        self.db = db

    def find_progress(
        self, user_id: uuid.UUID, battery_id: uuid.UUID
    ) -> Optional[ProgressRecord]:
        row = self._find_row(user_id, battery_id)
        return progress_to_record(row) if row is not None else None

    def save_progress(self, progress: ProgressRecord) -> ProgressRecord:
        row = self._find_row(progress.user_id, progress.battery_id)
        if row is None:
            row = BatteryProgress(
                id=progress.id or uuid.uuid4(),
                battery_id=progress.battery_id,
                user_id=progress.user_id,
            )
            self.db.add(row)
        row.status = progress.status
        row.completed_tests = progress.completed_tests
        row.total_tests = progress.total_tests
        row.progress_percentage = progress.progress_percentage
        row.started_at = progress.started_at
        row.completed_at = progress.completed_at
        row.last_attempt_at = progress.last_attempt_at
        self.db.flush()
        return progress_to_record(row)

    def list_progress(self) -> List[ProgressRecord]:
        rows = self.db.query(BatteryProgress).order_by(BatteryProgress.updated_at).all()
        return [progress_to_record(row) for row in rows]

    def _find_row(
        self, user_id: uuid.UUID, battery_id: uuid.UUID
    ) -> Optional[BatteryProgress]:
        return (
            self.db.query(BatteryProgress)
            .filter(
                BatteryProgress.user_id == user_id,
                BatteryProgress.battery_id == battery_id,
            )
            .populate_existing()
            .first()
        )
