"""
Data-access interfaces the scoring core depends on.

Any object implementing these protocols can back the scorers: the SQLAlchemy
implementations in ``repositories.sql`` are the default, tests may substitute
in-memory ones.
"""

import uuid
from typing import Callable, List, Optional, Protocol, Sequence, TypeVar

from libs.domain_types import AttemptStatus

from assessment_scoring.domain.records import (
    AnswerRecord,
    AttemptRecord,
    BatteryTestRecord,
    ProgressRecord,
    TestRecord,
)

T = TypeVar("T")


class TestReader(Protocol):
    """Read access to tests and their answer keys."""

    def get_test_with_questions(self, test_id: uuid.UUID) -> Optional[TestRecord]:
        """Return the test with nested questions and options, or None."""
        ...


class AttemptStore(Protocol):
    """Read/write access to test attempts."""

    def find_attempt(
        self, attempt_id: uuid.UUID, *, for_update: bool = False
    ) -> Optional[AttemptRecord]:
        """Return the attempt, optionally locking its row until commit."""
        ...

    def add_attempt(self, attempt: AttemptRecord) -> AttemptRecord:
        ...

    def save_attempt(
        self, attempt: AttemptRecord, *, expected_status: AttemptStatus
    ) -> AttemptRecord:
        """Write the attempt only if its stored status still equals expected_status.

        Raises a BAD_REQUEST ScoringError when another writer changed the
        status first.
        """
        ...

    def find_submitted_attempts(
        self, user_id: uuid.UUID, battery_id: uuid.UUID
    ) -> List[AttemptRecord]:
        ...


class AnswerStore(Protocol):
    """Read/write access to attempt answers."""

    def find_answers(self, attempt_id: uuid.UUID) -> List[AnswerRecord]:
        ...

    def find_answer(
        self, attempt_id: uuid.UUID, question_id: uuid.UUID
    ) -> Optional[AnswerRecord]:
        ...

    def save_answers(self, answers: Sequence[AnswerRecord]) -> List[AnswerRecord]:
        ...


class BatteryWeightStore(Protocol):
    """Read/write access to battery test weights."""

    def find_battery_tests(self, battery_id: uuid.UUID) -> List[BatteryTestRecord]:
        ...

    def replace_battery_tests(
        self, battery_id: uuid.UUID, rows: Sequence[BatteryTestRecord]
    ) -> List[BatteryTestRecord]:
        ...


class ProgressStore(Protocol):
    """Read/write access to battery progress records."""

    def find_progress(
        self, user_id: uuid.UUID, battery_id: uuid.UUID
    ) -> Optional[ProgressRecord]:
        ...

    def save_progress(self, progress: ProgressRecord) -> ProgressRecord:
        ...

    def list_progress(self) -> List[ProgressRecord]:
        ...


class UnitOfWork(Protocol):
    """Runs a callback atomically: commit on return, roll back on exception."""

    def __call__(self, work: Callable[[], T], operation_name: str) -> T:
        ...
