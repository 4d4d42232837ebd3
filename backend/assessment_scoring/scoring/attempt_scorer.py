"""
Standard attempt scoring with partial credit.

Scoring Rules
=============
For each answered question, with ``correct`` the set of options marked correct
and ``selected`` the set the user chose:

- ``denom = max(|correct|, 1)``
- ``base = |selected ∩ correct| / denom * points``
- ``penalty = min(over, points) * (points / denom) * 0.5`` where
  ``over = |selected - correct|`` (no penalty when over is 0)
- ``points_awarded = max(0, round_half_up(base - penalty))``
- an answer is correct only when ``selected == correct``

Unanswered questions award nothing but still count toward ``total_points``.

Submission
==========
Submission is the single transition out of IN_PROGRESS: the status check, the
grading and the final write run in one unit of work. A submission past
``started_at + duration`` is still scored but finalized as EXPIRED.
"""

import logging
import math
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import AbstractSet, Callable, Optional

from libs.domain_types import TERMINAL_ATTEMPT_STATUSES, AttemptStatus

from assessment_scoring.core.config import settings
from assessment_scoring.core.datetime_utils import utc_now
from assessment_scoring.core.errors import (
    ErrorMessages,
    raise_bad_request,
    raise_not_found,
)
from assessment_scoring.domain.records import AttemptRecord, TestRecord
from assessment_scoring.repositories.interfaces import (
    AnswerStore,
    AttemptStore,
    UnitOfWork,
)
from assessment_scoring.scoring.answer_key import AnswerKeyResolver

logger = logging.getLogger(__name__)


@dataclass
class AnswerGrade:
    """Outcome of grading one answer."""

    is_correct: bool
    points_awarded: int
    intersection: int
    over_selected: int
    base: float
    penalty: float


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward positive infinity."""
    return math.floor(value + 0.5)


def round2(value: float) -> float:
    """Round to 2 decimal places, halves away from zero."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def grade_answer(
    selected: AbstractSet[uuid.UUID],
    correct: AbstractSet[uuid.UUID],
    points: int,
    penalty_factor: float = 0.5,
) -> AnswerGrade:
    """
    Grade one answer with partial credit and an over-selection penalty.

    Args:
        selected: Option ids the user selected
        correct: Option ids marked correct for the question
        points: Points the question is worth
        penalty_factor: Share of a per-correct-option value deducted per
            wrongly selected option

    Returns:
        AnswerGrade with the awarded points (never negative) and the
        intermediate quantities used to compute them.

    Example:
        >>> grade_answer({b}, {b, c}, 10).points_awarded
        5
    """
    denom = max(len(correct), 1)
    intersection = len(selected & correct)
    over_selected = len(selected - correct)

    base = (intersection / denom) * points
    penalty = (
        min(over_selected, points) * (points / denom) * penalty_factor
        if over_selected > 0
        else 0.0
    )

    return AnswerGrade(
        is_correct=set(selected) == set(correct),
        points_awarded=max(0, round_half_up(base - penalty)),
        intersection=intersection,
        over_selected=over_selected,
        base=base,
        penalty=penalty,
    )


def calculate_percentage(awarded_points: int, total_points: int) -> float:
    """Awarded share of total points as a 2-decimal percentage (0 when total is 0)."""
    if total_points <= 0:
        return 0.0
    return round2(awarded_points / total_points * 100)


def is_timed_out(
    started_at: Optional[datetime], duration_minutes: int, now: datetime
) -> bool:
    """Whether ``now`` is past the attempt's deadline. Unstarted attempts never time out."""
    if started_at is None:
        return False
    return now > started_at + timedelta(minutes=duration_minutes)


class AttemptScorer:
    """Grades and finalizes standard test attempts."""

    def __init__(
        self,
        resolver: AnswerKeyResolver,
        attempts: AttemptStore,
        answers: AnswerStore,
        unit_of_work: UnitOfWork,
        clock: Callable[[], datetime] = utc_now,
        *,
        enforce_activity_on_submit: Optional[bool] = None,
        penalty_factor: Optional[float] = None,
    ):
        self.resolver = resolver
        self.attempts = attempts
        self.answers = answers
        self.unit_of_work = unit_of_work
        self.clock = clock
        self.enforce_activity_on_submit = (
            settings.ENFORCE_ACTIVITY_WINDOW_ON_SUBMIT
            if enforce_activity_on_submit is None
            else enforce_activity_on_submit
        )
        self.penalty_factor = (
            settings.OVER_SELECTION_PENALTY_FACTOR
            if penalty_factor is None
            else penalty_factor
        )

    def submit(
        self, attempt_id: uuid.UUID, final_time_spent_sec: Optional[int] = None
    ) -> AttemptRecord:
        """
        Score an in-progress attempt and move it to SUBMITTED or EXPIRED.

        Args:
            attempt_id: Attempt to submit
            final_time_spent_sec: Client-reported total time; only ever raises
                the stored value

        Returns:
            The finalized attempt record

        Raises:
            ScoringError(NOT_FOUND): Attempt or its test does not exist
            ScoringError(BAD_REQUEST): Attempt is not IN_PROGRESS, including
                when a concurrent submission finalized it first
        """
        return self.unit_of_work(
            lambda: self._submit(attempt_id, final_time_spent_sec),
            f"submit attempt {attempt_id}",
        )

    def _submit(
        self, attempt_id: uuid.UUID, final_time_spent_sec: Optional[int]
    ) -> AttemptRecord:
        attempt = self.attempts.find_attempt(attempt_id, for_update=True)
        if attempt is None:
            raise_not_found(ErrorMessages.ATTEMPT_NOT_FOUND)
        if attempt.status in TERMINAL_ATTEMPT_STATUSES:
            raise_bad_request(ErrorMessages.ATTEMPT_NOT_IN_PROGRESS)

        test = self.resolver.resolve(
            attempt.test_id, enforce_activity=self.enforce_activity_on_submit
        )

        now = self.clock()
        timed_out = is_timed_out(attempt.started_at, test.duration, now)
        attempt.time_spent_sec = max(attempt.time_spent_sec, final_time_spent_sec or 0)

        self._grade(attempt, test)

        attempt.status = AttemptStatus.EXPIRED if timed_out else AttemptStatus.SUBMITTED
        attempt.is_timed_out = timed_out
        attempt.submitted_at = now
        self.attempts.save_attempt(attempt, expected_status=AttemptStatus.IN_PROGRESS)

        logger.info(
            f"Attempt {attempt.id} finalized as {attempt.status.value}: "
            f"{attempt.awarded_points}/{attempt.total_points} points "
            f"({attempt.percentage:.2f}%), {attempt.correct_count} correct",
            extra={
                "attempt_id": str(attempt.id),
                "test_id": str(attempt.test_id),
                "status": attempt.status.value,
                "percentage": attempt.percentage,
            },
        )
        return attempt

    def _grade(self, attempt: AttemptRecord, test: TestRecord) -> None:
        """Grade every stored answer of ``attempt`` and fill in its totals."""
        questions = test.questions_by_id()
        total_points = sum(q.points for q in test.questions)

        answers = self.answers.find_answers(attempt.id)
        awarded_points = 0
        correct_count = 0
        for answer in answers:
            question = questions.get(answer.question_id)
            if question is None:
                logger.warning(
                    f"Attempt {attempt.id}: skipping answer for question "
                    f"{answer.question_id}, which is no longer part of test {test.id}"
                )
                continue

            grade = grade_answer(
                set(answer.selected_option_ids),
                question.correct_option_ids,
                question.points,
                self.penalty_factor,
            )
            answer.is_correct = grade.is_correct
            answer.points_awarded = grade.points_awarded

            awarded_points += grade.points_awarded
            if grade.is_correct:
                correct_count += 1

        self.answers.save_answers(answers)

        attempt.total_points = total_points
        attempt.awarded_points = awarded_points
        attempt.correct_count = correct_count
        attempt.percentage = calculate_percentage(awarded_points, total_points)
