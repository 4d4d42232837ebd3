"""
Attempt lifecycle before scoring: starting, answering and cancelling.
"""

import logging
import uuid
from datetime import datetime
from typing import Callable, Optional, Sequence

from libs.domain_types import TERMINAL_ATTEMPT_STATUSES, AttemptStatus

from assessment_scoring.core.datetime_utils import utc_now
from assessment_scoring.core.errors import (
    ErrorMessages,
    raise_bad_request,
    raise_not_found,
)
from assessment_scoring.domain.records import AnswerRecord, AttemptRecord
from assessment_scoring.repositories.interfaces import (
    AnswerStore,
    AttemptStore,
    UnitOfWork,
)
from assessment_scoring.scoring.answer_key import AnswerKeyResolver

logger = logging.getLogger(__name__)


class AttemptLifecycle:
    """Creates attempts and records answers while they are IN_PROGRESS."""

    def __init__(
        self,
        resolver: AnswerKeyResolver,
        attempts: AttemptStore,
        answers: AnswerStore,
        unit_of_work: UnitOfWork,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.resolver = resolver
        self.attempts = attempts
        self.answers = answers
        self.unit_of_work = unit_of_work
        self.clock = clock

    def start(
        self,
        user_id: uuid.UUID,
        test_id: uuid.UUID,
        battery_id: Optional[uuid.UUID] = None,
    ) -> AttemptRecord:
        """
        Start a new attempt at an active test.

        Raises:
            ScoringError(NOT_FOUND): Test does not exist
            ScoringError(FORBIDDEN): Test is inactive or outside its window
        """

        def work() -> AttemptRecord:
            test = self.resolver.resolve(test_id)
            attempt = self.attempts.add_attempt(
                AttemptRecord(
                    id=uuid.uuid4(),
                    test_id=test.id,
                    user_id=user_id,
                    battery_id=battery_id,
                    status=AttemptStatus.IN_PROGRESS,
                    started_at=self.clock(),
                )
            )
            logger.info(
                f"User {user_id} started attempt {attempt.id} on test {test.id}",
                extra={
                    "attempt_id": str(attempt.id),
                    "test_id": str(test.id),
                    "user_id": str(user_id),
                },
            )
            return attempt

        return self.unit_of_work(work, f"start attempt on test {test_id}")

    def save_answer(
        self,
        attempt_id: uuid.UUID,
        question_id: uuid.UUID,
        selected_option_ids: Sequence[uuid.UUID],
        time_spent_increment_sec: int = 0,
    ) -> AnswerRecord:
        """
        Create or replace the answer to one question of an in-progress attempt.

        Duplicate option ids are collapsed; the first occurrence keeps its place.
        A positive ``time_spent_increment_sec`` is added to the attempt's time.

        Raises:
            ScoringError(NOT_FOUND): Attempt or its test does not exist
            ScoringError(BAD_REQUEST): Attempt is not IN_PROGRESS, the question
                is not part of the test or an option is not one of its options
        """

        def work() -> AnswerRecord:
            attempt = self._writable_attempt(attempt_id)
            test = self.resolver.resolve(attempt.test_id, enforce_activity=False)

            question = test.questions_by_id().get(question_id)
            if question is None:
                raise_bad_request(ErrorMessages.QUESTION_NOT_IN_TEST)

            selected = list(dict.fromkeys(selected_option_ids))
            if not set(selected) <= question.option_ids:
                raise_bad_request(ErrorMessages.INVALID_OPTION_FOR_QUESTION)

            answer = self.answers.find_answer(attempt.id, question.id) or AnswerRecord(
                attempt_id=attempt.id, question_id=question.id
            )
            answer.selected_option_ids = selected
            [saved] = self.answers.save_answers([answer])

            if time_spent_increment_sec and time_spent_increment_sec > 0:
                attempt.time_spent_sec += time_spent_increment_sec
                self.attempts.save_attempt(
                    attempt, expected_status=AttemptStatus.IN_PROGRESS
                )
            return saved

        return self.unit_of_work(work, f"save answer for attempt {attempt_id}")

    def cancel(self, attempt_id: uuid.UUID) -> AttemptRecord:
        """
        Move an in-progress attempt to CANCELLED. Cancelled attempts are never scored.

        Raises:
            ScoringError(NOT_FOUND): Attempt does not exist
            ScoringError(BAD_REQUEST): Attempt is not IN_PROGRESS
        """

        def work() -> AttemptRecord:
            attempt = self._writable_attempt(attempt_id)
            attempt.status = AttemptStatus.CANCELLED
            self.attempts.save_attempt(
                attempt, expected_status=AttemptStatus.IN_PROGRESS
            )
            logger.info(
                f"Attempt {attempt.id} cancelled",
                extra={"attempt_id": str(attempt.id), "status": attempt.status.value},
            )
            return attempt

        return self.unit_of_work(work, f"cancel attempt {attempt_id}")

    def _writable_attempt(self, attempt_id: uuid.UUID) -> AttemptRecord:
        attempt = self.attempts.find_attempt(attempt_id, for_update=True)
        if attempt is None:
            raise_not_found(ErrorMessages.ATTEMPT_NOT_FOUND)
        if attempt.status in TERMINAL_ATTEMPT_STATUSES:
            raise_bad_request(ErrorMessages.attempt_not_in_progress(attempt.status.value))
        return attempt
