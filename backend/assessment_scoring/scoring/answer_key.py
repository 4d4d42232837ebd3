"""
Answer key resolution and test activity rules.
"""

import uuid
from datetime import datetime
from typing import Callable

from assessment_scoring.core.datetime_utils import utc_now
from assessment_scoring.core.errors import (
    ErrorMessages,
    raise_forbidden,
    raise_not_found,
)
from assessment_scoring.domain.records import TestRecord
from assessment_scoring.repositories.interfaces import TestReader


def check_activity(test: TestRecord, now: datetime) -> None:
    """
    Enforce a test's activity rules at ``now``.

    Raises:
        ScoringError(FORBIDDEN): If the test is inactive, has not started yet,
            or its window has ended. Window bounds are inclusive.
    """
    if not test.is_active:
        raise_forbidden(ErrorMessages.TEST_INACTIVE)
    if test.start_date is not None and now < test.start_date:
        raise_forbidden(ErrorMessages.TEST_NOT_STARTED)
    if test.end_date is not None and now > test.end_date:
        raise_forbidden(ErrorMessages.TEST_ENDED)


class AnswerKeyResolver:
    """Loads a test's full structure and applies its activity rules."""

    def __init__(self, tests: TestReader, clock: Callable[[], datetime] = utc_now):
        self.tests = tests
        self.clock = clock

    def resolve(self, test_id: uuid.UUID, *, enforce_activity: bool = True) -> TestRecord:
        """
        Return the test with nested questions and options.

        Args:
            test_id: Test to load
            enforce_activity: Apply the is_active / start / end checks. Callers
                finishing work that began while the test was active pass False.

        Raises:
            ScoringError(NOT_FOUND): If the test does not exist.
            ScoringError(FORBIDDEN): If activity is enforced and violated.
        """
        test = self.tests.get_test_with_questions(test_id)
        if test is None:
            raise_not_found(ErrorMessages.test_not_found(test_id))
        if enforce_activity:
            check_activity(test, self.clock())
        return test
