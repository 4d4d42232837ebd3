"""
Scoring error kinds, messages and builders.

The scoring core raises a single exception type, ``ScoringError``, tagged with
an ``ErrorKind``. It never raises HTTP exceptions itself; the surrounding
transport layer converts errors with ``to_http_exception`` (or its own
mapping over ``HTTP_STATUS_BY_KIND``).

Error Message Format Guidelines:
- Use sentence case (capitalize first letter only)
- End with a period for complete sentences
- Include relevant IDs in parentheses when helpful for debugging: "(ID: ...)"

Usage:
    from assessment_scoring.core.errors import ErrorMessages, raise_not_found

    if attempt is None:
        raise_not_found(ErrorMessages.ATTEMPT_NOT_FOUND)
"""

import enum
from typing import Iterable, NoReturn

from fastapi import HTTPException, status


class ErrorKind(str, enum.Enum):
    """Category of a scoring failure."""

    NOT_FOUND = "not_found"
    BAD_REQUEST = "bad_request"
    FORBIDDEN = "forbidden"


class ScoringError(Exception):
    """Error raised by the scoring core.

    Attributes:
        kind: Error category used by callers to pick a response status
        message: User-facing error message
    """

    def __init__(self, kind: ErrorKind, message: str):
        self.kind = kind
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"ScoringError(kind={self.kind.value!r}, message={self.message!r})"


HTTP_STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.BAD_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
}


def to_http_exception(error: ScoringError) -> HTTPException:
    """Convert a scoring error into the HTTPException a FastAPI route raises."""
    return HTTPException(status_code=HTTP_STATUS_BY_KIND[error.kind], detail=error.message)


class ErrorMessages:
    """Centralized error message constants and templates.

    Naming Convention:
    - Constants: SCREAMING_SNAKE_CASE for static messages
    - Methods: snake_case for templates that accept parameters
    """

    # ==========================================================================
    # Not Found
    # ==========================================================================
    ATTEMPT_NOT_FOUND = "Attempt not found."
    TEST_NOT_FOUND = "Test not found."

    # ==========================================================================
    # Forbidden (activity rules)
    # ==========================================================================
    TEST_INACTIVE = "Test is inactive."
    TEST_NOT_STARTED = "Test not started yet."
    TEST_ENDED = "Test window has ended."

    # ==========================================================================
    # Bad Request
    # ==========================================================================
    ATTEMPT_NOT_IN_PROGRESS = "Attempt not in progress."
    QUESTION_NOT_IN_TEST = "Question not part of the test."
    INVALID_OPTION_FOR_QUESTION = "Invalid option for question."
    NOT_PSYCHOMETRIC = "This test is not a psychometric test."
    MISSING_SCORING_STANDARD = "Psychometric test must have a scoring standard."
    INVALID_SCORING_STANDARD = "Invalid scoring standard."
    OPTION_HAS_NO_SCORING_VALUE = "Option does not have a scoring value configured."
    WEIGHTS_AND_TEST_IDS = (
        "Provide either tests with weights or test ids, not both."
    )
    NO_BATTERY_TESTS = "At least one test is required."

    # ==========================================================================
    # Template Methods for Dynamic Messages
    # ==========================================================================
    @staticmethod
    def attempt_not_in_progress(status: str) -> str:
        """Message for when trying to modify a finished attempt."""
        return f"Attempt not in progress (status: {status})."

    @staticmethod
    def test_not_found(test_id: object) -> str:
        return f"Test not found (ID: {test_id})."

    @staticmethod
    def question_not_found(question_id: object) -> str:
        return f"Question not found (ID: {question_id})."

    @staticmethod
    def option_not_found(option_id: object) -> str:
        return f"Option not found (ID: {option_id})."

    @staticmethod
    def unanswered_questions(count: int) -> str:
        return f"Please answer all questions. Missing: {count} questions."

    @staticmethod
    def duplicate_answer(question_id: object) -> str:
        return f"Question answered more than once (ID: {question_id})."

    @staticmethod
    def question_missing_orientation(question_label: str) -> str:
        return (
            f'Question "{question_label}" must have an orientation '
            "(STRAIGHT/REVERSE)."
        )

    @staticmethod
    def question_options_missing_scoring_value(question_label: str) -> str:
        return f'Question "{question_label}" has options without scoring values.'

    @staticmethod
    def weight_sum_mismatch(expected: float, total: float) -> str:
        return f"Sum of test weights must equal {expected:g}, got {total:g}."

    @staticmethod
    def duplicate_battery_tests(test_ids: Iterable[object]) -> str:
        ids_str = ", ".join(sorted(str(t) for t in test_ids))
        return f"Tests listed more than once: {ids_str}."

    @staticmethod
    def invalid_weight(test_id: object, weight: float) -> str:
        return f"Weight for test {test_id} must be between 0 and 100, got {weight:g}."


# ==============================================================================
# Error Builder Functions
# ==============================================================================


def raise_bad_request(detail: str) -> NoReturn:
    """Raise a BAD_REQUEST scoring error.

    Use for invalid state transitions, invalid answers and missing scoring
    configuration.
    """
    raise ScoringError(ErrorKind.BAD_REQUEST, detail)


def raise_forbidden(detail: str) -> NoReturn:
    """Raise a FORBIDDEN scoring error (test inactive or outside its window)."""
    raise ScoringError(ErrorKind.FORBIDDEN, detail)


def raise_not_found(detail: str) -> NoReturn:
    """Raise a NOT_FOUND scoring error."""
    raise ScoringError(ErrorKind.NOT_FOUND, detail)
