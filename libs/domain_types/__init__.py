"""Shared domain types for the assessment scoring services.

This package is the single source of truth for domain enums used by the
scoring core and by the service layer that persists and exposes its results.

Usage:
    from libs.domain_types import AttemptStatus, ScoringStandard
"""

import enum


class TestCategory(str, enum.Enum):
    """Kind of instrument a test is scored as."""

    STANDARD = "STANDARD"
    PSYCHOMETRIC = "PSYCHOMETRIC"


class QuestionOrientation(str, enum.Enum):
    """Whether a psychometric option value is used as-is or reversed."""

    STRAIGHT = "STRAIGHT"
    REVERSE = "REVERSE"


class ScoringStandard(str, enum.Enum):
    """Declared closed range that psychometric option values are drawn from."""

    ZERO_TO_FIVE = "0-5"
    ONE_TO_FIVE = "1-5"
    ZERO_TO_FOUR = "0-4"
    ONE_TO_FOUR = "1-4"
    ZERO_TO_TEN = "0-10"


class AttemptStatus(str, enum.Enum):
    """Test attempt status. Every status except IN_PROGRESS is terminal."""

    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class ProgressStatus(str, enum.Enum):
    """Battery completion status for a single user."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


TERMINAL_ATTEMPT_STATUSES = frozenset(
    {AttemptStatus.SUBMITTED, AttemptStatus.EXPIRED, AttemptStatus.CANCELLED}
)


__all__ = [
    "TestCategory",
    "QuestionOrientation",
    "ScoringStandard",
    "AttemptStatus",
    "ProgressStatus",
    "TERMINAL_ATTEMPT_STATUSES",
]
