"""
Psychometric (Likert-style) test scoring.

Each option carries a ``scoring_value`` on the test's scoring standard. STRAIGHT
questions score the value as-is; REVERSE questions mirror it within the
standard's range (``max + min - value``), so on a 1-5 scale a 2 scores 4.
Every answered question contributes the range maximum to the possible score,
whatever its orientation.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from libs.domain_types import (
    AttemptStatus,
    QuestionOrientation,
    ScoringStandard,
    TestCategory,
)

from assessment_scoring.core.datetime_utils import utc_now
from assessment_scoring.core.errors import ErrorMessages, raise_bad_request, raise_not_found
from assessment_scoring.domain.records import AnswerRecord, AttemptRecord, TestRecord
from assessment_scoring.repositories.interfaces import (
    AnswerStore,
    AttemptStore,
    UnitOfWork,
)
from assessment_scoring.scoring.answer_key import AnswerKeyResolver
from assessment_scoring.scoring.attempt_scorer import round2

logger = logging.getLogger(__name__)


# Closed value ranges per scoring standard
SCORING_RANGES: Dict[ScoringStandard, Tuple[int, int]] = {
    ScoringStandard.ZERO_TO_FIVE: (0, 5),
    ScoringStandard.ONE_TO_FIVE: (1, 5),
    ScoringStandard.ZERO_TO_FOUR: (0, 4),
    ScoringStandard.ONE_TO_FOUR: (1, 4),
    ScoringStandard.ZERO_TO_TEN: (0, 10),
}


@dataclass
class PsychometricAnswer:
    """One selected option for one question."""

    question_id: uuid.UUID
    option_id: uuid.UUID


@dataclass
class DimensionScore:
    dimension: str
    score: int
    max_score: int
    percentage: float


@dataclass
class PsychometricScore:
    total_score: int
    max_possible_score: int
    percentage: float
    dimension_scores: List[DimensionScore] = field(default_factory=list)
    # score of each answered question, after reversal
    question_scores: Dict[uuid.UUID, int] = field(default_factory=dict)


def scoring_range(standard: Optional[ScoringStandard]) -> Tuple[int, int]:
    """
    Return the closed (min, max) range of a scoring standard.

    Raises:
        ScoringError(BAD_REQUEST): If the standard is missing or unknown.
    """
    if standard is None:
        raise_bad_request(ErrorMessages.MISSING_SCORING_STANDARD)
    try:
        return SCORING_RANGES[ScoringStandard(standard)]
    except (KeyError, ValueError):
        raise_bad_request(ErrorMessages.INVALID_SCORING_STANDARD)


def reverse_score(value: int, standard: ScoringStandard) -> int:
    """Mirror ``value`` within the standard's range."""
    low, high = scoring_range(standard)
    return high + low - value


def _percentage(score: int, max_score: int) -> float:
    if max_score == 0:
        return 0.0
    return score / max_score * 100


class PsychometricScorer:
    """Scores psychometric instruments and checks their authoring structure."""

    def __init__(self, resolver: AnswerKeyResolver):
        self.resolver = resolver

    def score(
        self, test_id: uuid.UUID, answers: Sequence[PsychometricAnswer]
    ) -> PsychometricScore:
        """
        Score one complete set of answers to a psychometric test.

        Args:
            test_id: Psychometric test being answered
            answers: Exactly one answer per question of the test

        Returns:
            PsychometricScore with overall and per-dimension totals.
            Percentages are not rounded.

        Raises:
            ScoringError(NOT_FOUND): Test, question or option does not exist
                (or the option belongs to another question)
            ScoringError(BAD_REQUEST): Test is not psychometric, has no valid
                scoring standard, a question is unanswered or answered twice,
                or a selected option has no scoring value
        """
        test = self.resolver.resolve(test_id, enforce_activity=False)

        if test.category != TestCategory.PSYCHOMETRIC:
            raise_bad_request(ErrorMessages.NOT_PSYCHOMETRIC)

        answered = {a.question_id for a in answers}
        unanswered = [q.id for q in test.questions if q.id not in answered]
        if unanswered:
            raise_bad_request(ErrorMessages.unanswered_questions(len(unanswered)))

        _, high = scoring_range(test.scoring_standard)
        questions = test.questions_by_id()

        total_score = 0
        max_possible_score = 0
        # dict preserves first-seen dimension order
        by_dimension: Dict[str, List[int]] = {}
        question_scores: Dict[uuid.UUID, int] = {}
        seen = set()

        for answer in answers:
            if answer.question_id in seen:
                raise_bad_request(ErrorMessages.duplicate_answer(answer.question_id))
            seen.add(answer.question_id)

            question = questions.get(answer.question_id)
            if question is None:
                raise_not_found(ErrorMessages.question_not_found(answer.question_id))

            option = question.find_option(answer.option_id)
            if option is None:
                raise_not_found(ErrorMessages.option_not_found(answer.option_id))

            if option.scoring_value is None:
                raise_bad_request(ErrorMessages.OPTION_HAS_NO_SCORING_VALUE)

            if question.orientation == QuestionOrientation.REVERSE:
                question_score = reverse_score(option.scoring_value, test.scoring_standard)
            else:
                question_score = option.scoring_value

            question_scores[question.id] = question_score
            total_score += question_score
            max_possible_score += high

            if question.dimension:
                sums = by_dimension.setdefault(question.dimension, [0, 0])
                sums[0] += question_score
                sums[1] += high

        result = PsychometricScore(
            total_score=total_score,
            max_possible_score=max_possible_score,
            percentage=_percentage(total_score, max_possible_score),
            dimension_scores=[
                DimensionScore(
                    dimension=dimension,
                    score=score,
                    max_score=max_score,
                    percentage=_percentage(score, max_score),
                )
                for dimension, (score, max_score) in by_dimension.items()
            ],
            question_scores=question_scores,
        )

        logger.info(
            f"Psychometric test {test.id} scored {total_score}/{max_possible_score} "
            f"across {len(result.dimension_scores)} dimensions",
            extra={"test_id": str(test.id), "percentage": result.percentage},
        )
        return result

    @staticmethod
    def validate_structure(test: TestRecord) -> bool:
        """
        Check that a psychometric test can be scored.

        Non-psychometric tests always pass. Returns True when valid.

        Raises:
            ScoringError(BAD_REQUEST): Missing scoring standard, or the first
                question (in order) lacking an orientation or having an
                option without a scoring value.
        """
        if test.category != TestCategory.PSYCHOMETRIC:
            return True

        if test.scoring_standard is None:
            raise_bad_request(ErrorMessages.MISSING_SCORING_STANDARD)

        for question in test.questions:
            if question.orientation is None:
                raise_bad_request(
                    ErrorMessages.question_missing_orientation(question.label)
                )
            if any(o.scoring_value is None for o in question.options):
                raise_bad_request(
                    ErrorMessages.question_options_missing_scoring_value(
                        question.label
                    )
                )

        return True


@dataclass
class PsychometricSubmission:
    """A recorded psychometric attempt and the score it was given."""

    attempt: AttemptRecord
    score: PsychometricScore


class PsychometricSubmitter:
    """Scores a complete psychometric answer set and records it as an attempt."""

    def __init__(
        self,
        scorer: PsychometricScorer,
        attempts: AttemptStore,
        answers: AnswerStore,
        unit_of_work: UnitOfWork,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.scorer = scorer
        self.attempts = attempts
        self.answers = answers
        self.unit_of_work = unit_of_work
        self.clock = clock

    def submit(
        self,
        user_id: uuid.UUID,
        test_id: uuid.UUID,
        answers: Sequence[PsychometricAnswer],
    ) -> PsychometricSubmission:
        """
        Score ``answers`` and store them as a SUBMITTED attempt of ``user_id``.

        The attempt is started and submitted at the same instant. It stores the
        total score as awarded points and the maximum possible score as total
        points; each answer row keeps the selected option and its question's
        score. Nothing is stored when scoring fails.

        Raises:
            ScoringError: Same cases as ``PsychometricScorer.score``
        """

        def work() -> PsychometricSubmission:
            score = self.scorer.score(test_id, answers)
            now = self.clock()

            attempt = self.attempts.add_attempt(
                AttemptRecord(
                    id=uuid.uuid4(),
                    test_id=test_id,
                    user_id=user_id,
                    status=AttemptStatus.IN_PROGRESS,
                    started_at=now,
                )
            )
            self.answers.save_answers(
                [
                    AnswerRecord(
                        attempt_id=attempt.id,
                        question_id=answer.question_id,
                        selected_option_ids=[answer.option_id],
                        points_awarded=score.question_scores[answer.question_id],
                    )
                    for answer in answers
                ]
            )

            attempt.status = AttemptStatus.SUBMITTED
            attempt.total_points = score.max_possible_score
            attempt.awarded_points = score.total_score
            attempt.percentage = round2(score.percentage)
            attempt.submitted_at = now
            self.attempts.save_attempt(attempt, expected_status=AttemptStatus.IN_PROGRESS)

            logger.info(
                f"User {user_id} submitted psychometric attempt {attempt.id}",
                extra={
                    "attempt_id": str(attempt.id),
                    "test_id": str(test_id),
                    "user_id": str(user_id),
                    "status": attempt.status.value,
                },
            )
            return PsychometricSubmission(attempt=attempt, score=score)

        return self.unit_of_work(work, f"submit psychometric test {test_id}")
