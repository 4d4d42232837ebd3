"""
Scoring service facade.

Wires the scoring components to the SQLAlchemy stores, one session per call,
and returns pydantic response models. This is the surface a transport layer
(HTTP routes, workers) calls; ``ScoringError`` is converted to HTTP responses
there with ``core.errors.to_http_exception``.
"""

import logging
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Generator, Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from libs.domain_types import AttemptStatus

from assessment_scoring.core.datetime_utils import utc_now
from assessment_scoring.core.unit_of_work import SessionUnitOfWork
from assessment_scoring.models.base import SessionLocal
from assessment_scoring.repositories.sql import (
    SqlAnswerStore,
    SqlAttemptStore,
    SqlBatteryWeightStore,
    SqlProgressStore,
    SqlTestReader,
)
from assessment_scoring.schemas import (
    AnswerResponse,
    AttemptResponse,
    BatteryProgressResponse,
    BatteryTestResponse,
    BatteryTestWeightRequest,
    ProgressSummaryResponse,
    PsychometricAnswerRequest,
    PsychometricScoreResponse,
    PsychometricSubmissionResponse,
    StructureValidationResponse,
)
from assessment_scoring.scoring import (
    AnswerKeyResolver,
    AttemptLifecycle,
    AttemptScorer,
    BatteryProgressAggregator,
    BatteryWeightConfigurator,
    PsychometricAnswer,
    PsychometricScorer,
    PsychometricSubmitter,
    TestWeight,
    summarize_progress,
)

logger = logging.getLogger(__name__)


class ScoringService:
    """Entry point for every scoring operation."""

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.session_factory = session_factory
        self.clock = clock

    @contextmanager
    def _session(self) -> Generator[Session, None, None]:
        db = self.session_factory()
        try:
            yield db
        finally:
            db.close()

    def _resolver(self, db: Session) -> AnswerKeyResolver:
        return AnswerKeyResolver(SqlTestReader(db), clock=self.clock)

    def _aggregator(self, db: Session) -> BatteryProgressAggregator:
        return BatteryProgressAggregator(
            SqlAttemptStore(db),
            SqlBatteryWeightStore(db),
            SqlProgressStore(db),
            SessionUnitOfWork(db),
            clock=self.clock,
        )

    def _lifecycle(self, db: Session) -> AttemptLifecycle:
        return AttemptLifecycle(
            self._resolver(db),
            SqlAttemptStore(db),
            SqlAnswerStore(db),
            SessionUnitOfWork(db),
            clock=self.clock,
        )

    # ==========================================================================
    # Attempts
    # ==========================================================================

    def start_attempt(
        self,
        user_id: uuid.UUID,
        test_id: uuid.UUID,
        battery_id: Optional[uuid.UUID] = None,
    ) -> AttemptResponse:
        with self._session() as db:
            attempt = self._lifecycle(db).start(user_id, test_id, battery_id)
            return AttemptResponse.model_validate(attempt)

    def save_answer(
        self,
        attempt_id: uuid.UUID,
        question_id: uuid.UUID,
        selected_option_ids: Sequence[uuid.UUID],
        time_spent_increment_sec: int = 0,
    ) -> AnswerResponse:
        with self._session() as db:
            answer = self._lifecycle(db).save_answer(
                attempt_id, question_id, selected_option_ids, time_spent_increment_sec
            )
            return AnswerResponse.model_validate(answer)

    def cancel_attempt(self, attempt_id: uuid.UUID) -> AttemptResponse:
        with self._session() as db:
            attempt = self._lifecycle(db).cancel(attempt_id)
            return AttemptResponse.model_validate(attempt)

    def submit(
        self, attempt_id: uuid.UUID, final_time_spent_sec: Optional[int] = None
    ) -> AttemptResponse:
        """
        Score and finalize an attempt.

        For battery attempts the user's battery progress is recomputed after
        the submission has committed. A failing recomputation is logged and
        re-raised; the committed submission stands.
        """
        with self._session() as db:
            scorer = AttemptScorer(
                self._resolver(db),
                SqlAttemptStore(db),
                SqlAnswerStore(db),
                SessionUnitOfWork(db),
                clock=self.clock,
            )
            attempt = scorer.submit(attempt_id, final_time_spent_sec)

            if attempt.battery_id is not None:
                try:
                    self._aggregator(db).recompute(attempt.user_id, attempt.battery_id)
                except Exception:
                    logger.error(
                        f"Attempt {attempt.id} submitted but battery "
                        f"{attempt.battery_id} progress was not recomputed",
                        exc_info=True,
                    )
                    raise

            if attempt.status == AttemptStatus.EXPIRED:
                logger.warning(
                    f"Attempt {attempt.id} submitted after its deadline",
                    extra={"attempt_id": str(attempt.id), "status": attempt.status.value},
                )
            return AttemptResponse.model_validate(attempt)

    # ==========================================================================
    # Psychometric tests
    # ==========================================================================

    def score_psychometric(
        self,
        test_id: uuid.UUID,
        answers: Iterable[PsychometricAnswerRequest],
    ) -> PsychometricScoreResponse:
        with self._session() as db:
            result = PsychometricScorer(self._resolver(db)).score(
                test_id,
                [PsychometricAnswer(a.question_id, a.option_id) for a in answers],
            )
            return PsychometricScoreResponse.model_validate(result)

    def submit_psychometric(
        self,
        user_id: uuid.UUID,
        test_id: uuid.UUID,
        answers: Iterable[PsychometricAnswerRequest],
    ) -> PsychometricSubmissionResponse:
        """Score a psychometric test and record it as a submitted attempt."""
        with self._session() as db:
            submitter = PsychometricSubmitter(
                PsychometricScorer(self._resolver(db)),
                SqlAttemptStore(db),
                SqlAnswerStore(db),
                SessionUnitOfWork(db),
                clock=self.clock,
            )
            submission = submitter.submit(
                user_id,
                test_id,
                [PsychometricAnswer(a.question_id, a.option_id) for a in answers],
            )
            score = PsychometricScoreResponse.model_validate(submission.score)
            return PsychometricSubmissionResponse(
                attempt_id=submission.attempt.id,
                completed_at=submission.attempt.submitted_at,
                **score.model_dump(),
            )

    def validate_psychometric_structure(
        self, test_id: uuid.UUID
    ) -> StructureValidationResponse:
        with self._session() as db:
            test = self._resolver(db).resolve(test_id, enforce_activity=False)
            PsychometricScorer.validate_structure(test)
            return StructureValidationResponse(test_id=test.id, valid=True)

    # ==========================================================================
    # Batteries
    # ==========================================================================

    def configure_battery_tests(
        self,
        battery_id: uuid.UUID,
        tests: Optional[Sequence[BatteryTestWeightRequest]] = None,
        test_ids: Optional[Sequence[uuid.UUID]] = None,
    ) -> List[BatteryTestResponse]:
        with self._session() as db:
            configurator = BatteryWeightConfigurator(
                SqlBatteryWeightStore(db), SessionUnitOfWork(db)
            )
            rows = configurator.configure(
                battery_id,
                tests=(
                    [TestWeight(t.test_id, t.weight) for t in tests]
                    if tests is not None
                    else None
                ),
                test_ids=test_ids,
            )
            return [BatteryTestResponse.model_validate(row) for row in rows]

    def recompute_battery_progress(
        self, user_id: uuid.UUID, battery_id: uuid.UUID
    ) -> BatteryProgressResponse:
        with self._session() as db:
            progress = self._aggregator(db).recompute(user_id, battery_id)
            return BatteryProgressResponse.model_validate(progress)

    def progress_summary(self) -> ProgressSummaryResponse:
        with self._session() as db:
            summary = summarize_progress(SqlProgressStore(db).list_progress())
            return ProgressSummaryResponse.model_validate(summary)
