"""
Battery-level progress aggregation.

A battery is a weighted collection of tests. A user's progress is rebuilt from
their SUBMITTED attempt history every time, never incrementally, so running the
aggregation twice over the same history yields the same record.

Weighting
=========
- Only the best attempt per test counts (highest percentage; ties go to the
  most recent submission, then to the greatest attempt id).
- ``weighted = Σ weight(test) * best.percentage / 100`` where a test without an
  explicit weight row gets ``100 / total_tests``.
- A test is completed when its best attempt reaches 100%.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Sequence

from libs.domain_types import ProgressStatus

from assessment_scoring.core.datetime_utils import utc_now
from assessment_scoring.domain.records import AttemptRecord, ProgressRecord
from assessment_scoring.repositories.interfaces import (
    AttemptStore,
    BatteryWeightStore,
    ProgressStore,
    UnitOfWork,
)
from assessment_scoring.scoring.attempt_scorer import round2

logger = logging.getLogger(__name__)


def _attempt_rank(attempt: AttemptRecord):
    return (
        attempt.percentage,
        attempt.submitted_at is not None,
        attempt.submitted_at or datetime.min,
        str(attempt.id),
    )


def select_best_attempts(
    attempts: Iterable[AttemptRecord],
) -> Dict[uuid.UUID, AttemptRecord]:
    """Best attempt per test id (highest percentage, then latest, then greatest id)."""
    best: Dict[uuid.UUID, AttemptRecord] = {}
    for attempt in attempts:
        current = best.get(attempt.test_id)
        if current is None or _attempt_rank(attempt) > _attempt_rank(current):
            best[attempt.test_id] = attempt
    return best


def determine_status(completed_tests: int, total_tests: int) -> ProgressStatus:
    if completed_tests == 0:
        return ProgressStatus.NOT_STARTED
    if completed_tests < total_tests:
        return ProgressStatus.IN_PROGRESS
    return ProgressStatus.COMPLETED


@dataclass
class ProgressSummary:
    """Counts and average over a set of progress records."""

    total_progress_records: int
    not_started: int
    in_progress: int
    completed: int
    average_progress: float
    total_users: int
    total_batteries: int
    completion_rate: float


def summarize_progress(records: Sequence[ProgressRecord]) -> ProgressSummary:
    """Aggregate statistics over progress records; averages are rounded to 2 decimals."""
    total = len(records)
    completed = sum(1 for r in records if r.status == ProgressStatus.COMPLETED)
    if total == 0:
        return ProgressSummary(
            total_progress_records=0,
            not_started=0,
            in_progress=0,
            completed=0,
            average_progress=0.0,
            total_users=0,
            total_batteries=0,
            completion_rate=0.0,
        )

    return ProgressSummary(
        total_progress_records=total,
        not_started=sum(1 for r in records if r.status == ProgressStatus.NOT_STARTED),
        in_progress=sum(1 for r in records if r.status == ProgressStatus.IN_PROGRESS),
        completed=completed,
        average_progress=round2(sum(r.progress_percentage for r in records) / total),
        total_users=len({r.user_id for r in records}),
        total_batteries=len({r.battery_id for r in records}),
        completion_rate=round2(completed / total * 100),
    )


class BatteryProgressAggregator:
    """Recomputes and persists a user's progress through a battery."""

    def __init__(
        self,
        attempts: AttemptStore,
        weights: BatteryWeightStore,
        progress: ProgressStore,
        unit_of_work: UnitOfWork,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.attempts = attempts
        self.weights = weights
        self.progress = progress
        self.unit_of_work = unit_of_work
        self.clock = clock

    def recompute(self, user_id: uuid.UUID, battery_id: uuid.UUID) -> ProgressRecord:
        """
        Rebuild the user's battery progress from their submitted attempts.

        Creates the progress record on first call. ``started_at`` and
        ``completed_at`` are set once, on the first transition into
        IN_PROGRESS/COMPLETED and COMPLETED respectively, and never reset.

        Must run after the submission that triggered it has committed.
        """
        return self.unit_of_work(
            lambda: self._recompute(user_id, battery_id),
            f"recompute battery progress {battery_id} for user {user_id}",
        )

    def _recompute(self, user_id: uuid.UUID, battery_id: uuid.UUID) -> ProgressRecord:
        submitted = self.attempts.find_submitted_attempts(user_id, battery_id)
        rows = self.weights.find_battery_tests(battery_id)
        total_tests = len(rows)

        weight_by_test = {row.test_id: row.weight for row in rows}
        default_weight = 100 / total_tests if total_tests > 0 else 0.0

        best_by_test = select_best_attempts(submitted)
        weighted = 0.0
        completed_tests = 0
        for test_id, best in best_by_test.items():
            weight = weight_by_test.get(test_id, default_weight)
            weighted += weight * best.percentage / 100
            if best.percentage >= 100:
                completed_tests += 1

        record = self.progress.find_progress(user_id, battery_id) or ProgressRecord(
            battery_id=battery_id, user_id=user_id
        )
        previous_status = record.status

        now = self.clock()
        record.total_tests = total_tests
        record.completed_tests = completed_tests
        record.status = determine_status(completed_tests, total_tests)
        record.progress_percentage = round2(weighted)
        if record.status != ProgressStatus.NOT_STARTED and record.started_at is None:
            record.started_at = now
        if record.status == ProgressStatus.COMPLETED and record.completed_at is None:
            record.completed_at = now

        submitted_times: List[datetime] = [
            a.submitted_at for a in submitted if a.submitted_at is not None
        ]
        record.last_attempt_at = max(submitted_times) if submitted_times else None

        saved = self.progress.save_progress(record)

        if saved.status != previous_status:
            logger.info(
                f"Battery {battery_id} progress for user {user_id}: "
                f"{previous_status.value} -> {saved.status.value}",
                extra={
                    "battery_id": str(battery_id),
                    "user_id": str(user_id),
                    "status": saved.status.value,
                    "progress_percentage": saved.progress_percentage,
                },
            )
        return saved
