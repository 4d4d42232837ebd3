"""
Tests for battery progress aggregation.
"""
import uuid
from datetime import timedelta

import pytest

from libs.domain_types import AttemptStatus, ProgressStatus

from assessment_scoring.domain.records import AttemptRecord, ProgressRecord
from assessment_scoring.models import BatteryProgress, BatteryTest
from assessment_scoring.scoring.battery_progress import (
    BatteryProgressAggregator,
    determine_status,
    select_best_attempts,
    summarize_progress,
)

from conftest import NOW, fixed_clock


USER = uuid.uuid4()


@pytest.fixture
def aggregator(stores):
    return BatteryProgressAggregator(
        stores["attempts"],
        stores["weights"],
        stores["progress"],
        stores["uow"],
        clock=fixed_clock,
    )


@pytest.fixture
def two_tests(create_test):
    return create_test([], title="Logic"), create_test([], title="Verbal")


@pytest.fixture
def submit(create_attempt):
    """Create a SUBMITTED attempt for USER in a battery."""

    def _submit(test, battery_id, percentage, minutes_ago=5, **kwargs):
        return create_attempt(
            test,
            user_id=kwargs.pop("user_id", USER),
            battery_id=battery_id,
            status=kwargs.pop("status", AttemptStatus.SUBMITTED),
            percentage=percentage,
            submitted_at=NOW - timedelta(minutes=minutes_ago),
            **kwargs,
        )

    return _submit


def _record(test_id, percentage, submitted_at=NOW, attempt_id=None):
    return AttemptRecord(
        id=attempt_id or uuid.uuid4(),
        test_id=test_id,
        user_id=USER,
        status=AttemptStatus.SUBMITTED,
        percentage=percentage,
        submitted_at=submitted_at,
    )


class TestSelectBestAttempts:
    """Tests for best-attempt selection and its tie-breaks."""

    def test_highest_percentage_wins(self):
        test_id = uuid.uuid4()
        low = _record(test_id, 40.0, submitted_at=NOW)
        high = _record(test_id, 80.0, submitted_at=NOW - timedelta(days=1))

        assert select_best_attempts([low, high])[test_id] is high

    def test_tie_goes_to_most_recent(self):
        test_id = uuid.uuid4()
        older = _record(test_id, 80.0, submitted_at=NOW - timedelta(hours=1))
        newer = _record(test_id, 80.0, submitted_at=NOW)

        assert select_best_attempts([newer, older])[test_id] is newer
        assert select_best_attempts([older, newer])[test_id] is newer

    def test_full_tie_goes_to_greatest_id(self):
        test_id = uuid.uuid4()
        small = _record(test_id, 80.0, attempt_id=uuid.UUID(int=1))
        large = _record(test_id, 80.0, attempt_id=uuid.UUID(int=2))

        assert select_best_attempts([large, small])[test_id] is large
        assert select_best_attempts([small, large])[test_id] is large

    def test_one_entry_per_test(self):
        t1, t2 = uuid.uuid4(), uuid.uuid4()
        best = select_best_attempts(
            [_record(t1, 10.0), _record(t2, 20.0), _record(t1, 30.0)]
        )

        assert set(best) == {t1, t2}
        assert best[t1].percentage == 30.0


class TestDetermineStatus:
    @pytest.mark.parametrize(
        "completed,total,expected",
        [
            (0, 0, ProgressStatus.NOT_STARTED),
            (0, 3, ProgressStatus.NOT_STARTED),
            (1, 3, ProgressStatus.IN_PROGRESS),
            (3, 3, ProgressStatus.COMPLETED),
            (4, 3, ProgressStatus.COMPLETED),
        ],
    )
    def test_status(self, completed, total, expected):
        assert determine_status(completed, total) == expected


class TestRecompute:
    """Tests for BatteryProgressAggregator.recompute against the SQL stores."""

    def test_all_tests_at_full_score_completes_battery(
        self, aggregator, two_tests, create_battery, submit
    ):
        logic, verbal = two_tests
        battery_id = create_battery({logic.id: 50, verbal.id: 50})
        submit(logic, battery_id, 100.0)
        submit(verbal, battery_id, 100.0)

        progress = aggregator.recompute(USER, battery_id)

        assert progress.status == ProgressStatus.COMPLETED
        assert progress.progress_percentage == 100.0
        assert progress.completed_tests == 2
        assert progress.total_tests == 2
        assert progress.started_at == NOW
        assert progress.completed_at == NOW

    def test_weighted_best_attempts(self, aggregator, two_tests, create_battery, submit):
        logic, verbal = two_tests
        battery_id = create_battery({logic.id: 60, verbal.id: 40})
        submit(logic, battery_id, 30.0, minutes_ago=20)
        submit(logic, battery_id, 50.0, minutes_ago=10)
        submit(verbal, battery_id, 100.0, minutes_ago=3)

        progress = aggregator.recompute(USER, battery_id)

        # 60 * 50% + 40 * 100%
        assert progress.progress_percentage == 70.0
        assert progress.completed_tests == 1
        assert progress.status == ProgressStatus.IN_PROGRESS
        assert progress.started_at == NOW
        assert progress.completed_at is None
        assert progress.last_attempt_at == NOW - timedelta(minutes=3)

    def test_progress_rounded_to_two_decimals(
        self, aggregator, create_test, create_battery, submit
    ):
        tests = [create_test([]) for _ in range(3)]
        battery_id = create_battery({t.id: w for t, w in zip(tests, (33.33, 33.33, 33.34))})
        submit(tests[0], battery_id, 66.67)

        progress = aggregator.recompute(USER, battery_id)

        assert progress.progress_percentage == 22.22

    def test_no_attempts_is_not_started(self, aggregator, two_tests, create_battery):
        logic, verbal = two_tests
        battery_id = create_battery({logic.id: 50, verbal.id: 50})

        progress = aggregator.recompute(USER, battery_id)

        assert progress.status == ProgressStatus.NOT_STARTED
        assert progress.progress_percentage == 0.0
        assert progress.completed_tests == 0
        assert progress.total_tests == 2
        assert progress.started_at is None
        assert progress.last_attempt_at is None

    def test_partial_scores_without_completion_stay_not_started(
        self, aggregator, two_tests, create_battery, submit
    ):
        logic, verbal = two_tests
        battery_id = create_battery({logic.id: 50, verbal.id: 50})
        submit(logic, battery_id, 80.0)

        progress = aggregator.recompute(USER, battery_id)

        assert progress.status == ProgressStatus.NOT_STARTED
        assert progress.progress_percentage == 40.0
        assert progress.started_at is None

    def test_only_submitted_attempts_count(
        self, aggregator, two_tests, create_battery, submit
    ):
        logic, verbal = two_tests
        battery_id = create_battery({logic.id: 50, verbal.id: 50})
        submit(logic, battery_id, 100.0, status=AttemptStatus.EXPIRED)
        submit(verbal, battery_id, 100.0, status=AttemptStatus.IN_PROGRESS)
        submit(verbal, battery_id, 100.0, status=AttemptStatus.CANCELLED)

        progress = aggregator.recompute(USER, battery_id)

        assert progress.progress_percentage == 0.0
        assert progress.status == ProgressStatus.NOT_STARTED

    def test_other_users_and_batteries_ignored(
        self, aggregator, two_tests, create_battery, submit
    ):
        logic, verbal = two_tests
        battery_id = create_battery({logic.id: 50, verbal.id: 50})
        other_battery = create_battery({logic.id: 100})
        submit(logic, battery_id, 100.0, user_id=uuid.uuid4())
        submit(logic, other_battery, 100.0)

        progress = aggregator.recompute(USER, battery_id)

        assert progress.progress_percentage == 0.0

    def test_missing_weight_row_uses_equal_share(
        self, aggregator, create_test, create_battery, submit
    ):
        weighted_a, weighted_b, unlisted = (create_test([]) for _ in range(3))
        battery_id = create_battery({weighted_a.id: 70, weighted_b.id: 30})
        submit(unlisted, battery_id, 100.0)

        progress = aggregator.recompute(USER, battery_id)

        assert progress.progress_percentage == 50.0  # 100 / 2 tests

    def test_recompute_is_idempotent(
        self, db_session, aggregator, two_tests, create_battery, submit
    ):
        logic, verbal = two_tests
        battery_id = create_battery({logic.id: 60, verbal.id: 40})
        submit(logic, battery_id, 100.0)

        first = aggregator.recompute(USER, battery_id)
        second = aggregator.recompute(USER, battery_id)

        assert first == second
        assert db_session.query(BatteryProgress).count() == 1

    def test_timestamps_are_never_reset(
        self, db_session, stores, two_tests, create_test, create_battery, submit
    ):
        logic, verbal = two_tests
        battery_id = create_battery({logic.id: 50, verbal.id: 50})
        submit(logic, battery_id, 100.0)
        submit(verbal, battery_id, 100.0)

        first = BatteryProgressAggregator(
            stores["attempts"], stores["weights"], stores["progress"], stores["uow"],
            clock=fixed_clock,
        ).recompute(USER, battery_id)
        assert first.status == ProgressStatus.COMPLETED

        # A third test is added to the battery: completion drops back
        extra = create_test([])
        db_session.query(BatteryTest).filter(
            BatteryTest.battery_id == battery_id
        ).update({BatteryTest.weight: 30})
        db_session.add(BatteryTest(battery_id=battery_id, test_id=extra.id, weight=40))
        db_session.commit()

        later = BatteryProgressAggregator(
            stores["attempts"], stores["weights"], stores["progress"], stores["uow"],
            clock=lambda: NOW + timedelta(days=1),
        ).recompute(USER, battery_id)

        assert later.status == ProgressStatus.IN_PROGRESS
        assert later.started_at == first.started_at
        assert later.completed_at == first.completed_at


class TestSummarizeProgress:
    """Tests for summarize_progress."""

    def test_empty(self):
        summary = summarize_progress([])

        assert summary.total_progress_records == 0
        assert summary.average_progress == 0.0
        assert summary.completion_rate == 0.0

    def test_counts_and_average(self):
        battery = uuid.uuid4()
        other_user = uuid.uuid4()
        records = [
            ProgressRecord(battery, USER, ProgressStatus.COMPLETED, progress_percentage=100.0),
            ProgressRecord(battery, other_user, ProgressStatus.IN_PROGRESS, progress_percentage=33.33),
            ProgressRecord(uuid.uuid4(), USER, ProgressStatus.NOT_STARTED, progress_percentage=0.0),
        ]

        summary = summarize_progress(records)

        assert summary.total_progress_records == 3
        assert summary.completed == 1
        assert summary.in_progress == 1
        assert summary.not_started == 1
        assert summary.average_progress == 44.44
        assert summary.total_users == 2
        assert summary.total_batteries == 2
        assert summary.completion_rate == 33.33
