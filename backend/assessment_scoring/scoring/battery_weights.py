"""
Configuration of test weights inside a battery.

Weights are percentages of battery completion. Explicit weights must add up to
``settings.BATTERY_WEIGHT_TOTAL`` (100); a plain list of test ids splits the
total equally. Weights are kept to 2 decimal places, the precision of the
``battery_tests.weight`` column, and the sum is checked after rounding.
"""

import logging
import uuid
from collections import Counter
from dataclasses import dataclass
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal
from typing import List, Optional, Sequence

from assessment_scoring.core.config import settings
from assessment_scoring.core.errors import ErrorMessages, raise_bad_request
from assessment_scoring.domain.records import BatteryTestRecord
from assessment_scoring.repositories.interfaces import BatteryWeightStore, UnitOfWork

logger = logging.getLogger(__name__)

# Tolerance when comparing a weight sum to the expected total
WEIGHT_SUM_TOLERANCE = 1e-6

# Weights are stored with 2 decimal places
WEIGHT_QUANTUM = Decimal("0.01")


@dataclass
class TestWeight:
    """Requested weight of one test."""

    __test__ = False  # not a pytest class

    test_id: uuid.UUID
    weight: float


class BatteryWeightConfigurator:
    """Validates and replaces the weight rows of a battery."""

    def __init__(self, weights: BatteryWeightStore, unit_of_work: UnitOfWork):
        self.weights = weights
        self.unit_of_work = unit_of_work

    def configure(
        self,
        battery_id: uuid.UUID,
        tests: Optional[Sequence[TestWeight]] = None,
        test_ids: Optional[Sequence[uuid.UUID]] = None,
    ) -> List[BatteryTestRecord]:
        """
        Replace the tests of a battery and their weights.

        Args:
            battery_id: Battery to configure
            tests: Explicit weights, summing to the configured total
            test_ids: Tests to weight equally

        Exactly one of ``tests`` and ``test_ids`` must be given.

        Raises:
            ScoringError(BAD_REQUEST): Both or neither given, empty input,
                duplicate tests, a weight outside 0-100, or explicit weights
                not summing to the total
        """
        rows = self.build_rows(battery_id, tests=tests, test_ids=test_ids)
        saved = self.unit_of_work(
            lambda: self.weights.replace_battery_tests(battery_id, rows),
            f"configure battery {battery_id}",
        )
        logger.info(
            f"Battery {battery_id} configured with {len(saved)} tests",
            extra={"battery_id": str(battery_id)},
        )
        return saved

    @staticmethod
    def build_rows(
        battery_id: uuid.UUID,
        tests: Optional[Sequence[TestWeight]] = None,
        test_ids: Optional[Sequence[uuid.UUID]] = None,
    ) -> List[BatteryTestRecord]:
        """Validate the requested weights and turn them into rows."""
        if tests is not None and test_ids is not None:
            raise_bad_request(ErrorMessages.WEIGHTS_AND_TEST_IDS)

        total = settings.BATTERY_WEIGHT_TOTAL

        if tests is not None:
            requested = [(t.test_id, float(t.weight)) for t in tests]
        elif test_ids:
            requested = list(zip(test_ids, split_equally(total, len(test_ids))))
        else:
            requested = []

        if not requested:
            raise_bad_request(ErrorMessages.NO_BATTERY_TESTS)

        duplicates = [
            test_id
            for test_id, count in Counter(t for t, _ in requested).items()
            if count > 1
        ]
        if duplicates:
            raise_bad_request(ErrorMessages.duplicate_battery_tests(duplicates))

        for test_id, weight in requested:
            if weight < 0 or weight > 100:
                raise_bad_request(ErrorMessages.invalid_weight(test_id, weight))

        quantized = [(test_id, quantize_weight(weight)) for test_id, weight in requested]
        weight_sum = sum(weight for _, weight in quantized)
        if abs(weight_sum - Decimal(str(total))) > Decimal(str(WEIGHT_SUM_TOLERANCE)):
            raise_bad_request(
                ErrorMessages.weight_sum_mismatch(total, float(weight_sum))
            )

        return [
            BatteryTestRecord(battery_id=battery_id, test_id=test_id, weight=float(weight))
            for test_id, weight in quantized
        ]


def quantize_weight(weight: float) -> Decimal:
    """Round a weight to the stored precision, halves away from zero."""
    return Decimal(str(weight)).quantize(WEIGHT_QUANTUM, rounding=ROUND_HALF_UP)


def split_equally(total: float, count: int) -> List[float]:
    """
    Split ``total`` into ``count`` 2-decimal weights that add up to it exactly.

    Leftover cents go to the first weights: 100 over 3 tests is
    33.34, 33.33, 33.33.
    """
    exact = Decimal(str(total))
    share = (exact / count).quantize(WEIGHT_QUANTUM, rounding=ROUND_DOWN)
    leftover = int((exact - share * count) / WEIGHT_QUANTUM)
    return [
        float(share + WEIGHT_QUANTUM) if position < leftover else float(share)
        for position in range(count)
    ]
