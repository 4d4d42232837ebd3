"""
Scoring components: answer keys, attempt grading, psychometric scoring and
battery progress.
"""
from .answer_key import AnswerKeyResolver, check_activity
from .attempt_scorer import AttemptScorer, grade_answer, round2, round_half_up
from .attempts import AttemptLifecycle
from .battery_progress import (
    BatteryProgressAggregator,
    ProgressSummary,
    select_best_attempts,
    summarize_progress,
)
from .battery_weights import BatteryWeightConfigurator, TestWeight
from .psychometric import (
    DimensionScore,
    PsychometricAnswer,
    PsychometricScore,
    PsychometricScorer,
    PsychometricSubmission,
    PsychometricSubmitter,
    reverse_score,
    scoring_range,
)

__all__ = [
    "AnswerKeyResolver",
    "check_activity",
    "AttemptScorer",
    "grade_answer",
    "round2",
    "round_half_up",
    "AttemptLifecycle",
    "BatteryProgressAggregator",
    "ProgressSummary",
    "select_best_attempts",
    "summarize_progress",
    "BatteryWeightConfigurator",
    "TestWeight",
    "DimensionScore",
    "PsychometricAnswer",
    "PsychometricScore",
    "PsychometricScorer",
    "PsychometricSubmission",
    "PsychometricSubmitter",
    "reverse_score",
    "scoring_range",
]
