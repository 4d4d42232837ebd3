"""
Plain domain records used by the scoring core.
"""
from .records import (
    OptionRecord,
    QuestionRecord,
    TestRecord,
    AttemptRecord,
    AnswerRecord,
    BatteryTestRecord,
    ProgressRecord,
)

__all__ = [
    "OptionRecord",
    "QuestionRecord",
    "TestRecord",
    "AttemptRecord",
    "AnswerRecord",
    "BatteryTestRecord",
    "ProgressRecord",
]
