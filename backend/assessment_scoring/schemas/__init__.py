"""
Pydantic schemas for scoring results and requests.
"""
from .attempts import (
    AnswerResponse,
    AttemptResponse,
    SaveAnswerRequest,
    SubmitAttemptRequest,
)
from .battery import (
    BatteryProgressResponse,
    BatteryTestResponse,
    BatteryTestWeightRequest,
    ProgressSummaryResponse,
)
from .psychometric import (
    DimensionScoreResponse,
    PsychometricAnswerRequest,
    PsychometricScoreResponse,
    PsychometricSubmissionResponse,
    StructureValidationResponse,
)

__all__ = [
    "AnswerResponse",
    "AttemptResponse",
    "SaveAnswerRequest",
    "SubmitAttemptRequest",
    "BatteryProgressResponse",
    "BatteryTestResponse",
    "BatteryTestWeightRequest",
    "ProgressSummaryResponse",
    "DimensionScoreResponse",
    "PsychometricAnswerRequest",
    "PsychometricScoreResponse",
    "PsychometricSubmissionResponse",
    "StructureValidationResponse",
]
