"""
Pydantic schemas for psychometric scoring.
"""
from pydantic import BaseModel, Field
from datetime import datetime
from typing import List
import uuid


class PsychometricAnswerRequest(BaseModel):
    """Schema for one answer to a psychometric question."""

    question_id: uuid.UUID = Field(..., description="Question ID")
    option_id: uuid.UUID = Field(..., description="Selected option ID")


class DimensionScoreResponse(BaseModel):
    """Schema for the score of one named dimension (sub-scale)."""

    dimension: str = Field(..., description="Dimension name")
    score: int = Field(..., description="Sum of question scores in this dimension")
    max_score: int = Field(..., description="Maximum achievable score")
    percentage: float = Field(..., description="score / max_score * 100 (unrounded)")

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class PsychometricScoreResponse(BaseModel):
    """Schema for a psychometric scoring result."""

    total_score: int = Field(..., description="Sum of all question scores")
    max_possible_score: int = Field(..., description="Maximum achievable score")
    percentage: float = Field(
        ..., description="total_score / max_possible_score * 100 (unrounded)"
    )
    dimension_scores: List[DimensionScoreResponse] = Field(
        default_factory=list, description="Per-dimension scores in first-seen order"
    )

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class StructureValidationResponse(BaseModel):
    """Schema for a successful structure check."""

    test_id: uuid.UUID = Field(..., description="Validated test ID")
    valid: bool = Field(True, description="Always true; failures raise errors")


class PsychometricSubmissionResponse(PsychometricScoreResponse):
    """Schema for a scored and recorded psychometric attempt."""

    attempt_id: uuid.UUID = Field(..., description="Recorded attempt ID")
    completed_at: datetime = Field(..., description="When the attempt was recorded")
