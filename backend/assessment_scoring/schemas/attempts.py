"""
Pydantic schemas for attempt lifecycle and scoring results.
"""
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime
import uuid

from libs.domain_types import AttemptStatus


class AttemptResponse(BaseModel):
    """Schema for a test attempt and its score."""

    id: uuid.UUID = Field(..., description="Attempt ID")
    test_id: uuid.UUID = Field(..., description="Test ID")
    user_id: uuid.UUID = Field(..., description="User ID")
    battery_id: Optional[uuid.UUID] = Field(
        None, description="Battery ID when taken as part of a battery"
    )
    status: AttemptStatus = Field(
        ..., description="Attempt status (in_progress, submitted, expired, cancelled)"
    )
    total_points: int = Field(0, description="Sum of points over all questions")
    awarded_points: int = Field(0, description="Points earned")
    percentage: float = Field(
        0.0, ge=0.0, le=100.0, description="Awarded share of total points (2 decimals)"
    )
    correct_count: int = Field(0, description="Number of exactly correct answers")
    time_spent_sec: int = Field(0, description="Time spent in seconds")
    is_timed_out: bool = Field(
        False, description="Whether the attempt was submitted after its deadline"
    )
    started_at: Optional[datetime] = Field(None, description="Attempt start timestamp")
    submitted_at: Optional[datetime] = Field(
        None, description="Submission timestamp"
    )

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class AnswerResponse(BaseModel):
    """Schema for a recorded answer."""

    attempt_id: uuid.UUID = Field(..., description="Attempt ID")
    question_id: uuid.UUID = Field(..., description="Question ID")
    selected_option_ids: List[uuid.UUID] = Field(
        default_factory=list, description="Selected option IDs"
    )
    is_correct: Optional[bool] = Field(
        None, description="Correctness (null until the attempt is scored)"
    )
    points_awarded: int = Field(0, description="Points earned for this answer")

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class SaveAnswerRequest(BaseModel):
    """Schema for recording an answer to one question."""

    question_id: uuid.UUID = Field(..., description="Question being answered")
    selected_option_ids: List[uuid.UUID] = Field(
        ..., description="Selected option IDs (order irrelevant)"
    )
    time_spent_increment_sec: int = Field(
        0, ge=0, description="Seconds to add to the attempt's time spent"
    )


class SubmitAttemptRequest(BaseModel):
    """Schema for submitting an attempt."""

    final_time_spent_sec: Optional[int] = Field(
        None, description="Client-reported total time in seconds"
    )

    @field_validator("final_time_spent_sec")
    @classmethod
    def validate_time_spent(cls, v: Optional[int]) -> Optional[int]:
        """Negative times are rejected rather than clamped."""
        if v is not None and v < 0:
            raise ValueError("final_time_spent_sec must not be negative")
        return v
