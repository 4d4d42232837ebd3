"""
Pydantic schemas for battery weights and progress.
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
import uuid

from libs.domain_types import ProgressStatus


class BatteryTestWeightRequest(BaseModel):
    """Schema for the weight of one test inside a battery."""

    test_id: uuid.UUID = Field(..., description="Test ID")
    weight: float = Field(..., ge=0, le=100, description="Weight percentage 0-100")


class BatteryTestResponse(BaseModel):
    """Schema for a configured battery test."""

    battery_id: uuid.UUID = Field(..., description="Battery ID")
    test_id: uuid.UUID = Field(..., description="Test ID")
    weight: float = Field(..., description="Weight percentage 0-100")

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class BatteryProgressResponse(BaseModel):
    """Schema for a user's progress through a battery."""

    battery_id: uuid.UUID = Field(..., description="Battery ID")
    user_id: uuid.UUID = Field(..., description="User ID")
    status: ProgressStatus = Field(
        ..., description="Progress status (not_started, in_progress, completed)"
    )
    completed_tests: int = Field(..., description="Tests whose best attempt is 100%")
    total_tests: int = Field(..., description="Tests in the battery")
    progress_percentage: float = Field(
        ..., description="Weighted completion percentage (2 decimals)"
    )
    started_at: Optional[datetime] = Field(
        None, description="First transition out of not_started"
    )
    completed_at: Optional[datetime] = Field(
        None, description="First transition to completed"
    )
    last_attempt_at: Optional[datetime] = Field(
        None, description="Latest submitted attempt"
    )

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class ProgressSummaryResponse(BaseModel):
    """Schema for aggregate progress statistics."""

    total_progress_records: int = Field(..., description="Number of progress records")
    not_started: int = Field(..., description="Records not started")
    in_progress: int = Field(..., description="Records in progress")
    completed: int = Field(..., description="Records completed")
    average_progress: float = Field(
        ..., description="Mean progress percentage (2 decimals)"
    )
    total_users: int = Field(..., description="Distinct users")
    total_batteries: int = Field(..., description="Distinct batteries")
    completion_rate: float = Field(
        ..., description="Share of completed records in percent (2 decimals)"
    )

    class Config:
        """Pydantic configuration."""

        from_attributes = True
