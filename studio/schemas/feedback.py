"""
Pydantic schemas for feedback, quota and analytics.
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict


class FeedbackCreate(BaseModel):
    """Schema for rating a result."""
    rating: int = Field(..., ge=1, le=5, description='1 (poor) to 5 (excellent)')
    comment: Optional[str] = Field(None, max_length=2000)


class FeedbackResponse(BaseModel):
    """Schema for a stored feedback row."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    result_id: str
    user_id: str
    rating: int
    comment: Optional[str]
    created_at: datetime


class QuotaResponse(BaseModel):
    """Schema for a quota decision."""
    model_config = ConfigDict(from_attributes=True)

    allowed: bool
    message: Optional[str]
    used: int
    limit: int
    remaining: int
    degraded: bool


class RatingCount(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    rating: int
    count: int


class AnalyticsResponse(BaseModel):
    """Schema for the aggregate analytics summary."""
    model_config = ConfigDict(from_attributes=True)

    total_jobs: int
    completed_jobs: int
    success_rate: float
    average_processing_ms: float
    rating_histogram: List[RatingCount]
