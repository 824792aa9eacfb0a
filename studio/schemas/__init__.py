"""
Pydantic schemas for API request/response validation.
"""
from studio.schemas.job import (
    GenerationOptions,
    JobCreate,
    JobResponse,
    JobListResponse,
    ResultResponse,
)
from studio.schemas.feedback import (
    FeedbackCreate,
    FeedbackResponse,
    QuotaResponse,
    RatingCount,
    AnalyticsResponse,
)

__all__ = [
    'GenerationOptions',
    'JobCreate',
    'JobResponse',
    'JobListResponse',
    'ResultResponse',
    'FeedbackCreate',
    'FeedbackResponse',
    'QuotaResponse',
    'RatingCount',
    'AnalyticsResponse',
]
