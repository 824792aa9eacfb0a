"""
On-demand job and feedback analytics.
"""
from collections import Counter
from dataclasses import dataclass, field
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from studio.config import ANALYTICS_FEEDBACK_LIMIT
from studio.models import JobStatus
from studio.repositories import JobRepository, ResultRepository


@dataclass
class RatingBucket:
    rating: int
    count: int


@dataclass
class AnalyticsSummary:
    total_jobs: int = 0
    completed_jobs: int = 0
    success_rate: float = 0.0
    average_processing_ms: float = 0.0
    rating_histogram: List[RatingBucket] = field(default_factory=list)


class AnalyticsAggregator:
    """Recomputes every figure from the job and feedback tables on each call."""

    async def compute(
        self,
        db: AsyncSession,
        feedback_limit: int = ANALYTICS_FEEDBACK_LIMIT,
    ) -> AnalyticsSummary:
        total = await JobRepository.count(db)
        completed = await JobRepository.count(db, status=JobStatus.completed.value)

        timings = await JobRepository.completed_timings(db)
        if timings:
            total_ms = sum(
                (completed_at - created_at).total_seconds() * 1000
                for created_at, completed_at in timings
            )
            average_ms = total_ms / len(timings)
        else:
            average_ms = 0.0

        ratings = await ResultRepository.recent_ratings(db, feedback_limit)
        counts = Counter(ratings)
        histogram = [
            RatingBucket(rating=rating, count=counts[rating])
            for rating in sorted(counts, reverse=True)
        ]

        return AnalyticsSummary(
            total_jobs=total,
            completed_jobs=completed,
            success_rate=(completed / total) if total else 0.0,
            average_processing_ms=average_ms,
            rating_histogram=histogram,
        )
