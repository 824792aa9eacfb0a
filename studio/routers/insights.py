"""
Quota and analytics endpoints.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from studio.config import ANALYTICS_FEEDBACK_LIMIT
from studio.database import get_db
from studio.routers.dependencies import get_current_user_id
from studio.schemas.feedback import QuotaResponse, AnalyticsResponse
from studio.services.analytics import AnalyticsAggregator
from studio.services.quota import QuotaChecker, get_quota_checker


router = APIRouter(tags=['insights'])


@router.get('/quota', response_model=QuotaResponse)
async def get_quota(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    quota: QuotaChecker = Depends(get_quota_checker),
) -> QuotaResponse:
    """
    Report the caller's usage against the daily job limit.

    `degraded` is true when usage could not be read and the check failed open.
    """
    decision = await quota.check(db, user_id)
    return QuotaResponse.model_validate(decision)


@router.get('/analytics', response_model=AnalyticsResponse)
async def get_analytics(
    feedback_limit: int = Query(default=ANALYTICS_FEEDBACK_LIMIT, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
) -> AnalyticsResponse:
    """
    Aggregate job outcomes and recent feedback ratings.

    Recomputed from the database on every request.
    """
    summary = await AnalyticsAggregator().compute(db, feedback_limit=feedback_limit)
    return AnalyticsResponse.model_validate(summary)
