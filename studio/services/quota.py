"""
Daily job quota.
"""
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from studio.config import DAILY_JOB_LIMIT
from studio.models import utcnow
from studio.repositories import JobRepository

logger = logging.getLogger(__name__)

QUOTA_WINDOW = timedelta(hours=24)


@dataclass
class QuotaDecision:
    allowed: bool
    used: int
    limit: int
    message: Optional[str] = None
    degraded: bool = False

    @property
    def remaining(self) -> int:
        return max(self.limit - self.used, 0)


class QuotaChecker:
    """
    Counts a user's jobs in the trailing 24 hours against a fixed ceiling.

    If the count cannot be read the check fails open, with `degraded` set
    so callers can tell an unavailable check from a satisfied one.
    """

    def __init__(self, daily_limit: int = DAILY_JOB_LIMIT):
        self.daily_limit = daily_limit

    async def check(self, db: AsyncSession, user_id: str) -> QuotaDecision:
        try:
            used = await JobRepository.count_created_since(db, user_id, utcnow() - QUOTA_WINDOW)
        except Exception:
            logger.exception('Quota check failed for user=%s; allowing request', user_id)
            return QuotaDecision(
                allowed=True,
                used=0,
                limit=self.daily_limit,
                message='Quota check unavailable',
                degraded=True,
            )

        if used >= self.daily_limit:
            return QuotaDecision(
                allowed=False,
                used=used,
                limit=self.daily_limit,
                message=(
                    f'Daily limit of {self.daily_limit} jobs reached. '
                    'Please upgrade your plan or try again tomorrow.'
                ),
            )

        return QuotaDecision(allowed=True, used=used, limit=self.daily_limit)


def get_quota_checker() -> QuotaChecker:
    return QuotaChecker()
