# studio/repositories/result_repository.py

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studio.models import Job, Result, Feedback, utcnow

logger = logging.getLogger(__name__)


class ResultRepository:

    @staticmethod
    async def get(db: AsyncSession, result_id: str, user_id: Optional[str] = None) -> Optional[Result]:
        query = select(Result).where(Result.id == result_id)
        if user_id is not None:
            query = query.join(Job, Job.id == Result.job_id).where(Job.user_id == user_id)
        result = await db.execute(query)
        return result.scalar_one_or_none()

    @staticmethod
    async def submit_feedback(
        db: AsyncSession,
        result: Result,
        *,
        user_id: str,
        rating: int,
        comment: Optional[str] = None,
    ) -> Feedback:
        """
        Store a feedback row and mirror it onto the result.

        Repeat submissions are accepted; the result keeps the latest one.
        """
        now = utcnow()
        feedback = Feedback(
            result_id=result.id,
            user_id=user_id,
            rating=rating,
            comment=comment,
            created_at=now,
        )
        db.add(feedback)

        result.feedback = {
            'rating': rating,
            'comment': comment,
            'submitted_at': now.isoformat(),
        }
        await db.commit()

        logger.info('Feedback rating=%d stored for result=%s by user=%s', rating, result.id, user_id)
        return feedback

    @staticmethod
    async def recent_ratings(db: AsyncSession, limit: int) -> List[int]:
        result = await db.execute(
            select(Feedback.rating)
            .order_by(Feedback.created_at.desc())
            .limit(limit)
        )
        return [row[0] for row in result.all()]
