# studio/repositories/job_repository.py

import logging
import uuid
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from studio.models import Job, JobStatus, Result, utcnow

logger = logging.getLogger(__name__)


class JobRepository:
    """
    Job record store.

    Every status change is a guarded update on the expected current status,
    so transitions stay monotonic even if two writers race.
    """

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        user_id: str,
        kind: str,
        prompts: List[str],
        options: dict,
    ) -> Job:
        now = utcnow()
        job = Job(
            id=str(uuid.uuid4()),
            user_id=user_id,
            kind=kind,
            prompts=list(prompts),
            options=options,
            status=JobStatus.pending.value,
            prompts_failed=0,
            created_at=now,
            updated_at=now,
            results=[],
        )
        db.add(job)
        await db.commit()

        logger.info(
            'Created %s job id=%s for user=%s (%d prompts)',
            kind,
            job.id,
            user_id,
            len(prompts),
        )
        return job

    @staticmethod
    async def get(db: AsyncSession, job_id: str, user_id: Optional[str] = None) -> Optional[Job]:
        query = select(Job).where(Job.id == job_id)
        if user_id is not None:
            query = query.where(Job.user_id == user_id)
        result = await db.execute(query)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_for_user(db: AsyncSession, user_id: str, limit: int = 20) -> List[Job]:
        result = await db.execute(
            select(Job)
            .where(Job.user_id == user_id)
            .order_by(Job.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    @staticmethod
    async def count_created_since(db: AsyncSession, user_id: str, since: datetime) -> int:
        result = await db.execute(
            select(func.count(Job.id)).where(
                Job.user_id == user_id,
                Job.created_at >= since,
            )
        )
        return result.scalar() or 0

    @staticmethod
    async def count(db: AsyncSession, status: Optional[str] = None) -> int:
        query = select(func.count(Job.id))
        if status is not None:
            query = query.where(Job.status == status)
        result = await db.execute(query)
        return result.scalar() or 0

    @staticmethod
    async def completed_timings(db: AsyncSession) -> List[Tuple[datetime, datetime]]:
        """(created_at, completed_at) pairs for every completed job."""
        result = await db.execute(
            select(Job.created_at, Job.completed_at).where(
                Job.status == JobStatus.completed.value,
                Job.completed_at.isnot(None),
            )
        )
        return [(row[0], row[1]) for row in result.all()]

    @staticmethod
    async def oldest_pending_id(db: AsyncSession, exclude: Iterable[str] = ()) -> Optional[str]:
        query = select(Job.id).where(Job.status == JobStatus.pending.value)
        exclude = list(exclude)
        if exclude:
            query = query.where(Job.id.notin_(exclude))
        result = await db.execute(query.order_by(Job.created_at.asc()).limit(1))
        return result.scalar_one_or_none()

    @staticmethod
    async def claim(db: AsyncSession, job_id: str, lease_seconds: int) -> bool:
        """Move a pending job to processing. False if it was not pending."""
        now = utcnow()
        result = await db.execute(
            update(Job)
            .where(Job.id == job_id, Job.status == JobStatus.pending.value)
            .values(
                status=JobStatus.processing.value,
                updated_at=now,
                lease_expires_at=now + timedelta(seconds=lease_seconds),
            )
        )
        await db.commit()
        return result.rowcount == 1

    @staticmethod
    async def renew_lease(db: AsyncSession, job_id: str, lease_seconds: int) -> bool:
        now = utcnow()
        result = await db.execute(
            update(Job)
            .where(Job.id == job_id, Job.status == JobStatus.processing.value)
            .values(updated_at=now, lease_expires_at=now + timedelta(seconds=lease_seconds))
        )
        await db.commit()
        return result.rowcount == 1

    @staticmethod
    async def complete(
        db: AsyncSession,
        job_id: str,
        results: List[dict],
        prompts_failed: int = 0,
    ) -> bool:
        """
        Persist results and mark the job completed in one transaction.

        Returns False (and writes nothing) if the job is no longer processing,
        e.g. because its lease was reclaimed.
        """
        now = utcnow()
        updated = await db.execute(
            update(Job)
            .where(Job.id == job_id, Job.status == JobStatus.processing.value)
            .values(
                status=JobStatus.completed.value,
                updated_at=now,
                completed_at=now,
                lease_expires_at=None,
                prompts_failed=prompts_failed,
            )
        )
        if updated.rowcount != 1:
            await db.rollback()
            logger.warning('Job %s is no longer processing; dropping %d results', job_id, len(results))
            return False

        for position, data in enumerate(results):
            db.add(Result(job_id=job_id, position=position, created_at=now, **data))
        await db.commit()

        logger.info('Job %s completed with %d results (%d prompts failed)', job_id, len(results), prompts_failed)
        return True

    @staticmethod
    async def fail(
        db: AsyncSession,
        job_id: str,
        error_message: str,
        prompts_failed: int = 0,
    ) -> bool:
        result = await db.execute(
            update(Job)
            .where(Job.id == job_id, Job.status == JobStatus.processing.value)
            .values(
                status=JobStatus.failed.value,
                updated_at=utcnow(),
                lease_expires_at=None,
                error_message=error_message,
                prompts_failed=prompts_failed,
            )
        )
        await db.commit()

        if result.rowcount == 1:
            logger.info('Job %s failed: %s', job_id, error_message)
            return True
        return False

    @staticmethod
    async def reclaim_stale(db: AsyncSession, now: Optional[datetime] = None) -> int:
        """Fail processing jobs whose lease has expired. Returns the count."""
        now = now or utcnow()
        result = await db.execute(
            update(Job)
            .where(
                Job.status == JobStatus.processing.value,
                Job.lease_expires_at < now,
            )
            .values(
                status=JobStatus.failed.value,
                updated_at=now,
                lease_expires_at=None,
                error_message='Processing lease expired',
            )
        )
        await db.commit()

        if result.rowcount:
            logger.warning('Reclaimed %d stale processing jobs', result.rowcount)
        return result.rowcount
