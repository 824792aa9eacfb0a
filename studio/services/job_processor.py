"""
Background job processor for content generation.
"""
import asyncio
import logging
from typing import Optional, Set

from studio.config import MAX_CONCURRENT_JOBS, JOB_LEASE_SECONDS
from studio.database import async_session_factory
from studio.models import ContentKind
from studio.repositories import JobRepository
from studio.schemas.job import GenerationOptions
from studio.services.concurrency_gate import ConcurrencyGate
from studio.services.content_generator import get_content_generator

logger = logging.getLogger(__name__)


class JobProcessor:
    """
    Runs generation jobs as asyncio tasks, bounded by a ConcurrencyGate.

    Jobs that arrive while the gate is full stay pending in the database and
    are picked up oldest-first whenever a running job releases its slot.
    Prompts within a job are processed one at a time, in order.
    """

    def __init__(
        self,
        session_factory=None,
        generator=None,
        max_concurrent_jobs: int = MAX_CONCURRENT_JOBS,
        lease_seconds: int = JOB_LEASE_SECONDS,
    ):
        self._session_factory = session_factory or async_session_factory
        self._generator = generator
        self.gate = ConcurrencyGate(max_concurrent_jobs)
        self.lease_seconds = lease_seconds
        self._tasks: Set[asyncio.Task] = set()
        self._accepting = True

    @property
    def generator(self):
        if self._generator is None:
            self._generator = get_content_generator()
        return self._generator

    async def start(self):
        """Reclaim abandoned jobs, then fill free slots from pending rows."""
        self._accepting = True
        await self.reclaim_stale_jobs()
        while await self.pull_next():
            pass

    async def stop(self, timeout: float = 5.0):
        """Stop admitting work and wait for in-flight jobs, cancelling stragglers."""
        self._accepting = False
        tasks = list(self._tasks)
        if not tasks:
            return

        done, pending = await asyncio.wait(tasks, timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def wait_idle(self):
        """Wait until no job tasks remain, including ones pulled while waiting."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def admit(self, job_id: str) -> bool:
        """
        Start processing job_id if the gate has room.

        No-op if the job is already running. Returns True if a task was started.
        """
        if not self._accepting or not self.gate.try_acquire(job_id):
            return False

        task = asyncio.create_task(self._run(job_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.debug('Admitted job %s (%d/%d slots)', job_id, len(self.gate), self.gate.max_size)
        return True

    async def pull_next(self) -> Optional[str]:
        """Admit the oldest pending job not already running. Returns its id."""
        if not self._accepting or not self.gate.has_capacity:
            return None

        try:
            async with self._session_factory() as session:
                job_id = await JobRepository.oldest_pending_id(session, exclude=self.gate.in_flight)
        except Exception:
            logger.exception('Error pulling next pending job')
            return None

        if job_id and self.admit(job_id):
            return job_id
        return None

    async def reclaim_stale_jobs(self) -> int:
        try:
            async with self._session_factory() as session:
                return await JobRepository.reclaim_stale(session)
        except Exception:
            logger.exception('Error reclaiming stale jobs')
            return 0

    async def _run(self, job_id: str):
        try:
            await self._process_job(job_id)
        except Exception:
            logger.exception('Unhandled error processing job %s', job_id)
        finally:
            self.gate.release(job_id)
            await self.reclaim_stale_jobs()
            await self.pull_next()

    async def _process_job(self, job_id: str):
        """Process a single job."""
        async with self._session_factory() as session:
            if not await JobRepository.claim(session, job_id, self.lease_seconds):
                logger.warning('Job %s not found or not pending, skipping', job_id)
                return

            job = await JobRepository.get(session, job_id)
            prompts = list(job.prompts)
            kind = job.kind
            raw_options = job.options or {}

            prompts_failed = 0
            try:
                options = GenerationOptions.model_validate(raw_options)
                result_kind = ContentKind(kind).value

                results = []
                for prompt in prompts:
                    if not await JobRepository.renew_lease(session, job_id, self.lease_seconds):
                        logger.warning('Job %s lost its lease, stopping', job_id)
                        return
                    try:
                        content = await self.generator.generate(prompt, kind, options)
                    except Exception as e:
                        prompts_failed += 1
                        logger.error('Job %s: prompt failed (%s): %r', job_id, e, prompt[:80])
                        continue

                    results.append({
                        'prompt': prompt,
                        'generated_content': content,
                        'kind': result_kind,
                    })

                if results:
                    await JobRepository.complete(session, job_id, results, prompts_failed=prompts_failed)
                else:
                    await JobRepository.fail(
                        session,
                        job_id,
                        'No prompts produced content',
                        prompts_failed=prompts_failed,
                    )

            except Exception as e:
                logger.exception('Job %s failed', job_id)
                await session.rollback()
                await JobRepository.fail(session, job_id, str(e) or e.__class__.__name__, prompts_failed=prompts_failed)


# Singleton instance
_job_processor: Optional[JobProcessor] = None


def get_job_processor() -> JobProcessor:
    """Get the job processor singleton instance."""
    global _job_processor
    if _job_processor is None:
        _job_processor = JobProcessor()
    return _job_processor


def reset_job_processor():
    """Reset the job processor singleton (for testing)."""
    global _job_processor
    _job_processor = None
