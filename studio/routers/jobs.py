"""
Job endpoints for content generation.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from studio.database import get_db
from studio.repositories import JobRepository
from studio.routers.dependencies import get_current_user_id
from studio.schemas.job import JobCreate, JobResponse, JobListResponse
from studio.services.job_processor import JobProcessor, get_job_processor
from studio.services.quota import QuotaChecker, get_quota_checker


router = APIRouter(prefix='/jobs', tags=['jobs'])


@router.post('', response_model=JobResponse, status_code=201)
async def create_job(
    job_data: JobCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    quota: QuotaChecker = Depends(get_quota_checker),
    processor: JobProcessor = Depends(get_job_processor),
) -> JobResponse:
    """
    Create a new generation job.

    Returns immediately with the pending job. Processing starts at once if
    a slot is free; otherwise the job waits until a running job finishes.

    Raises:
        429: Daily quota exhausted
    """
    decision = await quota.check(db, user_id)
    if not decision.allowed:
        raise HTTPException(status_code=429, detail=f'Quota exceeded. {decision.message}')

    job = await JobRepository.create(
        db,
        user_id=user_id,
        kind=job_data.kind.value,
        prompts=job_data.prompts,
        options=job_data.options.model_dump(exclude_none=True),
    )
    response = JobResponse.model_validate(job)

    processor.admit(job.id)

    return response


@router.get('', response_model=JobListResponse)
async def list_jobs(
    limit: int = Query(default=20, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> JobListResponse:
    """
    List the caller's jobs, newest first.
    """
    jobs = await JobRepository.list_for_user(db, user_id, limit=limit)
    return JobListResponse(
        jobs=[JobResponse.model_validate(job) for job in jobs],
        limit=limit,
    )


@router.get('/{job_id}', response_model=JobResponse)
async def get_job(
    job_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> JobResponse:
    """
    Get status and results for a specific job.

    Jobs owned by other users are reported as not found.
    """
    job = await JobRepository.get(db, job_id, user_id=user_id)

    if not job:
        raise HTTPException(status_code=404, detail=f'Job not found: {job_id}')

    return JobResponse.model_validate(job)
