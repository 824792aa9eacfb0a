"""
Health check endpoint.
"""
from pydantic import BaseModel
from fastapi import APIRouter, Depends

from studio.config import APP_VERSION
from studio.services.job_processor import JobProcessor, get_job_processor


router = APIRouter(tags=['health'])


class HealthResponse(BaseModel):
    """Health check response schema."""
    status: str
    version: str
    jobs_in_flight: int
    max_concurrent_jobs: int
    primary_configured: bool
    variants_configured: bool


@router.get('/health', response_model=HealthResponse)
async def health_check(processor: JobProcessor = Depends(get_job_processor)) -> HealthResponse:
    """
    Check server health status.

    Fast response - no database queries or provider calls.
    """
    generator = processor.generator
    return HealthResponse(
        status='ok',
        version=APP_VERSION,
        jobs_in_flight=len(processor.gate),
        max_concurrent_jobs=processor.gate.max_size,
        primary_configured=generator.primary.is_configured,
        variants_configured=generator.variants.is_configured,
    )
