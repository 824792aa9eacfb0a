#!/usr/bin/env python3
"""
Listro Studio FastAPI Server

A job-based creative generation server. Each job runs its prompts through
Anthropic Claude (primary text) and Cohere (variants), bounded by a
process-local concurrency gate and a per-user daily quota.
"""
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from studio.config import APP_NAME, APP_VERSION, SERVER_HOST, SERVER_PORT, MAX_CONCURRENT_JOBS
from studio.database import init_db, close_db
from studio.services.content_generator import get_content_generator
from studio.services.job_processor import get_job_processor
from studio.routers import health_router, jobs_router, results_router, insights_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Startup:
        - Initialize database and create tables
        - Check provider credentials
        - Start job processor (reclaims stale jobs, resumes pending ones)

    Shutdown:
        - Stop job processor
        - Close provider HTTP clients
        - Close database connections
    """
    print(f'Starting {APP_NAME} v{APP_VERSION}...')

    print('Initializing database...')
    await init_db()

    generator = get_content_generator()
    if not generator.primary.is_configured:
        print('ANTHROPIC_API_KEY not set - every prompt will fail until it is configured')
    if not generator.variants.is_configured:
        print('COHERE_API_KEY not set - every prompt will fail until it is configured')

    print(f'Starting job processor ({MAX_CONCURRENT_JOBS} concurrent jobs)...')
    job_processor = get_job_processor()
    await job_processor.start()

    print(f'Server ready at http://{SERVER_HOST}:{SERVER_PORT}')
    print('API documentation available at /docs')

    yield

    print('Shutting down...')

    await job_processor.stop()

    await generator.aclose()

    await close_db()

    print('Shutdown complete.')


# Create FastAPI application
app = FastAPI(
    title=APP_NAME,
    description='A job-based creative generation server for product listings and ads.',
    version=APP_VERSION,
    lifespan=lifespan,
)

# Register routers
app.include_router(health_router)
app.include_router(jobs_router)
app.include_router(results_router)
app.include_router(insights_router)


if __name__ == '__main__':
    uvicorn.run(
        app,
        host=SERVER_HOST,
        port=SERVER_PORT,
        reload=False,
        log_level='info',
    )
