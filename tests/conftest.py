"""
Pytest fixtures for testing.
"""
import asyncio
from datetime import timedelta
from typing import AsyncGenerator
from unittest.mock import MagicMock, AsyncMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studio.models import Base, Job, JobStatus, Result, utcnow
from studio.database import build_engine, build_session_factory, get_db
from studio.services.content_generator import ContentGenerator, reset_content_generator
from studio.services.job_processor import JobProcessor, get_job_processor, reset_job_processor
from studio.services.quota import QuotaChecker, get_quota_checker


@pytest.fixture(scope='function')
def test_db_url(tmp_path):
    """Per-test SQLite database."""
    return f'sqlite+aiosqlite:///{tmp_path / "test.db"}'


@pytest_asyncio.fixture(scope='function')
async def test_engine(test_db_url):
    """Create a test database engine."""
    engine = build_engine(test_db_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    """Session factory bound to the test engine."""
    return build_session_factory(test_engine)


@pytest_asyncio.fixture(scope='function')
async def test_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_job(session_factory):
    """
    Factory inserting a job row directly.

    Jobs get strictly increasing created_at values unless one is given.
    """
    base = utcnow() - timedelta(hours=1)
    counter = {'n': 0}

    async def _make_job(
        prompts=None,
        user_id='user-1',
        kind='ad',
        options=None,
        status=JobStatus.pending.value,
        created_at=None,
        **fields,
    ) -> Job:
        counter['n'] += 1
        created = created_at or base + timedelta(seconds=counter['n'])
        job = Job(
            user_id=user_id,
            kind=kind,
            prompts=prompts or ['Launch video for a linen shirt'],
            options=options or {},
            status=status,
            created_at=created,
            updated_at=created,
            results=[],
            **fields,
        )
        async with session_factory() as session:
            session.add(job)
            await session.commit()
        return job

    return _make_job


@pytest.fixture
def fetch_job(session_factory):
    """Reload a job (with results) in a fresh session."""
    async def _fetch_job(job_id: str) -> Job:
        async with session_factory() as session:
            result = await session.execute(select(Job).where(Job.id == job_id))
            return result.scalar_one()

    return _fetch_job


@pytest.fixture
def count_results(session_factory):
    async def _count_results(job_id: str) -> int:
        async with session_factory() as session:
            result = await session.execute(select(Result).where(Result.job_id == job_id))
            return len(result.scalars().all())

    return _count_results


async def _wait_until(predicate, timeout: float = 2.0):
    """Poll predicate until it is true, yielding to the event loop."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError('condition not met in time')
        await asyncio.sleep(0.01)


@pytest.fixture
def wait_until():
    return _wait_until


@pytest.fixture
def mock_primary():
    return MagicMock(is_configured=True, complete=AsyncMock(return_value='PRIMARY'))


@pytest.fixture
def mock_variants():
    return MagicMock(
        is_configured=True,
        generate_candidates=AsyncMock(return_value=['V1', 'V2', 'V3']),
    )


@pytest.fixture
def mock_generator(mock_primary, mock_variants):
    """Content generator with both providers mocked."""
    return ContentGenerator(primary=mock_primary, variants=mock_variants)


@pytest_asyncio.fixture
async def processor(session_factory, mock_generator):
    """Job processor wired to the test database and mocked providers."""
    job_processor = JobProcessor(
        session_factory=session_factory,
        generator=mock_generator,
        max_concurrent_jobs=5,
    )
    yield job_processor
    await job_processor.stop()


@pytest_asyncio.fixture
async def client(session_factory, processor):
    """Create a test client with mocked dependencies."""
    # Reset singletons
    reset_content_generator()
    reset_job_processor()

    # Import app after resetting singletons
    from server import app

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_job_processor] = lambda: processor
    app.dependency_overrides[get_quota_checker] = lambda: QuotaChecker(daily_limit=3)

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url='http://test',
        headers={'X-User-Id': 'user-1'},
    ) as client:
        yield client

    # Clean up
    app.dependency_overrides.clear()
    reset_content_generator()
    reset_job_processor()
