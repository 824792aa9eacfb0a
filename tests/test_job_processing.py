"""
Background Processing Tests

Tests for the job processor state machine and the concurrency gate.
"""
import asyncio
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from studio.models import JobStatus, utcnow
from studio.repositories import JobRepository
from studio.services.concurrency_gate import ConcurrencyGate
from studio.services.job_processor import JobProcessor, get_job_processor, reset_job_processor


def scripted_generator(fn):
    generator = MagicMock()
    generator.generate = fn
    return generator


class TestConcurrencyGate:

    def test_acquire_until_full(self):
        gate = ConcurrencyGate(2)

        assert gate.try_acquire('a') is True
        assert gate.try_acquire('b') is True
        assert gate.try_acquire('c') is False
        assert gate.in_flight == {'a', 'b'}
        assert gate.has_capacity is False

    def test_acquire_is_noop_for_held_id(self):
        gate = ConcurrencyGate(2)
        gate.try_acquire('a')

        assert gate.try_acquire('a') is False
        assert len(gate) == 1

    def test_release_frees_slot(self):
        gate = ConcurrencyGate(1)
        gate.try_acquire('a')
        gate.release('a')

        assert 'a' not in gate
        assert gate.try_acquire('b') is True

    def test_release_unknown_id_is_harmless(self):
        gate = ConcurrencyGate(1)
        gate.release('never-acquired')
        assert len(gate) == 0

    def test_rejects_zero_size(self):
        with pytest.raises(ValueError):
            ConcurrencyGate(0)


class TestJobOutcomes:

    @pytest.mark.asyncio
    async def test_all_prompts_succeed(self, processor, make_job, fetch_job):
        """Two prompts, primary PRIMARY, variants V1-V3: two results, completed."""
        job = await make_job(prompts=['a', 'b'])

        assert processor.admit(job.id) is True
        await processor.wait_idle()

        saved = await fetch_job(job.id)
        assert saved.status == JobStatus.completed.value
        assert saved.completed_at is not None
        assert saved.prompts_failed == 0
        assert len(saved.results) == 2
        assert [r.prompt for r in saved.results] == ['a', 'b']
        for result in saved.results:
            assert 'PRIMARY VERSION:\nPRIMARY' in result.generated_content
            for label in ('Variant 1:\nV1', 'Variant 2:\nV2', 'Variant 3:\nV3'):
                assert label in result.generated_content
            assert result.kind == 'ad'

    @pytest.mark.asyncio
    async def test_all_prompts_fail(self, processor, mock_primary, make_job, fetch_job, count_results):
        mock_primary.complete.side_effect = RuntimeError('provider down')
        job = await make_job(prompts=['a', 'b', 'c'])

        processor.admit(job.id)
        await processor.wait_idle()

        saved = await fetch_job(job.id)
        assert saved.status == JobStatus.failed.value
        assert saved.error_message == 'No prompts produced content'
        assert saved.prompts_failed == 3
        assert saved.completed_at is None
        assert await count_results(job.id) == 0

    @pytest.mark.asyncio
    async def test_partial_success_is_reported_as_completed(self, session_factory, make_job, fetch_job):
        """One of three prompts fails: the job still completes, with two results."""
        async def generate(prompt, kind, options):
            if prompt == 'bad':
                raise RuntimeError('refused')
            return f'out-{prompt}'

        processor = JobProcessor(session_factory=session_factory, generator=scripted_generator(generate))
        job = await make_job(prompts=['good', 'bad', 'fine'])

        processor.admit(job.id)
        await processor.wait_idle()

        saved = await fetch_job(job.id)
        assert saved.status == JobStatus.completed.value
        assert saved.prompts_failed == 1
        assert [r.generated_content for r in saved.results] == ['out-good', 'out-fine']
        assert [r.position for r in saved.results] == [0, 1]

    @pytest.mark.asyncio
    async def test_prompts_processed_in_order_one_at_a_time(self, session_factory, make_job):
        order = []
        active = 0
        peak = 0

        async def generate(prompt, kind, options):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            order.append(prompt)
            await asyncio.sleep(0.01)
            active -= 1
            return prompt

        processor = JobProcessor(session_factory=session_factory, generator=scripted_generator(generate))
        job = await make_job(prompts=['one', 'two', 'three'])

        processor.admit(job.id)
        await processor.wait_idle()

        assert order == ['one', 'two', 'three']
        assert peak == 1

    @pytest.mark.asyncio
    async def test_lease_is_renewed_before_each_prompt(self, session_factory, make_job, fetch_job, monkeypatch):
        renewals = []
        original = JobRepository.renew_lease

        async def counting_renew(db, job_id, lease_seconds):
            renewals.append(job_id)
            return await original(db, job_id, lease_seconds)

        monkeypatch.setattr(JobRepository, 'renew_lease', staticmethod(counting_renew))

        async def generate(prompt, kind, options):
            return prompt

        processor = JobProcessor(session_factory=session_factory, generator=scripted_generator(generate))
        job = await make_job(prompts=['one', 'two', 'three'])

        processor.admit(job.id)
        await processor.wait_idle()

        assert renewals == [job.id] * 3
        assert (await fetch_job(job.id)).status == JobStatus.completed.value

    @pytest.mark.asyncio
    async def test_reclaimed_job_stops_generating(self, session_factory, make_job, fetch_job, count_results):
        """Once the lease is reclaimed mid-job, no further prompts are sent."""
        calls = []
        job = await make_job(prompts=['a', 'b', 'c'])

        async def generate(prompt, kind, options):
            calls.append(prompt)
            async with session_factory() as session:
                await JobRepository.fail(session, job.id, 'Processing lease expired')
            return prompt

        processor = JobProcessor(session_factory=session_factory, generator=scripted_generator(generate))

        processor.admit(job.id)
        await processor.wait_idle()

        assert calls == ['a']
        saved = await fetch_job(job.id)
        assert saved.status == JobStatus.failed.value
        assert saved.error_message == 'Processing lease expired'
        assert await count_results(job.id) == 0
        assert len(processor.gate) == 0

    @pytest.mark.asyncio
    async def test_invalid_stored_options_fail_the_job(self, processor, mock_primary, make_job, fetch_job):
        job = await make_job(options={'style': 'vaporwave'})

        processor.admit(job.id)
        await processor.wait_idle()

        saved = await fetch_job(job.id)
        assert saved.status == JobStatus.failed.value
        assert 'style' in saved.error_message
        mock_primary.complete.assert_not_called()

    @pytest.mark.asyncio
    async def test_options_reach_the_generator(self, session_factory, make_job):
        seen = []

        async def generate(prompt, kind, options):
            seen.append((kind, options.style, options.duration))
            return 'ok'

        processor = JobProcessor(session_factory=session_factory, generator=scripted_generator(generate))
        job = await make_job(kind='video', options={'style': 'documentary', 'duration': 30})

        processor.admit(job.id)
        await processor.wait_idle()

        assert seen == [('video', 'documentary', 30)]

    @pytest.mark.asyncio
    async def test_terminal_job_is_not_reprocessed(self, processor, mock_primary, make_job, fetch_job):
        job = await make_job(status=JobStatus.completed.value)

        processor.admit(job.id)
        await processor.wait_idle()

        assert (await fetch_job(job.id)).status == JobStatus.completed.value
        mock_primary.complete.assert_not_called()
        assert len(processor.gate) == 0

    @pytest.mark.asyncio
    async def test_missing_job_releases_slot(self, processor):
        processor.admit('does-not-exist')
        await processor.wait_idle()

        assert len(processor.gate) == 0


class TestAdmission:

    @pytest.mark.asyncio
    async def test_excess_jobs_wait_until_slot_frees(self, session_factory, make_job, fetch_job, wait_until):
        started = []
        gates = {}

        async def generate(prompt, kind, options):
            started.append(prompt)
            gates.setdefault(prompt, asyncio.Event())
            await gates[prompt].wait()
            return prompt

        processor = JobProcessor(
            session_factory=session_factory,
            generator=scripted_generator(generate),
            max_concurrent_jobs=1,
        )
        first = await make_job(prompts=['p0'])
        second = await make_job(prompts=['p1'])
        third = await make_job(prompts=['p2'])

        assert processor.admit(first.id) is True
        assert processor.admit(second.id) is False
        assert processor.admit(third.id) is False

        await wait_until(lambda: 'p0' in gates)
        assert (await fetch_job(first.id)).status == JobStatus.processing.value
        assert (await fetch_job(second.id)).status == JobStatus.pending.value
        assert (await fetch_job(third.id)).status == JobStatus.pending.value

        # Finishing the first job admits exactly one more: the oldest pending
        gates['p0'].set()
        await wait_until(lambda: 'p1' in gates)
        assert processor.gate.in_flight == {second.id}
        assert (await fetch_job(first.id)).status == JobStatus.completed.value
        assert (await fetch_job(third.id)).status == JobStatus.pending.value

        gates['p1'].set()
        await wait_until(lambda: 'p2' in gates)
        gates['p2'].set()
        await processor.wait_idle()

        assert started == ['p0', 'p1', 'p2']
        assert (await fetch_job(third.id)).status == JobStatus.completed.value

    @pytest.mark.asyncio
    async def test_admit_twice_is_noop(self, session_factory, make_job, wait_until):
        release = asyncio.Event()
        calls = []

        async def generate(prompt, kind, options):
            calls.append(prompt)
            await release.wait()
            return prompt

        processor = JobProcessor(session_factory=session_factory, generator=scripted_generator(generate))
        job = await make_job(prompts=['only'])

        assert processor.admit(job.id) is True
        assert processor.admit(job.id) is False

        await wait_until(lambda: calls)
        release.set()
        await processor.wait_idle()

        assert calls == ['only']

    @pytest.mark.asyncio
    async def test_start_resumes_pending_jobs(self, session_factory, make_job, fetch_job):
        async def generate(prompt, kind, options):
            return prompt

        processor = JobProcessor(
            session_factory=session_factory,
            generator=scripted_generator(generate),
            max_concurrent_jobs=2,
        )
        jobs = [await make_job(prompts=[f'p{i}']) for i in range(3)]

        await processor.start()
        await processor.wait_idle()
        await processor.stop()

        for job in jobs:
            assert (await fetch_job(job.id)).status == JobStatus.completed.value

    @pytest.mark.asyncio
    async def test_start_reclaims_expired_leases(self, processor, make_job, fetch_job):
        stuck = await make_job(
            status=JobStatus.processing.value,
            lease_expires_at=utcnow() - timedelta(minutes=10),
        )

        await processor.start()
        await processor.wait_idle()

        saved = await fetch_job(stuck.id)
        assert saved.status == JobStatus.failed.value
        assert saved.error_message == 'Processing lease expired'

    @pytest.mark.asyncio
    async def test_stop_refuses_new_work(self, processor, make_job):
        job = await make_job()

        await processor.stop()

        assert processor.admit(job.id) is False
        assert await processor.pull_next() is None

    @pytest.mark.asyncio
    async def test_stop_cancels_hung_jobs(self, session_factory, make_job):
        started = asyncio.Event()

        async def generate(prompt, kind, options):
            started.set()
            await asyncio.Event().wait()

        processor = JobProcessor(session_factory=session_factory, generator=scripted_generator(generate))
        job = await make_job()
        processor.admit(job.id)
        await started.wait()

        await processor.stop(timeout=0.1)

        assert len(processor.gate) == 0


class TestSingleton:

    def test_job_processor_singleton(self):
        reset_job_processor()

        assert get_job_processor() is get_job_processor()

        reset_job_processor()
