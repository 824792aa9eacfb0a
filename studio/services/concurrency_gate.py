"""
Process-local admission control for job processing.
"""
from typing import FrozenSet, Set


class ConcurrencyGate:
    """
    Bounded set of in-flight job ids.

    Only meaningful within one process and one event loop: mutations are
    synchronous, and nothing is shared with other replicas or persisted.
    """

    def __init__(self, max_size: int):
        if max_size < 1:
            raise ValueError('max_size must be at least 1')
        self.max_size = max_size
        self._in_flight: Set[str] = set()

    @property
    def in_flight(self) -> FrozenSet[str]:
        return frozenset(self._in_flight)

    @property
    def has_capacity(self) -> bool:
        return len(self._in_flight) < self.max_size

    def __len__(self) -> int:
        return len(self._in_flight)

    def __contains__(self, job_id: str) -> bool:
        return job_id in self._in_flight

    def try_acquire(self, job_id: str) -> bool:
        """Take a slot for job_id. False if already held or the gate is full."""
        if job_id in self._in_flight or not self.has_capacity:
            return False
        self._in_flight.add(job_id)
        return True

    def release(self, job_id: str):
        self._in_flight.discard(job_id)
