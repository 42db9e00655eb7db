"""Per-lease mutual exclusion for ledger writes."""
import logging
import threading
from contextlib import contextmanager
from uuid import UUID

from leasedesk.core.exceptions import ConcurrentModificationError

logger = logging.getLogger(__name__)


class LeaseLocks:
    """
    One lock per lease. Writes on the same lease are serialized; writes on
    different leases never contend. Acquisition is bounded by `timeout` so no
    caller waits forever: on timeout the write fails and the caller decides
    whether to retry.
    """

    def __init__(self, timeout: float = 5.0):
        self._timeout = timeout
        self._guard = threading.Lock()
        self._locks: dict[UUID, threading.Lock] = {}

    def _lock_for(self, lease_id: UUID) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(lease_id)
            if lock is None:
                lock = self._locks[lease_id] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, lease_id: UUID):
        lock = self._lock_for(lease_id)
        if not lock.acquire(timeout=self._timeout):
            logger.warning("Lease lock timeout: lease_id=%s timeout=%s", lease_id, self._timeout)
            raise ConcurrentModificationError(lease_id)
        try:
            yield
        finally:
            lock.release()
