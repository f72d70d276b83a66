"""Admission control for concurrent remote operations."""

import logging
import threading
from contextlib import contextmanager

from ..errors import PermitTimeoutError

logger = logging.getLogger(__name__)


class PermitPool:
    """Counting semaphore bounding in-flight remote operations.

    A capacity of 0 or None disables the limit. Slots are only handed out
    through :meth:`permit`, which releases on every exit path.

    Usage:
        pool = PermitPool(8)
        with pool.permit(timeout=2.0):
            container.upload(name, data)
    """

    def __init__(self, capacity: int | None = None):
        if capacity is not None and capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")
        self.capacity = capacity or 0
        self._sem = threading.BoundedSemaphore(self.capacity) if self.capacity else None

    @property
    def bounded(self) -> bool:
        return self._sem is not None

    def acquire(self, timeout: float | None = None) -> None:
        """Block until a slot is free.

        Raises:
            PermitTimeoutError: If ``timeout`` elapsed first
        """
        if self._sem is None:
            return
        if not self._sem.acquire(timeout=timeout):
            raise PermitTimeoutError(
                f"no free slot among {self.capacity} after {timeout}s"
            )

    def release(self) -> None:
        if self._sem is not None:
            self._sem.release()

    @contextmanager
    def permit(self, timeout: float | None = None):
        """Hold one slot for the duration of the block."""
        self.acquire(timeout)
        try:
            yield
        finally:
            self.release()
