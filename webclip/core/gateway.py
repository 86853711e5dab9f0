"""
Admission Gateway
=================

Fixed-capacity slot pool guarding calls into the renderer.

A request waits for a free slot or for its cancellation event, whichever
comes first. There is no queue beyond the semaphore's waiters, no priority
and no timeout of its own.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from webclip.config.logging import get_logger
from webclip.core.errors import RequestCancelled

logger = get_logger(__name__)


class AdmissionGateway:
    """Bounded-concurrency limiter for renderer invocations."""

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"gateway capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._semaphore = asyncio.Semaphore(capacity)
        self._held = 0
        self.logger: Any = logger.bind(component="admission_gateway")  # structlog.BoundLoggerBase

    @property
    def in_flight(self) -> int:
        """Number of slots currently held."""
        return self._held

    @property
    def available(self) -> int:
        """Number of free slots."""
        return self.capacity - self._held

    @asynccontextmanager
    async def slot(self, cancel: Optional[asyncio.Event] = None) -> AsyncGenerator[None, None]:
        """
        Hold one slot for the duration of the block.

        Args:
            cancel: Event set when the caller gives up on the request

        Raises:
            RequestCancelled: If ``cancel`` is set before a slot is acquired
        """
        await self._acquire(cancel)
        self._held += 1
        try:
            yield
        finally:
            self._held -= 1
            self._semaphore.release()

    async def _acquire(self, cancel: Optional[asyncio.Event]) -> None:
        if cancel is None:
            await self._semaphore.acquire()
            return
        if cancel.is_set():
            raise RequestCancelled()

        acquire_task = asyncio.ensure_future(self._semaphore.acquire())
        cancel_task = asyncio.ensure_future(cancel.wait())
        try:
            await asyncio.wait({acquire_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            cancel_task.cancel()
            self._abandon(acquire_task)
            raise

        cancel_task.cancel()
        if acquire_task.done():
            return

        self._abandon(acquire_task)
        self.logger.info("Request cancelled while waiting for a slot", capacity=self.capacity)
        raise RequestCancelled()

    def _abandon(self, acquire_task: "asyncio.Future[bool]") -> None:
        if acquire_task.done() and not acquire_task.cancelled():
            self._semaphore.release()
        else:
            acquire_task.cancel()
