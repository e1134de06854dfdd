"""Background delivery of one-time codes.

Request handlers never wait on SMTP. ``NotificationDispatcher.submit``
puts the delivery on a bounded queue and returns immediately; worker
tasks drain the queue, run the blocking notifier in a thread and retry
transient failures with tenacity. Failures are logged, never raised to
the request that produced the code.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from authcore.domain.account import OtpPurpose

logger = logging.getLogger(__name__)


class CodeNotifier(Protocol):
    """Outbound channel for one-time codes."""

    def send_code(
        self,
        address: str,
        code: str,
        display_name: str | None,
        purpose: OtpPurpose,
    ) -> bool:
        ...


@dataclass(frozen=True)
class CodeDelivery:
    address: str
    code: str
    display_name: str | None
    purpose: OtpPurpose

    def __repr__(self) -> str:
        # Never render the code itself
        return (
            f"CodeDelivery(address={self.address!r}, "
            f"purpose={self.purpose.value})"
        )


class NotificationDispatcher:
    """Bounded queue of code deliveries served by worker tasks."""

    def __init__(  # noqa: PLR0913
        self,
        notifier: CodeNotifier,
        workers: int = 2,
        queue_size: int = 100,
        max_retries: int = 3,
        retry_wait_min: float = 1.0,
        retry_wait_max: float = 10.0,
    ):
        if workers < 1:
            msg = "NotificationDispatcher needs at least one worker"
            raise ValueError(msg)

        self._notifier = notifier
        self._worker_count = workers
        self._max_attempts = max(max_retries, 1)
        self._retry_wait_min = retry_wait_min
        self._retry_wait_max = retry_wait_max
        self._queue: asyncio.Queue[CodeDelivery] = asyncio.Queue(maxsize=queue_size)
        self._workers: list[asyncio.Task] = []

    @property
    def is_running(self) -> bool:
        return bool(self._workers)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def start(self) -> None:
        if self._workers:
            return
        self._workers = [
            asyncio.create_task(self._work(), name=f"code-notifier-{index}")
            for index in range(self._worker_count)
        ]
        logger.info("Notification dispatcher started with %d workers", len(self._workers))

    async def stop(self) -> None:
        """Cancel the workers. Deliveries still queued are dropped."""
        workers, self._workers = self._workers, []
        for task in workers:
            task.cancel()
        await asyncio.gather(*workers, return_exceptions=True)
        if self._queue.qsize():
            logger.warning(
                "Notification dispatcher stopped with %d undelivered codes",
                self._queue.qsize(),
            )

    async def drain(self) -> None:
        """Wait until every queued delivery has been attempted."""
        await self._queue.join()

    def submit(self, delivery: CodeDelivery) -> bool:
        """Queue a delivery without waiting.

        Returns
        -------
        False if the queue was full and the delivery was dropped
        """
        try:
            self._queue.put_nowait(delivery)
        except asyncio.QueueFull:
            logger.error(
                "Notification queue full, dropping %s code for %s",
                delivery.purpose.value,
                delivery.address,
            )
            return False
        return True

    async def _work(self) -> None:
        while True:
            delivery = await self._queue.get()
            try:
                await self._deliver(delivery)
            finally:
                self._queue.task_done()

    async def _deliver(self, delivery: CodeDelivery) -> None:
        delivered = False
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._max_attempts),
                wait=wait_exponential(
                    multiplier=1,
                    min=self._retry_wait_min,
                    max=self._retry_wait_max,
                ),
                retry=retry_if_exception_type(Exception),
                reraise=True,
            ):
                with attempt:
                    delivered = await asyncio.to_thread(
                        self._notifier.send_code,
                        delivery.address,
                        delivery.code,
                        delivery.display_name,
                        delivery.purpose,
                    )
        except Exception as e:
            logger.error(
                "Giving up on %s code for %s after %d attempts: %s",
                delivery.purpose.value,
                delivery.address,
                self._max_attempts,
                e,
            )
            return

        if not delivered:
            logger.warning(
                "%s code for %s was not delivered",
                delivery.purpose.value,
                delivery.address,
            )


class PendingDeliveries:
    """Deliveries held back while a unit of work is open.

    Outside a unit of work ``submit`` forwards straight to the dispatcher.
    Inside one, deliveries wait until ``release`` (after commit) or are
    dropped by ``discard`` (after rollback), so no code is mailed for a
    record that was never stored.
    """

    def __init__(self, dispatcher: NotificationDispatcher):
        self._dispatcher = dispatcher
        self._pending: list[CodeDelivery] = []
        self._holding = False

    @property
    def pending(self) -> int:
        return len(self._pending)

    def hold(self) -> None:
        self._holding = True

    def submit(self, delivery: CodeDelivery) -> bool:
        if not self._holding:
            return self._dispatcher.submit(delivery)
        self._pending.append(delivery)
        return True

    def release(self) -> int:
        """Hand every held delivery to the dispatcher.

        Returns
        -------
        Number of deliveries the dispatcher accepted
        """
        pending, self._pending = self._pending, []
        self._holding = False
        return sum(1 for delivery in pending if self._dispatcher.submit(delivery))

    def discard(self) -> int:
        pending, self._pending = self._pending, []
        self._holding = False
        if pending:
            logger.info("Discarded %d code deliveries after rollback", len(pending))
        return len(pending)
