"""
Embedding Queue

In-process, bounded-concurrency job queue that turns note content into
stored embeddings. Runs outside the HTTP request lifecycle: callers
``enqueue`` a note ID and return immediately; the outcome is only
observable through the note's ``embedding_status``.

Design:
    - One driver task per queue instance admits pending IDs in FIFO order.
    - An ``asyncio.Semaphore`` of ``max_concurrent`` slots gates admission;
      the driver blocks on it instead of polling.
    - Each admitted ID runs as its own task through preprocessing, the
      provider call and the store write, retrying with exponential
      backoff (1s, 2s, 4s) before marking the note ``failed``.
    - ``_pending`` and ``_active`` are only mutated by ``enqueue``/the
      driver (pending) and the driver/job done-callbacks (active).

Not durable: the backlog lives in memory and is lost on restart.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from uuid import UUID

from note_vault.core.errors import QueueClosedError
from note_vault.models.note import EmbeddingStatus
from note_vault.repositories.store import NoteStore
from note_vault.schemas.health import QueueStatus
from note_vault.services.embeddings import EmbeddingProvider
from note_vault.services.preprocessing import clean

logger = logging.getLogger(__name__)

MAX_CONCURRENT = 5
MAX_ATTEMPTS = 4
RETRY_BASE_DELAY_SECONDS = 1.0  # Doubled per attempt: 1s, 2s, 4s


class EmbeddingQueue:
    """
    Bounded worker pool driving embedding generation per note.

    Guarantees:
        - At most ``max_concurrent`` notes are in the active set.
        - A note ID is never pending and active at once, and enqueueing
          an ID that is already pending or active is a logged no-op.
        - Every admitted job reaches a terminal status (``completed`` or
          ``failed``) unless the queue is shut down without draining.

    Usage::

        queue = EmbeddingQueue(provider, store)
        queue.start()
        queue.enqueue(note.id)
        ...
        await queue.shutdown(timeout=30)
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        store: NoteStore,
        *,
        max_concurrent: int = MAX_CONCURRENT,
        max_attempts: int = MAX_ATTEMPTS,
        retry_base_delay: float = RETRY_BASE_DELAY_SECONDS,
    ) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self._provider = provider
        self._store = store
        self.max_concurrent = max_concurrent
        self.max_attempts = max_attempts
        self.retry_base_delay = retry_base_delay

        # dict as an insertion-ordered set: FIFO pops and O(1) membership
        self._pending: dict[UUID, None] = {}
        self._active: set[UUID] = set()
        self._jobs: set[asyncio.Task[None]] = set()
        self._slots = asyncio.Semaphore(max_concurrent)
        self._wakeup = asyncio.Event()
        self._driver: asyncio.Task[None] | None = None
        self._running = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Begin accepting jobs. Idempotent."""
        if not self._running:
            self._running = True
            logger.info(
                "Embedding queue started (max_concurrent=%d, max_attempts=%d)",
                self.max_concurrent,
                self.max_attempts,
            )

    async def join(self) -> None:
        """Wait until the backlog and every in-flight job have finished."""
        while self._driver is not None and not self._driver.done():
            await asyncio.wait({self._driver})

    async def shutdown(self, timeout: float | None = None) -> None:
        """
        Stop accepting jobs and drain the queue.

        Args:
            timeout: Seconds to wait for the drain. On expiry the pending
                backlog is dropped and in-flight jobs are cancelled, which
                leaves their notes in ``processing``.
        """
        self._running = False
        try:
            await asyncio.wait_for(self.join(), timeout)
        except TimeoutError:
            jobs = list(self._jobs)
            logger.warning(
                "Embedding queue did not drain within %.1fs: "
                "dropping %d pending, cancelling %d active",
                timeout,
                len(self._pending),
                len(jobs),
            )
            self._pending.clear()
            if self._driver is not None:
                self._driver.cancel()
                jobs.append(self._driver)
            for job in jobs:
                job.cancel()
            await asyncio.gather(*jobs, return_exceptions=True)
        logger.info("Embedding queue stopped")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def enqueue(self, note_id: UUID) -> None:
        """
        Schedule embedding generation for a note (fire-and-forget).

        Must be called from code running on the event loop.

        Raises:
            QueueClosedError: If the queue has not been started or is
                shutting down.
        """
        if not self._running:
            raise QueueClosedError("Embedding queue is not running")

        if note_id in self._active or note_id in self._pending:
            logger.info("Note %s already in queue or processing", note_id)
            return

        self._pending[note_id] = None
        logger.info(
            "Enqueued note %s for embedding. Queue size: %d",
            note_id,
            len(self._pending),
        )
        self._wakeup.set()
        self._ensure_driver()

    def get_status(self) -> QueueStatus:
        """Read-only snapshot for health reporting."""
        return QueueStatus(
            queue_size=len(self._pending),
            processing_count=len(self._active),
            max_concurrent=self.max_concurrent,
        )

    def retry_delay(self, attempt: int) -> float:
        """Backoff before retrying after the zero-based ``attempt`` failed."""
        return self.retry_base_delay * (2**attempt)

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    def _ensure_driver(self) -> None:
        if self._driver is None or self._driver.done():
            self._driver = asyncio.get_running_loop().create_task(
                self._drive(), name="embedding-queue-driver"
            )

    async def _drive(self) -> None:
        # Keep looping while jobs are in flight so their completions are reaped
        while self._pending or self._active:
            if not self._pending:
                self._wakeup.clear()
                await self._wakeup.wait()
                continue

            await self._slots.acquire()
            if not self._pending:  # Backlog dropped while waiting for a slot
                self._slots.release()
                continue

            note_id = next(iter(self._pending))
            del self._pending[note_id]
            self._active.add(note_id)
            logger.info(
                "Processing embedding for note %s. Concurrent: %d/%d",
                note_id,
                len(self._active),
                self.max_concurrent,
            )

            job = asyncio.create_task(self._process(note_id), name=f"embed-{note_id}")
            self._jobs.add(job)
            job.add_done_callback(functools.partial(self._on_job_done, note_id))

    def _on_job_done(self, note_id: UUID, job: asyncio.Task[None]) -> None:
        self._jobs.discard(job)
        self._active.discard(note_id)
        self._slots.release()
        self._wakeup.set()

        if job.cancelled():
            logger.warning("Embedding job for note %s was cancelled", note_id)
        elif (exc := job.exception()) is not None:
            logger.error("Error processing note %s", note_id, exc_info=exc)

        logger.info(
            "Finished processing note %s. Remaining in queue: %d",
            note_id,
            len(self._pending),
        )

    # ------------------------------------------------------------------
    # Per-job processing
    # ------------------------------------------------------------------

    async def _process(self, note_id: UUID) -> None:
        """
        Generate and store the embedding for one note.

        Any exception inside an attempt is retried; after the last
        attempt the note is marked ``failed`` with its vector cleared.
        A note that no longer exists is marked ``failed`` immediately.
        """
        for attempt in range(self.max_attempts):
            try:
                await self._store.update_embedding_status(
                    note_id, EmbeddingStatus.PROCESSING
                )
                note = await self._store.find_by_id(note_id)
                if note is None:
                    logger.error("Note %s not found for embedding processing", note_id)
                    await self._store.update_embedding(
                        note_id, None, EmbeddingStatus.FAILED
                    )
                    return

                vector = await self._provider.generate_embedding(clean(note.content))
                await self._store.update_embedding(
                    note_id, vector, EmbeddingStatus.COMPLETED
                )
                logger.info("Embedding generated for note %s", note_id)
                return

            except Exception as e:
                logger.warning(
                    "Error processing embedding for note %s (attempt %d/%d): %s",
                    note_id,
                    attempt + 1,
                    self.max_attempts,
                    e,
                )
                if attempt < self.max_attempts - 1:
                    delay = self.retry_delay(attempt)
                    logger.info("Retrying note %s in %.1fs", note_id, delay)
                    await asyncio.sleep(delay)

        await self._store.update_embedding(note_id, None, EmbeddingStatus.FAILED)
        logger.error(
            "Embedding permanently failed for note %s after %d attempts",
            note_id,
            self.max_attempts,
        )
