"""
Note Service

Write paths that feed the embedding queue: creating a note, updating
it (re-embedding only when the content actually changed) and
reindexing every note of a user.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from note_vault.core.errors import NoteNotFoundError, QueueClosedError
from note_vault.models import EmbeddingStatus, Note
from note_vault.repositories.notes import NoteRepository, note_repository
from note_vault.schemas.notes import NoteCreate, NoteUpdate
from note_vault.services.embedding_queue import EmbeddingQueue

logger = logging.getLogger(__name__)


class NoteService:
    """Request-scoped note operations bound to one session."""

    def __init__(
        self,
        session: AsyncSession,
        queue: EmbeddingQueue,
        repository: NoteRepository = note_repository,
    ) -> None:
        self._session = session
        self._queue = queue
        self._repository = repository

    async def create(self, user_id: UUID, note_in: NoteCreate) -> Note:
        """Persist a new note as ``pending`` and queue its embedding."""
        note = await self._repository.create(
            self._session,
            {
                **note_in.model_dump(),
                "user_id": user_id,
                "is_archived": False,
                "embedding_status": EmbeddingStatus.PENDING,
            },
        )
        self._schedule(note.id)
        return note

    async def get(self, user_id: UUID, note_id: UUID) -> Note:
        """
        Fetch a note owned by ``user_id``.

        Raises:
            NoteNotFoundError: Covers both a missing note and one owned
                by another user.
        """
        note = await self._repository.get_for_user(self._session, user_id, note_id)
        if note is None:
            raise NoteNotFoundError(note_id)
        return note

    async def update(self, user_id: UUID, note_id: UUID, note_in: NoteUpdate) -> Note:
        """
        Apply a partial update.

        A content change resets the note to ``pending``, clears its
        vector and re-queues it; any other change keeps the current
        embedding state.
        """
        note = await self.get(user_id, note_id)

        data = {
            field: value
            for field, value in note_in.model_dump(exclude_unset=True).items()
            if value is not None
        }
        content_changed = "content" in data and data["content"] != note.content
        if content_changed:
            data["embedding_status"] = EmbeddingStatus.PENDING
            data["embedding"] = None

        note = await self._repository.update(self._session, note, data)

        if content_changed:
            self._schedule(note.id)
        return note

    async def reindex(self, user_id: UUID) -> int:
        """
        Reset all of a user's notes to ``pending`` and queue them.

        Returns:
            Number of notes queued.
        """
        note_ids = await self._repository.mark_user_notes_pending(self._session, user_id)
        for note_id in note_ids:
            self._schedule(note_id)
        logger.info("Reindex started for user %s: %d notes", user_id, len(note_ids))
        return len(note_ids)

    def _schedule(self, note_id: UUID) -> None:
        """
        Queue ``note_id`` for embedding.

        The note is already committed as ``pending`` at this point; if the
        queue is closed (shutdown drain) it stays pending until reindexed.
        """
        try:
            self._queue.enqueue(note_id)
        except QueueClosedError:
            logger.warning("Embedding queue closed, note %s left pending", note_id)
