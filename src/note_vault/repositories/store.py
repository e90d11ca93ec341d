"""
Note Store

Session-owning facade over NoteRepository, shaped for the
long-lived embedding queue and search orchestrator. Those components
run outside any request scope, so each call opens and closes its
own session.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from note_vault.models import EmbeddingStatus, Note
from note_vault.repositories.notes import NoteRepository


class NoteStore(Protocol):
    """Persistence contract consumed by the embedding queue and search."""

    async def find_by_id(self, note_id: UUID) -> Note | None: ...

    async def update_embedding_status(
        self, note_id: UUID, status: EmbeddingStatus
    ) -> None: ...

    async def update_embedding(
        self,
        note_id: UUID,
        embedding: list[float] | None,
        status: EmbeddingStatus = EmbeddingStatus.COMPLETED,
    ) -> None: ...

    async def search_similar(
        self,
        user_id: UUID,
        embedding: list[float],
        *,
        limit: int,
        threshold: float,
        tags: Sequence[str] | None = None,
    ) -> list[tuple[Note, float]]: ...

    async def search_full_text(
        self,
        user_id: UUID,
        query: str,
        *,
        limit: int,
        tags: Sequence[str] | None = None,
    ) -> list[tuple[Note, float]]: ...


class SQLNoteStore:
    """
    PostgreSQL-backed NoteStore.

    Usage::

        store = SQLNoteStore(get_session_factory())
        note = await store.find_by_id(note_id)
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        repository: NoteRepository | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._repository = repository or NoteRepository()

    async def find_by_id(self, note_id: UUID) -> Note | None:
        async with self._session_factory() as session:
            return await self._repository.get_by_id(session, note_id)

    async def update_embedding_status(
        self, note_id: UUID, status: EmbeddingStatus
    ) -> None:
        async with self._session_factory() as session:
            await self._repository.update_embedding_status(session, note_id, status)

    async def update_embedding(
        self,
        note_id: UUID,
        embedding: list[float] | None,
        status: EmbeddingStatus = EmbeddingStatus.COMPLETED,
    ) -> None:
        async with self._session_factory() as session:
            await self._repository.update_embedding(session, note_id, embedding, status)

    async def search_similar(
        self,
        user_id: UUID,
        embedding: list[float],
        *,
        limit: int,
        threshold: float,
        tags: Sequence[str] | None = None,
    ) -> list[tuple[Note, float]]:
        async with self._session_factory() as session:
            return await self._repository.search_similar(
                session,
                user_id,
                embedding,
                limit=limit,
                threshold=threshold,
                tags=tags,
            )

    async def search_full_text(
        self,
        user_id: UUID,
        query: str,
        *,
        limit: int,
        tags: Sequence[str] | None = None,
    ) -> list[tuple[Note, float]]:
        async with self._session_factory() as session:
            return await self._repository.search_full_text(
                session, user_id, query, limit=limit, tags=tags
            )
