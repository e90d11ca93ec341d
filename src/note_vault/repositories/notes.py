"""
Note Repository

Data access layer for Note entities with semantic search capabilities.
Extends BaseRepository with pgvector similarity and PostgreSQL
full-text query methods.
"""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import Select, literal_column, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import func

from note_vault.models import EmbeddingStatus, Note
from note_vault.repositories.base import BaseRepository

# Text search configuration shared by to_tsvector and plainto_tsquery
_TS_CONFIG = literal_column("'english'::regconfig")


class NoteRepository(BaseRepository[Note]):
    """
    Repository for Note entities with vector search support.

    Inherits standard CRUD from BaseRepository and adds:
        - get_for_user: ownership-checked lookup
        - update_embedding / update_embedding_status: targeted writes
          for the embedding queue
        - mark_user_notes_pending: bulk reset for reindexing
        - search_similar: semantic search via pgvector cosine distance
        - search_full_text: lexical search via ts_rank

    Both search methods are scoped to one user's non-archived notes and
    return ``(note, score)`` tuples ordered best first.
    """

    def __init__(self) -> None:
        super().__init__(Note)

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    async def get_for_user(
        self,
        session: AsyncSession,
        user_id: UUID,
        note_id: UUID,
    ) -> Note | None:
        """Get a note only if it belongs to ``user_id``."""
        stmt = select(Note).where(Note.id == note_id, Note.user_id == user_id)
        result = await session.execute(stmt)
        return result.scalars().first()

    async def search_similar(
        self,
        session: AsyncSession,
        user_id: UUID,
        embedding: list[float],
        *,
        limit: int,
        threshold: float,
        tags: Sequence[str] | None = None,
    ) -> list[tuple[Note, float]]:
        """
        Search notes by cosine similarity against a query vector.

        Uses pgvector's ``cosine_distance`` operator, leveraging the
        HNSW index on ``notes.embedding``. Distance is converted to a
        similarity score: ``score = 1 - distance``.

        Args:
            session: Database session.
            user_id: Owner whose notes are searched.
            embedding: Query vector (384 dimensions).
            limit: Maximum number of results.
            threshold: Minimum similarity to include.
            tags: If given, notes must carry every one of these tags.

        Returns:
            List of (Note, similarity) tuples, highest similarity first.
        """
        distance = Note.embedding.cosine_distance(embedding)
        similarity = (1 - distance).label("similarity")

        stmt = (
            select(Note, similarity)
            .where(
                Note.user_id == user_id,
                Note.is_archived.is_(False),
                Note.embedding_status == EmbeddingStatus.COMPLETED,
                Note.embedding.isnot(None),
                (1 - distance) >= threshold,
            )
            .order_by(distance)
            .limit(limit)
        )
        stmt = self._filter_tags(stmt, tags)

        result = await session.execute(stmt)
        return [(row[0], float(row[1])) for row in result.all()]

    async def search_full_text(
        self,
        session: AsyncSession,
        user_id: UUID,
        query: str,
        *,
        limit: int,
        tags: Sequence[str] | None = None,
    ) -> list[tuple[Note, float]]:
        """
        Search notes with PostgreSQL full-text search.

        Only notes whose content matches ``plainto_tsquery(query)`` are
        returned; they are ranked by ``ts_rank``. Embedding status is
        irrelevant here, so notes still pending are searchable.

        Returns:
            List of (Note, ts_rank) tuples, highest rank first.
        """
        document = func.to_tsvector(_TS_CONFIG, Note.content)
        ts_query = func.plainto_tsquery(_TS_CONFIG, query)
        score = func.ts_rank(document, ts_query).label("similarity")

        stmt = (
            select(Note, score)
            .where(
                Note.user_id == user_id,
                Note.is_archived.is_(False),
                document.op("@@")(ts_query),
            )
            .order_by(score.desc())
            .limit(limit)
        )
        stmt = self._filter_tags(stmt, tags)

        result = await session.execute(stmt)
        return [(row[0], float(row[1])) for row in result.all()]

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    async def update_embedding_status(
        self,
        session: AsyncSession,
        note_id: UUID,
        status: EmbeddingStatus,
    ) -> None:
        """Update only the embedding status of a note."""
        await self.update_by_id(session, note_id, {"embedding_status": status})

    async def update_embedding(
        self,
        session: AsyncSession,
        note_id: UUID,
        embedding: list[float] | None,
        status: EmbeddingStatus = EmbeddingStatus.COMPLETED,
    ) -> None:
        """
        Write the embedding vector and status together.

        Used by the embedding queue. ``embedding=None`` clears the
        vector (terminal failure).
        """
        await self.update_by_id(
            session,
            note_id,
            {"embedding": embedding, "embedding_status": status},
        )

    async def mark_user_notes_pending(
        self,
        session: AsyncSession,
        user_id: UUID,
    ) -> list[UUID]:
        """
        Reset every note of a user to ``pending``.

        Returns:
            IDs of the reset notes, in creation order.
        """
        stmt = (
            update(Note)
            .where(Note.user_id == user_id)
            .values(embedding_status=EmbeddingStatus.PENDING)
            .returning(Note.id, Note.created_at)
        )
        result = await session.execute(stmt)
        rows = sorted(result.all(), key=lambda row: row[1])
        await session.commit()
        return [row[0] for row in rows]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _filter_tags(stmt: Select, tags: Sequence[str] | None) -> Select:
        """Contains-all tag filter (``tags @> ARRAY[...]``)."""
        if tags:
            stmt = stmt.where(Note.tags.contains(list(tags)))
        return stmt


# Module-level instance for convenience imports
note_repository = NoteRepository()
