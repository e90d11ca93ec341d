"""
Note Model

Core entity for storing notes with vector embeddings for semantic search.
Uses pgvector extension for efficient similarity queries.
"""

from __future__ import annotations

import uuid
from enum import StrEnum

from pgvector.sqlalchemy import Vector
from sqlalchemy import Boolean, Enum, Index, String, Text, Uuid
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from note_vault.models.base import Base, TimestampMixin

# Output size of the MiniLM family of sentence-transformers models
EMBEDDING_DIMENSION: int = 384


class EmbeddingStatus(StrEnum):
    """
    Lifecycle of a note's embedding.

    ``completed`` implies a vector of EMBEDDING_DIMENSION floats;
    ``failed`` implies no vector.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class Note(Base, TimestampMixin):
    """
    Note entity with vector embedding support.

    Attributes:
        id: UUID primary key (generated Python-side).
        user_id: Owner; every query is scoped by it.
        title: Note title (max 200 chars).
        content: Full note content (markdown), no length limit.
        tags: Free-form labels, matched exactly and case-sensitively.
        is_archived: Soft delete flag; archived notes are never searched.
        embedding: 384-dim vector (nullable until processed).
        embedding_status: Where the note is in the embedding pipeline.
    """

    __tablename__ = "notes"
    __table_args__ = (
        # Cosine-distance ANN index used by similarity search
        Index(
            "ix_notes_embedding_hnsw",
            "embedding",
            postgresql_using="hnsw",
            postgresql_ops={"embedding": "vector_cosine_ops"},
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    tags: Mapped[list[str]] = mapped_column(
        ARRAY(Text), nullable=False, default=list, server_default="{}"
    )
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Nullable: embedding is generated async after note creation
    embedding: Mapped[list[float] | None] = mapped_column(
        Vector(EMBEDDING_DIMENSION), nullable=True
    )
    embedding_status: Mapped[EmbeddingStatus] = mapped_column(
        Enum(
            EmbeddingStatus,
            name="embedding_status",
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
        default=EmbeddingStatus.PENDING,
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id!s:.8}, title='{self.title[:20]}...')>"
