"""Models package - re-exports all models for convenient imports."""

from note_vault.models.base import Base, TimestampMixin
from note_vault.models.note import EMBEDDING_DIMENSION, EmbeddingStatus, Note

__all__ = [
    "Base",
    "TimestampMixin",
    "EMBEDDING_DIMENSION",
    "EmbeddingStatus",
    "Note",
]
