"""
Note Schemas

Pydantic models for Note API request/response validation.
Separates concerns: NoteCreate (input), NoteUpdate (partial), NoteRead (output).
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from note_vault.models.note import EmbeddingStatus


class NoteBase(BaseModel):
    """Base schema with shared validation rules for Note fields."""

    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Note title (1-200 chars)",
    )
    content: str = Field(
        ...,
        min_length=1,
        description="Note content (markdown)",
    )
    tags: list[str] = Field(default_factory=list)


class NoteCreate(NoteBase):
    """Request schema for POST /notes (inherits all NoteBase validations)."""

    pass


class NoteUpdate(BaseModel):
    """
    Request schema for PATCH /notes/{id}.

    All fields optional to support partial updates.
    Does not inherit NoteBase to avoid required field conflicts.
    """

    title: str | None = Field(None, min_length=1, max_length=200)
    content: str | None = Field(None, min_length=1)
    tags: list[str] | None = None
    is_archived: bool | None = None


class NoteRead(NoteBase):
    """Full Note representation including pipeline state and timestamps."""

    id: UUID
    user_id: UUID
    is_archived: bool
    embedding_status: EmbeddingStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)  # Enables ORM model conversion


class ReindexResponse(BaseModel):
    """Response for POST /notes/reindex."""

    message: str
    queued_count: int = Field(ge=0)
