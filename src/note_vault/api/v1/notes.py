"""
Notes API Router

Write endpoints that feed the embedding pipeline. Embedding generation
is queued, never awaited: responses return as soon as the note is
persisted, with ``embedding_status = pending``.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from note_vault.api.deps import get_current_user_id, get_note_service
from note_vault.core.errors import NoteNotFoundError
from note_vault.schemas.notes import NoteCreate, NoteRead, NoteUpdate, ReindexResponse
from note_vault.services.notes import NoteService

router = APIRouter()


@router.post("/", response_model=NoteRead, status_code=status.HTTP_201_CREATED)
async def create_note(
    note: NoteCreate,
    user_id: UUID = Depends(get_current_user_id),
    service: NoteService = Depends(get_note_service),
):
    """
    Create a new note.

    The note is immediately readable but won't appear in semantic
    search until its embedding completes.
    """
    return await service.create(user_id, note)


@router.post("/reindex", response_model=ReindexResponse)
async def reindex_notes(
    user_id: UUID = Depends(get_current_user_id),
    service: NoteService = Depends(get_note_service),
):
    """Queue every note of the caller for embedding regeneration."""
    queued = await service.reindex(user_id)
    return ReindexResponse(message="Re-indexing started", queued_count=queued)


@router.patch("/{note_id}", response_model=NoteRead)
async def update_note(
    note_id: UUID,
    note: NoteUpdate,
    user_id: UUID = Depends(get_current_user_id),
    service: NoteService = Depends(get_note_service),
):
    """Partially update a note; a content change re-queues its embedding."""
    try:
        return await service.update(user_id, note_id, note)
    except NoteNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Note not found"
        ) from e
