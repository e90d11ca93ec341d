"""
API Dependencies

FastAPI dependencies resolving the long-lived services built by the
application lifespan (stored on ``app.state``) and the caller identity.
"""

from uuid import UUID

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from note_vault.core.database import get_db
from note_vault.services.embedding_queue import EmbeddingQueue
from note_vault.services.notes import NoteService
from note_vault.services.search import SearchOrchestrator


def get_current_user_id(
    x_user_id: UUID = Header(..., description="Authenticated user ID"),
) -> UUID:
    """
    Caller identity.

    Authentication happens upstream (gateway); this service trusts the
    forwarded ``X-User-Id`` header.
    """
    return x_user_id


def get_embedding_queue(request: Request) -> EmbeddingQueue:
    return request.app.state.embedding_queue


def get_search_orchestrator(request: Request) -> SearchOrchestrator:
    return request.app.state.search


def get_note_service(
    db: AsyncSession = Depends(get_db),
    queue: EmbeddingQueue = Depends(get_embedding_queue),
) -> NoteService:
    return NoteService(db, queue)
