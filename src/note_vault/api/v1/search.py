"""
Search API Router

Semantic search endpoint. Validation of query length, limit and
threshold happens here (SearchRequest); the orchestrator trusts it.
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from note_vault.api.deps import get_current_user_id, get_search_orchestrator
from note_vault.schemas.search import SearchRequest, SearchResponse
from note_vault.services.search import SearchOrchestrator

router = APIRouter()


@router.post("/", response_model=SearchResponse)
async def search_notes(
    search_req: SearchRequest,
    user_id: UUID = Depends(get_current_user_id),
    search: SearchOrchestrator = Depends(get_search_orchestrator),
):
    """
    Semantic search using vector similarity.

    Never fails because of the embedding model: if the query cannot be
    embedded, results come from full-text search instead.
    """
    return await search.semantic_search(
        user_id,
        search_req.query,
        limit=search_req.limit,
        threshold=search_req.threshold,
        tags=search_req.tags,
    )
