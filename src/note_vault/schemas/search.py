"""
Search Schemas

Pydantic models for the semantic search request/response cycle.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SearchRequest(BaseModel):
    """Request body for semantic search."""

    query: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="Natural language search query",
    )
    limit: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Maximum number of results to return",
    )
    threshold: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Minimum cosine similarity (ignored by the full-text fallback)",
    )
    tags: list[str] | None = Field(
        default=None,
        description="Only return notes carrying all of these tags",
    )


class SearchNote(BaseModel):
    """Note snapshot embedded in a search result."""

    id: UUID
    user_id: UUID
    title: str
    content: str
    tags: list[str]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SearchResult(BaseModel):
    """Single ranked search hit."""

    note: SearchNote
    similarity: float = Field(
        description="Cosine similarity, or the ts_rank score on the fallback path"
    )
    rank: int = Field(ge=1, description="1-based position in the result list")


class QueryMetadata(BaseModel):
    """Per-call bookkeeping returned alongside the results."""

    query: str
    processing_time_ms: int = Field(ge=0)
    total_results: int = Field(ge=0)


class SearchResponse(BaseModel):
    """Response for POST /search."""

    results: list[SearchResult] = Field(default_factory=list)
    query_metadata: QueryMetadata
