"""
Search Orchestrator

Semantic search over a user's notes with a lexical safety net.

The query is embedded and matched against stored note vectors by
cosine similarity. Any failure on that path (provider not initialized,
generation fault, dimension mismatch, or a failing similarity query)
switches the call to PostgreSQL full-text search instead of surfacing
an error; only a failure of the fallback itself reaches the caller.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Iterable, Sequence
from uuid import UUID

from note_vault.models.note import Note
from note_vault.repositories.store import NoteStore
from note_vault.schemas.search import (
    QueryMetadata,
    SearchNote,
    SearchResponse,
    SearchResult,
)
from note_vault.services.embeddings import EmbeddingProvider

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
DEFAULT_THRESHOLD = 0.7


class SearchOrchestrator:
    """
    Ranks notes against a natural-language query.

    Input validation (non-empty query, limit and threshold ranges) is
    the caller's job; the HTTP layer enforces it through SearchRequest.

    Usage::

        search = SearchOrchestrator(provider, store)
        response = await search.semantic_search(user_id, "python tips")
        for hit in response.results:
            print(hit.rank, hit.similarity, hit.note.title)
    """

    def __init__(self, provider: EmbeddingProvider, store: NoteStore) -> None:
        self._provider = provider
        self._store = store

    async def semantic_search(
        self,
        user_id: UUID,
        query: str,
        limit: int = DEFAULT_LIMIT,
        threshold: float = DEFAULT_THRESHOLD,
        tags: Sequence[str] | None = None,
    ) -> SearchResponse:
        """
        Rank the user's embedded notes by cosine similarity to ``query``.

        Args:
            user_id: Owner whose non-archived notes are searched.
            query: Natural language query text.
            limit: Maximum number of results.
            threshold: Minimum similarity for a note to be returned.
            tags: If given, only notes carrying every tag are returned.

        Returns:
            SearchResponse with results ranked 1..N by descending
            similarity. Falls back to ``full_text_search`` on any
            embedding-path failure.
        """
        started_at = time.perf_counter()

        try:
            query_embedding = await self._provider.generate_embedding(query)
            hits = await self._store.search_similar(
                user_id,
                query_embedding,
                limit=limit,
                threshold=threshold,
                tags=tags,
            )
            results = self._rank(hits, limit=limit, tags=tags, threshold=threshold)
        except Exception as e:
            logger.warning(
                "Semantic search failed, falling back to full-text search: %r", e
            )
            return await self.full_text_search(
                user_id, query, limit, tags, started_at=started_at
            )

        return self._respond(query, results, started_at)

    async def full_text_search(
        self,
        user_id: UUID,
        query: str,
        limit: int = DEFAULT_LIMIT,
        tags: Sequence[str] | None = None,
        *,
        started_at: float | None = None,
    ) -> SearchResponse:
        """
        Rank the user's notes by full-text relevance (``ts_rank``).

        The storage-level match predicate already excludes documents
        that do not match, so no threshold applies here. The returned
        ``similarity`` carries the lexical score, not a cosine value.
        """
        if started_at is None:
            started_at = time.perf_counter()

        hits = await self._store.search_full_text(user_id, query, limit=limit, tags=tags)
        results = self._rank(hits, limit=limit, tags=tags)
        return self._respond(query, results, started_at)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _rank(
        hits: Iterable[tuple[Note, float]],
        *,
        limit: int,
        tags: Sequence[str] | None = None,
        threshold: float | None = None,
    ) -> list[SearchResult]:
        """
        Filter, order and number raw store hits.

        Drops non-finite scores, scores below ``threshold`` (when given)
        and notes missing any required tag; sorts by score descending
        (stable for ties); keeps the first ``limit``; ranks from 1.
        """
        required = set(tags or ())
        kept: list[tuple[Note, float]] = []
        for note, score in hits:
            if not math.isfinite(score):
                logger.debug("Dropping note %s with non-finite score", note.id)
                continue
            if threshold is not None and score < threshold:
                continue
            if not required.issubset(note.tags or ()):
                continue
            kept.append((note, score))

        kept.sort(key=lambda hit: hit[1], reverse=True)

        return [
            SearchResult(
                note=SearchNote.model_validate(note),
                similarity=score,
                rank=rank,
            )
            for rank, (note, score) in enumerate(kept[:limit], start=1)
        ]

    @staticmethod
    def _respond(
        query: str,
        results: list[SearchResult],
        started_at: float,
    ) -> SearchResponse:
        elapsed_ms = round((time.perf_counter() - started_at) * 1000)
        return SearchResponse(
            results=results,
            query_metadata=QueryMetadata(
                query=query,
                processing_time_ms=elapsed_ms,
                total_results=len(results),
            ),
        )
