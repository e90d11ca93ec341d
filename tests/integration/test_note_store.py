"""
Note Store Integration Tests

Exercises SQLNoteStore against a real PostgreSQL + pgvector instance:
scoping, threshold and tag filters of the similarity query, the
full-text fallback query, and embedding writes.

Skipped automatically when the database is unreachable.
"""

from __future__ import annotations

import math
from collections.abc import AsyncGenerator
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from sqlalchemy import delete, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from note_vault.core.config import settings
from note_vault.models import Base, EmbeddingStatus, Note
from note_vault.repositories.notes import NoteRepository
from note_vault.repositories.store import SQLNoteStore

pytestmark = pytest.mark.integration


def _vector(similarity: float) -> list[float]:
    """384-dim unit vector with the given cosine similarity to e0."""
    return [similarity, math.sqrt(1.0 - similarity**2)] + [0.0] * 382


QUERY_VECTOR = [1.0] + [0.0] * 383


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory on a schema-initialized database, or skip."""
    engine = create_async_engine(settings.DATABASE_URL)
    try:
        async with engine.begin() as conn:
            await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
            await conn.run_sync(Base.metadata.create_all)
    except Exception as e:
        await engine.dispose()
        pytest.skip(f"PostgreSQL unavailable: {e}")

    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def user_id(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[UUID, None]:
    """Fresh owner; their rows are deleted afterwards."""
    owner = uuid4()
    yield owner
    async with session_factory() as session:
        await session.execute(delete(Note).where(Note.user_id == owner))
        await session.commit()


@pytest.fixture
def store(session_factory: async_sessionmaker[AsyncSession]) -> SQLNoteStore:
    return SQLNoteStore(session_factory)


async def _insert(
    session_factory: async_sessionmaker[AsyncSession],
    user_id: UUID,
    content: str,
    *,
    similarity: float | None = None,
    tags: list[str] | None = None,
    is_archived: bool = False,
) -> Note:
    async with session_factory() as session:
        return await NoteRepository().create(
            session,
            {
                "user_id": user_id,
                "title": content[:20],
                "content": content,
                "tags": tags or [],
                "is_archived": is_archived,
                "embedding": _vector(similarity) if similarity is not None else None,
                "embedding_status": (
                    EmbeddingStatus.COMPLETED
                    if similarity is not None
                    else EmbeddingStatus.PENDING
                ),
            },
        )


# ---------------------------------------------------------------------------
# Similarity search
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_similarity_search_filters_and_orders(store, session_factory, user_id):
    high = await _insert(session_factory, user_id, "high match", similarity=0.95)
    mid = await _insert(session_factory, user_id, "mid match", similarity=0.85)
    await _insert(session_factory, user_id, "low match", similarity=0.3)
    await _insert(session_factory, user_id, "archived", similarity=0.99, is_archived=True)
    await _insert(session_factory, user_id, "not embedded yet")

    hits = await store.search_similar(user_id, QUERY_VECTOR, limit=10, threshold=0.8)

    assert [note.id for note, _ in hits] == [high.id, mid.id]
    assert hits[0][1] == pytest.approx(0.95, abs=1e-4)
    assert all(score >= 0.8 for _, score in hits)


@pytest.mark.asyncio
async def test_similarity_search_tag_containment(store, session_factory, user_id):
    both = await _insert(
        session_factory, user_id, "tagged both", similarity=0.9, tags=["docker", "kubernetes"]
    )
    await _insert(session_factory, user_id, "tagged one", similarity=0.95, tags=["docker"])

    hits = await store.search_similar(
        user_id, QUERY_VECTOR, limit=10, threshold=0.5, tags=["docker", "kubernetes"]
    )

    assert [note.id for note, _ in hits] == [both.id]


# ---------------------------------------------------------------------------
# Full-text search
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_full_text_search_matches_and_ranks(store, session_factory, user_id):
    await _insert(session_factory, user_id, "Kubernetes runs containers")
    await _insert(session_factory, user_id, "Grocery list: milk, eggs")

    hits = await store.search_full_text(user_id, "kubernetes", limit=10)

    assert len(hits) == 1
    assert hits[0][0].content == "Kubernetes runs containers"
    assert hits[0][1] > 0


# ---------------------------------------------------------------------------
# Embedding writes
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_embedding_writes_round_trip(store, session_factory, user_id):
    note = await _insert(session_factory, user_id, "fresh note")

    await store.update_embedding_status(note.id, EmbeddingStatus.PROCESSING)
    assert (await store.find_by_id(note.id)).embedding_status == EmbeddingStatus.PROCESSING

    await store.update_embedding(note.id, _vector(0.5))
    stored = await store.find_by_id(note.id)
    assert stored.embedding_status == EmbeddingStatus.COMPLETED
    assert len(stored.embedding) == 384

    await store.update_embedding(note.id, None, EmbeddingStatus.FAILED)
    stored = await store.find_by_id(note.id)
    assert stored.embedding_status == EmbeddingStatus.FAILED
    assert stored.embedding is None


@pytest.mark.asyncio
async def test_mark_user_notes_pending(session_factory, user_id):
    first = await _insert(session_factory, user_id, "one", similarity=0.9)
    second = await _insert(session_factory, user_id, "two", similarity=0.9)

    async with session_factory() as session:
        ids = await NoteRepository().mark_user_notes_pending(session, user_id)

    assert set(ids) == {first.id, second.id}


@pytest.mark.asyncio
async def test_hnsw_index_is_created(session_factory):
    async with session_factory() as session:
        indexdef = await session.scalar(
            text(
                "SELECT indexdef FROM pg_indexes "
                "WHERE tablename = 'notes' AND indexname = 'ix_notes_embedding_hnsw'"
            )
        )

    assert indexdef is not None
    assert "hnsw" in indexdef
    assert "vector_cosine_ops" in indexdef
