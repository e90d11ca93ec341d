"""
Note Vault Backend Application

FastAPI application entrypoint with async lifespan management.
Builds the embedding provider, embedding queue and search orchestrator
once per process and tears them down in reverse order.

Start locally:
    uvicorn note_vault.main:app --host 0.0.0.0 --port 8000 --reload
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from sqlalchemy import text

from note_vault.api.v1.notes import router as notes_router
from note_vault.api.v1.search import router as search_router
from note_vault.core.config import settings
from note_vault.core.database import dispose_engine, get_engine, get_session_factory
from note_vault.core.errors import EmbeddingError
from note_vault.core.logging import setup_logging
from note_vault.repositories.store import SQLNoteStore
from note_vault.schemas.health import EmbeddingHealth, HealthResponse
from note_vault.services.embedding_queue import EmbeddingQueue
from note_vault.services.embeddings import SentenceTransformerProvider
from note_vault.services.search import SearchOrchestrator

# Initialize logging before any log statements
setup_logging()
logger = logging.getLogger(__name__)


async def check_db() -> bool:
    """Run ``SELECT 1`` against the pooled engine."""
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning("Database check failed: %s", e)
        return False


async def wait_for_db(retries: int = 10, delay: int = 1) -> bool:
    """
    Wait for PostgreSQL to become available.

    Useful in containerized environments where the database may start
    after the application.

    Returns:
        True if connection established, False if all retries exhausted.
    """
    for i in range(retries):
        if await check_db():
            logger.info("Postgres connection established")
            return True
        logger.warning("Waiting for Postgres (%d/%d)...", i + 1, retries)
        await asyncio.sleep(delay)
    return False


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
        1. Validate database connectivity (required).
        2. Load the embedding model. A failure is logged, not fatal:
           search degrades to full-text and queued jobs end ``failed``.
        3. Start the embedding queue.

    Shutdown:
        1. Drain the embedding queue (bounded by EMBEDDING_SHUTDOWN_TIMEOUT).
        2. Release the model and dispose the database engine.
    """
    logger.info("Starting %s...", settings.PROJECT_NAME)
    logger.info("Log Level: %s", settings.LOG_LEVEL)

    if not await wait_for_db():
        logger.critical("Could not connect to Postgres. Shutting down.")
        raise RuntimeError("Database connection failed")

    provider = SentenceTransformerProvider(
        model_name=settings.EMBEDDING_MODEL,
        dimensions=settings.EMBEDDING_DIMENSION,
        cache_dir=settings.EMBEDDING_CACHE_DIR,
    )
    try:
        await provider.initialize()
    except EmbeddingError:
        logger.error("Embedding model unavailable - search will use full-text only")

    store = SQLNoteStore(get_session_factory())
    queue = EmbeddingQueue(
        provider,
        store,
        max_concurrent=settings.EMBEDDING_MAX_CONCURRENT,
        max_attempts=settings.EMBEDDING_MAX_ATTEMPTS,
        retry_base_delay=settings.EMBEDDING_RETRY_BASE_DELAY,
    )
    queue.start()

    app.state.embedding_provider = provider
    app.state.embedding_queue = queue
    app.state.search = SearchOrchestrator(provider, store)

    yield  # Application runs here

    logger.info("Shutting down %s...", settings.PROJECT_NAME)
    await queue.shutdown(timeout=settings.EMBEDDING_SHUTDOWN_TIMEOUT)
    provider.reset()
    await dispose_engine()


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

app.include_router(notes_router, prefix="/api/v1/notes", tags=["Notes"])
app.include_router(search_router, prefix="/api/v1/search", tags=["Search"])


@app.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """
    Health check endpoint for load balancers and orchestrators.

    Reports live database reachability plus embedding provider and
    queue status.
    """
    db_ok = await check_db()
    return HealthResponse(
        status="healthy" if db_ok else "unhealthy",
        timestamp=datetime.now(UTC),
        database="connected" if db_ok else "disconnected",
        embedding=EmbeddingHealth(
            provider=request.app.state.embedding_provider.get_status(),
            queue=request.app.state.embedding_queue.get_status(),
        ),
    )
