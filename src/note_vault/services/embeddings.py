"""
Embedding Provider

Local embedding generation using sentence-transformers.
Default model: paraphrase-multilingual-MiniLM-L12-v2 (384 dimensions).

Design choices:
    - One provider instance per process, constructed by the application
      lifespan and injected into the queue and the search orchestrator.
    - Explicit initialization: the model is loaded by ``initialize()``,
      never implicitly on first use. Calls made before that fail with
      NotInitializedError.
    - asyncio.to_thread: model loading and inference are CPU-bound and
      must not block the event loop.

Pre-download the model for production:
    python -c "from sentence_transformers import SentenceTransformer; \\
               SentenceTransformer('paraphrase-multilingual-MiniLM-L12-v2')"
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

from note_vault.core.errors import (
    DimensionMismatchError,
    EmbeddingError,
    GenerationError,
    NotInitializedError,
)
from note_vault.models.note import EMBEDDING_DIMENSION
from note_vault.schemas.health import ProviderStatus

logger = logging.getLogger(__name__)

DEFAULT_MODEL_NAME: str = "paraphrase-multilingual-MiniLM-L12-v2"


class EmbeddingProvider(Protocol):
    """Contract the queue and the search orchestrator depend on."""

    async def initialize(self) -> None: ...

    async def generate_embedding(self, text: str) -> list[float]: ...

    def get_status(self) -> ProviderStatus: ...


class SentenceTransformerProvider:
    """
    Async embedding provider backed by a local sentence-transformers model.

    Usage::

        provider = SentenceTransformerProvider()
        await provider.initialize()
        vector = await provider.generate_embedding("hello world")
        assert len(vector) == 384
    """

    def __init__(
        self,
        model_name: str = DEFAULT_MODEL_NAME,
        dimensions: int = EMBEDDING_DIMENSION,
        cache_dir: str | None = None,
    ) -> None:
        self.model_name = model_name
        self.dimensions = dimensions
        self.cache_dir = cache_dir
        self._model: Any = None
        self._init_lock = asyncio.Lock()

    @property
    def is_initialized(self) -> bool:
        return self._model is not None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """
        Load the model. Idempotent; concurrent callers share one load.

        Raises:
            EmbeddingError: If the model cannot be downloaded or loaded.
        """
        if self._model is not None:
            return

        async with self._init_lock:
            if self._model is not None:
                return

            logger.info("Loading embedding model: %s ...", self.model_name)
            try:
                self._model = await asyncio.to_thread(self._load_model)
            except Exception as e:
                logger.exception("Failed to load embedding model %s", self.model_name)
                raise EmbeddingError(
                    f"Failed to load embedding model '{self.model_name}'"
                ) from e
            logger.info("Model loaded (dim=%d)", self.dimensions)

    async def generate_embedding(self, text: str) -> list[float]:
        """
        Generate a single normalized embedding.

        Args:
            text: Input text. Callers are responsible for preprocessing.

        Returns:
            Vector of exactly ``dimensions`` floats.

        Raises:
            NotInitializedError: If ``initialize()`` has not completed.
            GenerationError: If the model fails during inference.
            DimensionMismatchError: If the model output has the wrong length.
        """
        if self._model is None:
            raise NotInitializedError("Embedding provider not initialized")

        logger.debug("Generating embedding for text: %.50s...", text)
        try:
            vector = await asyncio.to_thread(self._encode_sync, text)
        except Exception as e:
            raise GenerationError(f"Embedding generation failed: {e}") from e

        if len(vector) != self.dimensions:
            raise DimensionMismatchError(self.dimensions, len(vector))
        return vector

    def get_status(self) -> ProviderStatus:
        return ProviderStatus(
            is_initialized=self.is_initialized,
            model_id=self.model_name,
            dimensions=self.dimensions,
        )

    def reset(self) -> None:
        """
        Release the model from memory.

        The provider must be initialized again before further use.
        """
        self._model = None
        logger.info("Embedding model released")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _load_model(self) -> Any:
        """
        Construct the sentence-transformers model (blocking).

        The import is deferred so that ``sentence_transformers`` is not
        required at module-import time (keeps test collection fast).
        """
        from sentence_transformers import SentenceTransformer

        return SentenceTransformer(self.model_name, cache_folder=self.cache_dir)

    def _encode_sync(self, text: str) -> list[float]:
        """
        Synchronous single-text encoding.

        Always call via ``asyncio.to_thread`` — this is CPU-bound
        and will block the calling thread for the duration of inference.
        """
        embedding = self._model.encode(text, normalize_embeddings=True)
        # numpy ndarray → native Python list for pgvector compatibility
        result: list[float] = embedding.tolist()
        return result
