"""
Embedding Provider Unit Tests

Tests for SentenceTransformerProvider with the model loader mocked.
No model download - runs without network.
"""

import asyncio
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from note_vault.core.errors import (
    DimensionMismatchError,
    EmbeddingError,
    GenerationError,
    NotInitializedError,
)
from note_vault.services.embeddings import SentenceTransformerProvider


def _fake_model(dimensions: int = 384) -> MagicMock:
    """Model stub whose encode() returns a numpy vector like the real one."""
    model = MagicMock()
    model.encode.return_value = np.full(dimensions, 0.05, dtype=np.float32)
    return model


@pytest.mark.asyncio
async def test_generate_before_initialize_raises():
    provider = SentenceTransformerProvider()

    with pytest.raises(NotInitializedError):
        await provider.generate_embedding("hello")


@pytest.mark.asyncio
async def test_generate_embedding_returns_plain_floats():
    """
    Verify the provider encodes with normalization and converts the
    numpy output to a Python list of the configured length.
    """
    model = _fake_model()
    provider = SentenceTransformerProvider()

    with patch.object(SentenceTransformerProvider, "_load_model", return_value=model):
        await provider.initialize()

    vector = await provider.generate_embedding("Hello World")

    assert isinstance(vector, list)
    assert len(vector) == 384
    assert vector[0] == pytest.approx(0.05)
    model.encode.assert_called_once_with("Hello World", normalize_embeddings=True)


@pytest.mark.asyncio
async def test_initialize_is_idempotent_under_concurrency():
    provider = SentenceTransformerProvider()

    with patch.object(
        SentenceTransformerProvider, "_load_model", return_value=_fake_model()
    ) as load:
        await asyncio.gather(*(provider.initialize() for _ in range(5)))
        await provider.initialize()

    load.assert_called_once()
    assert provider.is_initialized


@pytest.mark.asyncio
async def test_wrong_dimensions_raise_mismatch():
    provider = SentenceTransformerProvider()

    with patch.object(
        SentenceTransformerProvider, "_load_model", return_value=_fake_model(10)
    ):
        await provider.initialize()

    with pytest.raises(DimensionMismatchError) as exc_info:
        await provider.generate_embedding("hello")

    assert exc_info.value.expected == 384
    assert exc_info.value.actual == 10


@pytest.mark.asyncio
async def test_model_fault_raises_generation_error():
    model = _fake_model()
    model.encode.side_effect = RuntimeError("CUDA out of memory")
    provider = SentenceTransformerProvider()

    with patch.object(SentenceTransformerProvider, "_load_model", return_value=model):
        await provider.initialize()

    with pytest.raises(GenerationError, match="CUDA out of memory"):
        await provider.generate_embedding("hello")


@pytest.mark.asyncio
async def test_load_failure_leaves_provider_uninitialized():
    provider = SentenceTransformerProvider(model_name="does-not-exist")

    with patch.object(
        SentenceTransformerProvider,
        "_load_model",
        side_effect=OSError("model not found"),
    ):
        with pytest.raises(EmbeddingError, match="does-not-exist"):
            await provider.initialize()

    assert not provider.is_initialized
    assert not provider.get_status().is_initialized


@pytest.mark.asyncio
async def test_status_and_reset():
    provider = SentenceTransformerProvider(model_name="test-model", dimensions=384)

    with patch.object(
        SentenceTransformerProvider, "_load_model", return_value=_fake_model()
    ):
        await provider.initialize()

    status = provider.get_status()
    assert status.is_initialized
    assert status.model_id == "test-model"
    assert status.dimensions == 384

    provider.reset()
    with pytest.raises(NotInitializedError):
        await provider.generate_embedding("hello")
