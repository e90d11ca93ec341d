"""
Health Schemas

Status snapshots reported by the embedding provider and queue,
and the combined payload served by GET /health.
"""

from datetime import datetime

from pydantic import BaseModel


class ProviderStatus(BaseModel):
    """Embedding provider readiness."""

    is_initialized: bool
    model_id: str
    dimensions: int


class QueueStatus(BaseModel):
    """Point-in-time view of the embedding queue."""

    queue_size: int
    processing_count: int
    max_concurrent: int


class EmbeddingHealth(BaseModel):
    provider: ProviderStatus
    queue: QueueStatus


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    database: str
    embedding: EmbeddingHealth
