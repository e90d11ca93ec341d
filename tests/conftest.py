"""
Pytest Configuration and Fixtures

Shared fixtures for the offline test suite. Integration tests that need
a live PostgreSQL + pgvector instance skip themselves when it is absent.
"""

import os

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Test environment defaults — MUST be before any note_vault imports.
#
# 1. Load .env first so that Docker-matching credentials are available.
# 2. setdefault fills in anything still missing (CI runners, fresh clones
#    without a .env file) so that pydantic Settings validation doesn't crash.
# ---------------------------------------------------------------------------
load_dotenv()  # .env → os.environ (no-op if file is missing)

_test_env = {
    "POSTGRES_USER": "vault",
    "POSTGRES_PASSWORD": "vault_password",
    "POSTGRES_HOST": "localhost",
    "POSTGRES_PORT": "5432",
    "POSTGRES_DB": "vault_db",
}
for _key, _value in _test_env.items():
    os.environ.setdefault(_key, _value)

# ---------------------------------------------------------------------------
# Imports (safe now that env vars are set)
# ---------------------------------------------------------------------------
from uuid import UUID, uuid4  # noqa: E402

import pytest  # noqa: E402
from fakes import FakeEmbeddingProvider, InMemoryNoteStore  # noqa: E402


@pytest.fixture
def user_id() -> UUID:
    """Owner of the notes created in a test."""
    return uuid4()


@pytest.fixture
def store() -> InMemoryNoteStore:
    """Fresh, empty in-memory note store."""
    return InMemoryNoteStore()


@pytest.fixture
def provider() -> FakeEmbeddingProvider:
    """Initialized provider that always succeeds instantly."""
    return FakeEmbeddingProvider()
