"""
Note Model Unit Tests

Checks the table definition that similarity search relies on.
No database required.
"""

from note_vault.models import EMBEDDING_DIMENSION, Note


def test_embedding_has_cosine_hnsw_index():
    indexes = {index.name: index for index in Note.__table__.indexes}

    index = indexes["ix_notes_embedding_hnsw"]
    assert [column.name for column in index.columns] == ["embedding"]
    assert index.dialect_options["postgresql"]["using"] == "hnsw"
    assert index.dialect_options["postgresql"]["ops"] == {
        "embedding": "vector_cosine_ops"
    }


def test_embedding_column_dimension():
    assert Note.__table__.c.embedding.type.dim == EMBEDDING_DIMENSION
