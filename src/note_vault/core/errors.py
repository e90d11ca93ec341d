"""
Error Types

Exception hierarchy shared by the embedding pipeline, the search
orchestrator and the note service.

Embedding failures are split by cause so callers can tell a
misconfigured provider (NotInitializedError) from a transient fault
(GenerationError) or a model returning the wrong shape
(DimensionMismatchError). The queue retries all three alike.
"""


class NoteVaultError(Exception):
    """Base class for all application errors."""


class EmbeddingError(NoteVaultError):
    """Any failure on the embedding path."""


class NotInitializedError(EmbeddingError):
    """The embedding provider was used before ``initialize()`` completed."""


class GenerationError(EmbeddingError):
    """The embedding model failed while encoding text."""


class DimensionMismatchError(EmbeddingError):
    """The embedding model returned a vector of unexpected length."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            f"Invalid embedding dimensions: expected {expected}, got {actual}"
        )
        self.expected = expected
        self.actual = actual


class QueueClosedError(NoteVaultError):
    """A job was submitted to an embedding queue that is not running."""


class NoteNotFoundError(NoteVaultError):
    """The note does not exist or belongs to another user."""

    def __init__(self, note_id: object) -> None:
        super().__init__(f"Note {note_id} not found")
        self.note_id = note_id
