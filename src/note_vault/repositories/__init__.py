"""Repositories package."""

from note_vault.repositories.base import BaseRepository
from note_vault.repositories.notes import NoteRepository, note_repository
from note_vault.repositories.store import NoteStore, SQLNoteStore

__all__ = [
    "BaseRepository",
    "NoteRepository",
    "NoteStore",
    "SQLNoteStore",
    "note_repository",
]
