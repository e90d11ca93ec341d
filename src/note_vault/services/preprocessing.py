"""
Text Preprocessing

Normalizes raw markdown note content before it is sent to the
embedding model. Pure and deterministic: no I/O, no state.
"""

from __future__ import annotations

import re
from typing import Final

MAX_EMBEDDING_TEXT_LENGTH: Final[int] = 2000

_MARKDOWN_MARKERS = re.compile(r"[#*_~`]")
_MARKDOWN_LINK = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_NEWLINE_RUN = re.compile(r"\n+")


def clean(content: str, max_length: int = MAX_EMBEDDING_TEXT_LENGTH) -> str:
    """
    Prepare note content for embedding.

    Steps, in order:
        1. Drop markdown markers (``#``, ``*``, ``_``, ``~``, backtick).
        2. Rewrite ``[label](url)`` links to ``label``.
        3. Collapse newline runs into a single space.
        4. Trim surrounding whitespace.
        5. Truncate to ``max_length`` characters.

    Truncation runs last so the limit applies to the cleaned text.

    Args:
        content: Raw note content.
        max_length: Upper bound on the returned length.

    Returns:
        Cleaned text, at most ``max_length`` characters.
    """
    cleaned = _MARKDOWN_MARKERS.sub("", content)
    cleaned = _MARKDOWN_LINK.sub(r"\1", cleaned)
    cleaned = _NEWLINE_RUN.sub(" ", cleaned)
    cleaned = cleaned.strip()
    return cleaned[:max_length]
