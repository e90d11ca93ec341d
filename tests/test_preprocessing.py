"""
Text Preprocessing Unit Tests

Verifies the markdown cleanup applied to note content before embedding.
"""

from __future__ import annotations

import pytest

from note_vault.services.preprocessing import MAX_EMBEDDING_TEXT_LENGTH, clean


class TestMarkdownStripping:
    """Emphasis, heading, code and strike markers are removed."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("# Heading", "Heading"),
            ("**bold** and _italic_", "bold and italic"),
            ("~~struck~~", "struck"),
            ("`inline code`", "inline code"),
            ("```\nfenced\n```", "fenced"),
        ],
    )
    def test_markers_removed(self, raw: str, expected: str) -> None:
        assert clean(raw) == expected

    def test_link_keeps_label_only(self) -> None:
        assert clean("see [the docs](https://example.com/a-b) now") == "see the docs now"

    def test_link_with_underscored_url(self) -> None:
        assert clean("[guide](https://example.com/my_guide)") == "guide"


class TestWhitespace:
    """Newline runs collapse and the result is trimmed."""

    def test_newline_runs_collapse_to_single_space(self) -> None:
        assert clean("first\n\n\nsecond\nthird") == "first second third"

    def test_surrounding_whitespace_trimmed(self) -> None:
        assert clean("\n\n  hello  \n") == "hello"

    def test_empty_input(self) -> None:
        assert clean("") == ""


class TestTruncation:
    """Output is capped after cleanup."""

    def test_default_limit(self) -> None:
        assert MAX_EMBEDDING_TEXT_LENGTH == 2000
        assert len(clean("a" * 5000)) == 2000

    def test_limit_applies_to_cleaned_text(self) -> None:
        # 2000 visible characters wrapped in markers that inflate the raw length
        raw = "**" + "a" * 2000 + "**"

        assert clean(raw) == "a" * 2000

    def test_custom_limit(self) -> None:
        assert clean("hello world", max_length=5) == "hello"

    def test_deterministic(self) -> None:
        raw = "# Title\n\n*note* [x](y)"
        assert clean(raw) == clean(raw) == "Title note x"
