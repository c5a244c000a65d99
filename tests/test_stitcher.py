from __future__ import annotations

from longscript.generation import format_for_tts, remove_duplicate_sections, stitch_chunks
from longscript.models import ChunkResult
from longscript.validation import word_count

from .conftest import words


def chunk(index: int, text: str, accepted: bool = True) -> ChunkResult:
    return ChunkResult(index=index, text=text, word_count=word_count(text), min_words=1, accepted=accepted)


def test_stitching_preserves_word_count():
    chunks = [
        chunk(0, "### Opening\n" + words(120)),
        chunk(1, "### Middle\n" + words(90)),
        chunk(2, "### Ending\n" + words(60) + "\n\n## Description\nAll of it.\n\n## Tags\na, b"),
    ]
    result = stitch_chunks(chunks)
    assert result.word_count == sum(c.word_count for c in chunks)
    assert result.removed_sections == []
    assert result.warnings == []


def test_stitching_orders_by_index():
    result = stitch_chunks([chunk(1, "second"), chunk(0, "first")])
    assert result.text == "first\n\nsecond"


def test_duplicate_sections_removed():
    chunks = [
        chunk(0, "### Opening\n" + words(50, "alpha")),
        chunk(1, "### Opening\n" + words(40, "beta") + "\n### New Ground\n" + words(30, "gamma")),
    ]
    result = stitch_chunks(chunks)
    assert result.removed_sections == ["Opening"]
    assert result.removed_words == 42
    assert "beta" not in result.text
    assert "gamma" in result.text
    assert result.raw_length > len(result.text)


def test_early_trailing_markers_reported_not_removed():
    chunks = [chunk(0, words(20) + "\n## Tags\nx, y"), chunk(1, words(20))]
    result = stitch_chunks(chunks)
    assert len(result.warnings) == 1
    assert "## Tags" in result.text


def test_remove_duplicate_sections_is_noop_without_repeats():
    text = "## One\nabc\n## Two\ndef"
    assert remove_duplicate_sections(text).text == text


def test_tts_format_strips_markdown_and_trailing_sections():
    text = "### Opening\nThe **first** line.\n\n---\n\nMore narration.\n\n## Description\nAbout.\n\n## Tags\na, b"
    assert format_for_tts(text) == "The first line.\n\nMore narration."
