"""Text helpers shared by validators, the stitcher and the expansion step."""

import re
from typing import List, Optional, Tuple

HEADER_RE = re.compile(r"^(#{1,6})\s+(.+?)\s*#*\s*$", re.MULTILINE)
DESCRIPTION_HEADER_RE = re.compile(r"^#{1,3}\s*Description\b.*$|^\[DESCRIPTION\]\s*$", re.IGNORECASE | re.MULTILINE)
TAGS_HEADER_RE = re.compile(r"^#{1,3}\s*Tags\b.*$|^\[TAGS\]\s*$", re.IGNORECASE | re.MULTILINE)
TIMESTAMP_RE = re.compile(r"\b\d{1,2}:\d{2}\b")
TRAILING_MARKER_RE = re.compile(r"^(#{1,3}\s*(Description|Tags)\b|\[(DESCRIPTION|TAGS)\])", re.IGNORECASE | re.MULTILINE)


def word_count(text: str) -> int:
    """Whitespace-delimited word count."""
    return len(text.split())


def normalize_title(title: str) -> str:
    return re.sub(r"\s+", " ", title).strip().lower()


def headers(text: str) -> List[Tuple[int, str]]:
    """Markdown headers as (level, title) pairs."""
    return [(len(match.group(1)), match.group(2).strip()) for match in HEADER_RE.finditer(text)]


def section_body(text: str, header_re: re.Pattern) -> Optional[str]:
    """Body under the first header matching ``header_re``, up to the next header."""
    match = header_re.search(text)
    if not match:
        return None
    rest = text[match.end():]
    next_header = re.search(r"^(#{1,6}\s+\S|\[[A-Z]+\]\s*$)", rest, re.MULTILINE)
    body = rest[: next_header.start()] if next_header else rest
    return body.strip()


def trailing_sections_start(text: str) -> int:
    """Offset of the first Description/Tags marker, or ``len(text)``."""
    match = TRAILING_MARKER_RE.search(text)
    return match.start() if match else len(text)


def has_trailing_markers(text: str) -> bool:
    return TRAILING_MARKER_RE.search(text) is not None


def insert_before_trailing_sections(text: str, addition: str) -> str:
    """Insert ``addition`` ahead of any Description/Tags block, else append."""
    addition = addition.strip()
    if not addition:
        return text
    cut = trailing_sections_start(text)
    head, tail = text[:cut].rstrip(), text[cut:]
    merged = f"{head}\n\n{addition}" if head else addition
    return f"{merged}\n\n{tail}" if tail else merged


def significant_words(text: str, min_length: int = 4) -> List[str]:
    """Lowercased words longer than ``min_length - 1`` characters."""
    return [w.lower() for w in re.split(r"[:\-\s,.!?;\"'()]+", text) if len(w) >= min_length]
