"""Outline conformance check for generated chunks."""

import re
from typing import Dict, List

from pydantic import BaseModel, Field

from ..models import OutlineChunk, OutlineSection
from .text import significant_words

COMMON_WORDS = {
    "about", "after", "before", "during", "through", "under", "over", "between",
    "their", "which", "where", "when", "while", "these", "those", "could",
    "would", "should", "might", "must",
}


class OutlineCheckResult(BaseModel):
    """Outcome of comparing a chunk with its outline entry."""

    passed: bool = True
    severity: str = Field("pass", description="pass, warning or critical")
    issues: List[str] = Field(default_factory=list)
    coverage: Dict[str, float] = Field(default_factory=dict, description="Key-term match per section")

    @property
    def critical(self) -> bool:
        return self.severity == "critical"


def extract_key_terms(section: OutlineSection) -> List[str]:
    """Distinctive words from a section's title, content and key points."""
    def keep(words: List[str]) -> List[str]:
        return [w for w in words if len(w) > 4 and w not in COMMON_WORDS]

    terms = keep(significant_words(section.title))
    terms += keep(significant_words(section.content))[:5]
    for point in section.key_points:
        terms += keep(significant_words(point))[:2]
    return list(dict.fromkeys(terms))


def section_present(text: str, title: str) -> bool:
    """Exact title, a ``###`` header, or every significant title word present."""
    lowered = text.lower()
    if title.lower() in lowered:
        return True
    if re.search(rf"^#+\s*{re.escape(title)}", text, re.IGNORECASE | re.MULTILINE):
        return True
    words = significant_words(title)
    return bool(words) and all(word in lowered for word in words)


def check_against_outline(text: str, outline_chunk: OutlineChunk) -> OutlineCheckResult:
    """
    Compare a chunk with its outline entry.

    A required section that is entirely absent is critical; a section whose key
    terms are less than half covered is a warning.
    """
    result = OutlineCheckResult()
    lowered = text.lower()

    for section in outline_chunk.sections:
        terms = extract_key_terms(section)
        found = [term for term in terms if term in lowered]
        present = section_present(text, section.title)
        coverage = 100.0 * len(found) / len(terms) if terms else (100.0 if present else 0.0)
        result.coverage[section.title] = round(coverage, 1)

        if not present:
            result.issues.append(f"Required section \"{section.title}\" not found")
            result.passed = False
            result.severity = "critical"
        elif coverage < 50:
            result.issues.append(f"Section \"{section.title}\" has weak coverage ({coverage:.0f}%)")
            if result.severity != "critical":
                result.severity = "warning"

    return result
