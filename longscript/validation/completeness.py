"""Completeness gate: the final blocking checks on a whole script."""

import re
from fractions import Fraction
from typing import List, Optional

from rich.console import Console

from ..config.models import GenerationPolicy
from ..models import GateCheck, ScriptDraft
from .text import DESCRIPTION_HEADER_RE, TAGS_HEADER_RE, TIMESTAMP_RE, section_body, word_count

console = Console()

PLACEHOLDER_PATTERNS = [
    re.compile(p, re.IGNORECASE | re.MULTILINE)
    for p in (
        r"\[continue[^\]]*\]",
        r"\[rest of[^\]]*\]",
        r"\[add more[^\]]*\]",
        r"\[[^\]\n]*remaining[^\]\n]*\]",
        r"\[insert[^\]]*\]",
        r"\[include[^\]]*here\]",
        r"\.\.\.\]\s*$",
        r"etc\.\]\s*$",
        r"to be continued",
        r"\[\d+\s*-\s*\d+[^\]]*tags\]",
        r"\[2-3 options\]",
        r"I['’]ll continue in (the|my) next (response|message|part|reply)",
        r"continued in (the|my) next (response|message|reply)",
        r"\(continued in next part\)",
        r"due to (length|space|response) (limits|limitations|constraints)",
    )
]


def find_placeholders(text: str) -> List[str]:
    """All placeholder/continuation-artifact matches in ``text``."""
    matches = []
    for pattern in PLACEHOLDER_PATTERNS:
        matches.extend(match.group(0) for match in pattern.finditer(text))
    return matches


def parse_tags(body: str) -> List[str]:
    """Comma-separated tags, or hashtags when the line has no commas."""
    flat = " ".join(line.strip() for line in body.splitlines() if line.strip())
    if "," not in flat:
        hashtags = re.findall(r"#(\w+)", flat)
        if hashtags:
            return hashtags
    return [tag.strip().lstrip("#").strip() for tag in flat.split(",")]


class CompletenessGate:
    """
    Run the final checks on a stitched or single-shot script.

    The gate is a pure function of its inputs, so re-running it on the same draft
    yields the same verdict.
    """

    def __init__(self, policy: Optional[GenerationPolicy] = None) -> None:
        self.policy = policy or GenerationPolicy()

    def evaluate(
        self,
        text: str,
        expected_words: int,
        description_optional: bool = False,
        raw_length: Optional[int] = None,
    ) -> ScriptDraft:
        """
        Evaluate a script.

        Args:
            text: Final script text
            expected_words: ``total_minutes * words_per_minute``
            description_optional: Research met the high-quality bar
            raw_length: Character length of the chunks before deduplication

        Returns:
            ScriptDraft with every check recorded and the overall verdict
        """
        words = word_count(text)
        raw = raw_length if raw_length is not None else len(text)
        checks = [
            self._check_length(words, expected_words, raw, len(text)),
            self._check_tags(text),
            self._check_description(text, description_optional),
        ]
        placeholders = find_placeholders(text)
        checks.append(GateCheck(
            name="placeholders",
            passed=not placeholders,
            detail=f"Continuation or placeholder text found: {placeholders[0]!r}" if placeholders else "",
        ))

        tags_body = section_body(text, TAGS_HEADER_RE)
        return ScriptDraft(
            text=text,
            word_count=words,
            expected_words=expected_words,
            raw_length=raw,
            has_description=DESCRIPTION_HEADER_RE.search(text) is not None,
            has_timestamps=TIMESTAMP_RE.search(text) is not None,
            tags=self._valid_tags(tags_body) if tags_body else [],
            placeholder_matches=placeholders,
            checks=checks,
            passed=all(check.passed for check in checks),
        )

    def length_threshold(self, raw_length: int, stitched_length: int) -> float:
        """Base ratio, or the dedup grace ratio when deduplication shrank the text."""
        if raw_length > stitched_length * self.policy.dedup_grace_trigger:
            return self.policy.dedup_grace_ratio
        return self.policy.completeness_ratio

    def _check_length(self, words: int, expected: int, raw_length: int, stitched_length: int) -> GateCheck:
        threshold = self.length_threshold(raw_length, stitched_length)
        if expected <= 0:
            return GateCheck(name="word_count", passed=True)
        passed = Fraction(words, expected) >= Fraction(str(threshold))
        return GateCheck(
            name="word_count",
            passed=passed,
            detail="" if passed else (
                f"Script too short: {words}/{expected} words "
                f"({100.0 * words / expected:.1f}% < {threshold * 100:.0f}%)"
            ),
        )

    def _valid_tags(self, body: str) -> List[str]:
        return [tag for tag in parse_tags(body) if len(tag) >= self.policy.min_tag_length]

    def _check_tags(self, text: str) -> GateCheck:
        body = section_body(text, TAGS_HEADER_RE)
        if body is None:
            return GateCheck(name="tags", passed=False, detail="Missing Tags section")
        if "[" in body or "..." in body or "…" in body:
            return GateCheck(name="tags", passed=False, detail="Tags section contains placeholder text")
        tags = self._valid_tags(body)
        if len(tags) < self.policy.min_tags:
            return GateCheck(
                name="tags",
                passed=False,
                detail=f"Tags section has {len(tags)} valid tags (need {self.policy.min_tags})",
            )
        return GateCheck(name="tags", passed=True)

    def _check_description(self, text: str, optional: bool) -> GateCheck:
        body = section_body(text, DESCRIPTION_HEADER_RE)
        if body:
            return GateCheck(name="description", passed=True)
        if optional:
            return GateCheck(name="description", passed=True, detail="Missing, tolerated for high-quality research")
        return GateCheck(name="description", passed=False, detail="Missing Description section")
