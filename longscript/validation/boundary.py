"""Advisory boundary check: topics bleeding across chunks."""

from typing import Dict, List, Optional

from ..models import BoundaryViolation, ChunkPlan, ContentBrief, ContentPoint, Outline
from .text import headers, normalize_title


def _matches(header: str, title: str) -> bool:
    header, title = normalize_title(header), normalize_title(title)
    return bool(title) and (header == title or title in header)


def chunk_ownership(brief: ContentBrief, plan: ChunkPlan, outline: Optional[Outline] = None) -> List[List[ContentPoint]]:
    """
    Content points owned by each chunk, in chunk order.

    Points start in the plan's contiguous ranges. When an outline places a point's
    section in a different chunk, the outline wins; points the outline does not
    name keep their planned chunk.
    """
    owners: Dict[int, int] = {}
    for assignment in plan.assignments:
        for position in range(assignment.start, assignment.end):
            owners[position] = assignment.index

    if outline is not None:
        for chunk in outline.chunks:
            index = chunk.chunk_number - 1
            if not 0 <= index < plan.chunk_count:
                continue
            for position, point in enumerate(brief.content_points):
                if any(_matches(title, point.title) for title in chunk.section_titles):
                    owners[position] = index

    return [
        [point for position, point in enumerate(brief.content_points) if owners.get(position) == index]
        for index in range(plan.chunk_count)
    ]


def check_boundaries(
    text: str,
    brief: ContentBrief,
    plan: ChunkPlan,
    index: int,
    outline: Optional[Outline] = None,
) -> List[BoundaryViolation]:
    """
    Find section headers in chunk ``index`` that belong to other chunks.

    Headers naming a later chunk's content point are forward leaks; headers naming
    an earlier chunk's point are duplicates. Violations never reject a chunk.
    """
    found = [title for _, title in headers(text)]
    if not found:
        return []

    violations: List[BoundaryViolation] = []
    for owner, points in enumerate(chunk_ownership(brief, plan, outline)):
        if owner == index:
            continue
        kind = "forward_leak" if owner > index else "duplicate"
        for point in points:
            if any(_matches(header, point.title) for header in found):
                violations.append(BoundaryViolation(kind=kind, title=point.title, owner_chunk=owner + 1))
    return violations
