"""Duration planner: target duration to chunk count and word budgets."""

import math
from fractions import Fraction
from typing import List, Optional, Sequence

from ..config.models import GenerationPolicy
from ..models import ChunkAssignment, ChunkPlan, ContentPoint


class DurationPlanner:
    """Turn a target duration into a ChunkPlan. Pure computation."""

    def __init__(self, policy: Optional[GenerationPolicy] = None) -> None:
        self.policy = policy or GenerationPolicy()

    def total_minutes(self, duration_seconds: Optional[int]) -> int:
        """``ceil(duration / 60)``, using the default duration when absent."""
        if not duration_seconds:
            duration_seconds = self.policy.default_duration_seconds
        return max(1, math.ceil(duration_seconds / 60))

    def needs_chunking(self, duration_seconds: Optional[int]) -> bool:
        return self.total_minutes(duration_seconds) > self.policy.chunking_threshold_minutes

    def needs_outline(self, plan: ChunkPlan) -> bool:
        return plan.chunked and plan.total_minutes >= self.policy.outline_threshold_minutes

    def is_long_form(self, duration_seconds: Optional[int]) -> bool:
        """Chunked and long enough to be outlined."""
        minutes = self.total_minutes(duration_seconds)
        return minutes > self.policy.chunking_threshold_minutes and minutes >= self.policy.outline_threshold_minutes

    def default_chunk_count(self, total_minutes: int) -> int:
        if total_minutes <= self.policy.chunking_threshold_minutes:
            return 1
        if total_minutes <= 45:
            return 2
        if total_minutes <= 60:
            return 3
        # 15-minute chunks past an hour
        return math.ceil(total_minutes / 15)

    def min_words_per_chunk(self, total_minutes: int, chunk_count: int) -> int:
        """``ceil((minutes / chunks) * wpm * buffer)`` without float drift."""
        exact = (
            Fraction(total_minutes, chunk_count)
            * self.policy.words_per_minute
            * Fraction(str(self.policy.chunk_buffer))
        )
        return math.ceil(exact)

    def plan(
        self,
        duration_seconds: Optional[int],
        content_points: Sequence[ContentPoint] = (),
        chunk_count: Optional[int] = None,
    ) -> ChunkPlan:
        """
        Build the chunk plan for a duration.

        Args:
            duration_seconds: Target duration; the policy default is used when absent
            content_points: Ordered content points to partition across chunks
            chunk_count: Explicit chunk count for chunked scripts

        Returns:
            ChunkPlan with per-chunk minimum and content-point ranges
        """
        minutes = self.total_minutes(duration_seconds)
        chunked = minutes > self.policy.chunking_threshold_minutes

        if not chunked:
            count = 1
        elif chunk_count:
            count = max(1, chunk_count)
        else:
            count = self.default_chunk_count(minutes)

        return ChunkPlan(
            total_minutes=minutes,
            chunk_count=count,
            chunked=chunked,
            words_per_minute=self.policy.words_per_minute,
            target_words=minutes * self.policy.words_per_minute,
            min_words_per_chunk=self.min_words_per_chunk(minutes, count),
            assignments=partition_content_points(len(content_points), count, minutes),
        )


def partition_content_points(point_count: int, chunk_count: int, total_minutes: int) -> List[ChunkAssignment]:
    """Split ``point_count`` points into contiguous, balanced ranges; earlier chunks take the remainder."""
    base, extra = divmod(point_count, chunk_count)
    minutes_per_chunk = math.ceil(total_minutes / chunk_count)
    assignments = []
    cursor = 0
    for index in range(chunk_count):
        size = base + (1 if index < extra else 0)
        assignments.append(
            ChunkAssignment(
                index=index,
                start=cursor,
                end=cursor + size,
                start_minute=min(index * minutes_per_chunk, total_minutes),
                end_minute=min((index + 1) * minutes_per_chunk, total_minutes),
            )
        )
        cursor += size
    return assignments
