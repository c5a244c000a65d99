from __future__ import annotations

from longscript.generation import ExpansionRequest, PromptBuilder
from longscript.models import Outline, OutlineChunk, OutlineSection, Source, SponsorSegment
from longscript.planning import DurationPlanner

from .conftest import content_points, words


def test_chunk_prompts_respect_boundaries(long_brief):
    plan = DurationPlanner().plan(long_brief.duration, long_brief.content_points, chunk_count=3)
    builder = PromptBuilder()

    first = builder.build_chunk_prompt(long_brief, plan, 0)
    assert "PART 1 of 3" in first
    assert long_brief.hook in first
    assert "ALREADY COVERED" not in first
    assert "RESERVED FOR LATER PARTS" in first
    assert "- Solid State Cells" in first.split("RESERVED FOR LATER PARTS")[1]
    assert "## Tags" not in first
    assert "Do not write a conclusion" in first
    assert "at least 1669 words" in first

    last = builder.build_chunk_prompt(long_brief, plan, 2)
    assert "- Why Batteries Degrade" in last.split("ALREADY COVERED")[1]
    assert "RESERVED FOR LATER PARTS" not in last
    assert "## Description" in last
    assert "## Tags" in last
    assert "At least 10" in last


def test_sponsor_goes_to_second_chunk(long_brief):
    brief = long_brief.model_copy(update={"sponsor": SponsorSegment(name="VoltCo", product="Chargers")})
    plan = DurationPlanner().plan(brief.duration, brief.content_points, chunk_count=3)
    builder = PromptBuilder()
    prompts = [builder.build_chunk_prompt(brief, plan, i) for i in range(3)]
    assert ["VoltCo" in prompt for prompt in prompts] == [False, True, False]


def test_single_prompt_word_range(short_brief):
    plan = DurationPlanner().plan(short_brief.duration, short_brief.content_points)
    prompt = PromptBuilder().build_single_prompt(short_brief, plan)
    assert "between 650 and 780 words" in prompt
    assert "## Tags" in prompt
    assert "- Topic: Batteries" in prompt


def test_outline_prompt_lists_chunks(long_brief):
    plan = DurationPlanner().plan(long_brief.duration, long_brief.content_points, chunk_count=3)
    prompt = PromptBuilder().build_outline_prompt(long_brief, plan)
    assert "Chunk 3: minutes" in prompt
    assert "at least 4550" in prompt
    assert "Respond with JSON only" in prompt


def test_research_ranks_starred_and_truncates():
    sources = [
        Source(title="Plain", content=words(300, "plain")),
        Source(title="Starred", content=words(300, "starred"), starred=True),
    ]
    text = PromptBuilder().format_research(sources)
    lines = text.splitlines()
    assert lines[1].startswith("1. Starred")
    assert len(lines[1]) < 420


def test_expansion_prompt_lists_missing_topics_first():
    points = content_points(2)
    request = ExpansionRequest(
        existing_text="### Why Batteries Degrade\n" + words(50),
        target_words=200,
        content_points=points,
        model="m",
    )
    prompt = PromptBuilder().build_expansion_prompt(request)
    missing = prompt.split("MISSING TOPICS")[1]
    assert "Lithium Supply Chains" in missing
    assert "UNDER-DEVELOPED TOPICS" in prompt
    assert "Write ONLY the" in prompt


def moved_outline(brief) -> Outline:
    # The outline pulls "Solid State Cells" forward from the planned second part into the first
    titles = [point.title for point in brief.content_points]
    groups = [titles[:3], titles[3:4], titles[4:]]
    return Outline(chunks=[
        OutlineChunk(
            chunk_number=n,
            title=f"Part {n}",
            word_target=1600,
            sections=[OutlineSection(title=title) for title in group],
        )
        for n, group in enumerate(groups, start=1)
    ])


def test_outline_placement_drives_chunk_scope(long_brief):
    plan = DurationPlanner().plan(long_brief.duration, long_brief.content_points, chunk_count=3)
    outline = moved_outline(long_brief)
    builder = PromptBuilder()

    first = builder.build_chunk_prompt(long_brief, plan, 0, outline)
    cover, reserved = first.split("CONTENT TO COVER IN PART 1")[1].split("RESERVED FOR LATER PARTS")
    assert "Solid State Cells" in cover
    assert "Solid State Cells" not in reserved
    assert "at least 1600 words" in first

    second = builder.build_chunk_prompt(long_brief, plan, 1, outline)
    cover, covered = second.split("CONTENT TO COVER IN PART 2")[1].split("ALREADY COVERED")
    assert "Recycling Economics" in cover
    assert "Solid State Cells" not in cover
    assert "- Solid State Cells" in covered.split("RESERVED FOR LATER PARTS")[0]

    assert [p.title for p in builder.chunk_points(long_brief, plan, 1, outline)] == ["Recycling Economics"]
