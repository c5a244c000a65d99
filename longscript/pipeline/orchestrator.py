"""Pipeline orchestrator that turns one content brief into one accepted script."""

import json
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Tuple, Union

import pendulum
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config import Config
from ..errors import (
    ConfigurationError,
    IncompleteScriptError,
    InputValidationError,
    InsufficientCreditsError,
    PlanningError,
    ScriptGenerationError,
)
from ..generation import (
    Deadline,
    GeneratedScript,
    GenerationExecutor,
    LLMProvider,
    MockLLMProvider,
    OpenAIProvider,
    PromptBuilder,
    ScriptGenerator,
)
from ..integrations import BillingLedger, RequestRateLimiter, ScriptStore
from ..models import (
    ChunkPlan,
    ContentBrief,
    ContentPlan,
    GenerationFailure,
    GenerationSuccess,
    ModelTier,
    Outline,
    ScriptDraft,
    ScriptRecord,
)
from ..planning import ContentPlanner, CreditCalculator, DurationPlanner, OutlineGenerator
from ..research import ResearchAssessment, ResearchValidator, SourceFetcher
from ..validation import CompletenessGate

console = Console()

GenerationResult = Union[GenerationSuccess, GenerationFailure]


class PipelineStage:
    """Represents a pipeline stage."""

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None
        self.success = False
        self.error: Optional[str] = None
        self.stats: Dict = {}

    def start(self):
        """Mark stage as started."""
        self.start_time = time.time()

    def complete(self, stats: Optional[Dict] = None):
        """Mark stage as completed successfully."""
        self.end_time = time.time()
        self.success = True
        if stats:
            self.stats.update(stats)

    def fail(self, error: str):
        """Mark stage as failed."""
        self.end_time = time.time()
        self.success = False
        self.error = error

    @property
    def started(self) -> bool:
        return self.start_time is not None

    @property
    def duration(self) -> float:
        """Get stage duration in seconds."""
        if self.start_time and self.end_time:
            return self.end_time - self.start_time
        return 0.0


class PipelineOrchestrator:
    """
    Run the generation pipeline for one request.

    Stages run in order: rate limit and input checks, research, credit check,
    planning, generation, completeness gate, then persistence and the single
    debit. Any failure before the debit leaves the user's balance untouched.
    """

    def __init__(
        self,
        config: Config,
        ledger: BillingLedger,
        store: Optional[ScriptStore] = None,
        rate_limiter: Optional[RequestRateLimiter] = None,
        provider: Optional[LLMProvider] = None,
        fetcher: Optional[SourceFetcher] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        save_stats: bool = True,
    ):
        """
        Initialize pipeline orchestrator.

        Args:
            config: Configuration manager
            ledger: Credit ledger; checked before generation, debited after the gate
            store: Where accepted scripts are persisted
            rate_limiter: Per-user limiter; built from config when omitted
            provider: LLM provider; built from config when omitted
            fetcher: Fetcher for sources whose content is not yet fetched
            clock: Monotonic clock for the request deadline
            sleep: Sleep used between transport retries
            save_stats: Write pipeline_stats.json to the run directory
        """
        self.config = config
        self.ledger = ledger
        self.store = store
        settings = config.config
        self.rate_limiter = rate_limiter or RequestRateLimiter(
            settings.rate_limit.max_requests, settings.rate_limit.window_seconds
        )
        self.provider = provider
        self.fetcher = fetcher or SourceFetcher(
            timeout=settings.research.fetch_timeout_seconds,
            max_concurrent=settings.research.fetch_max_concurrent,
        )
        self.clock = clock
        self.sleep = sleep
        self.save_stats = save_stats
        self.stages: List[PipelineStage] = []
        self.total_start_time: Optional[float] = None
        self.last_stats: Dict = {}

    def _new_stages(self) -> List[PipelineStage]:
        return [
            PipelineStage("request", "Checking rate limit and brief"),
            PipelineStage("research", "Fetching and validating research"),
            PipelineStage("credits", "Checking credit balance"),
            PipelineStage("planning", "Planning chunks"),
            PipelineStage("generation", "Generating script"),
            PipelineStage("gate", "Running completeness checks"),
            PipelineStage("persist", "Saving script and debiting credits"),
        ]

    def _stage(self, name: str) -> PipelineStage:
        return next(stage for stage in self.stages if stage.name == name)

    @contextmanager
    def _run_stage(self, name: str) -> Iterator[PipelineStage]:
        stage = self._stage(name)
        stage.start()
        try:
            yield stage
        except ScriptGenerationError as e:
            stage.fail(e.details)
            raise
        except Exception as e:
            stage.fail(str(e))
            raise
        if not stage.end_time:
            stage.complete()

    def _get_llm_provider(self) -> LLMProvider:
        """Get configured LLM provider."""
        if self.provider is not None:
            return self.provider

        llm_config = self.config.get_llm_config()
        provider = llm_config.get("provider")
        if provider == "openai":
            api_key = llm_config.get("api_key")
            if not api_key:
                raise ConfigurationError(
                    f"No OpenAI API key found (set {llm_config.get('api_key_env') or 'llm.api_key'})"
                )
            return OpenAIProvider(
                api_key=api_key,
                base_url=llm_config.get("base_url"),
                timeout=self.config.config.generation.llm_call_timeout_seconds,
            )
        if provider == "mock":
            console.print("[yellow]Using mock LLM provider.[/yellow]")
            return MockLLMProvider()
        raise ConfigurationError(f"Unknown LLM provider: {provider}")

    def run(
        self,
        brief: ContentBrief,
        user_id: str,
        tier: ModelTier = ModelTier.BALANCED,
        chunk_count: Optional[int] = None,
    ) -> GenerationResult:
        """
        Run the complete pipeline.

        Args:
            brief: Content brief
            user_id: User the request is charged to
            tier: Model tier, which selects the model and the price
            chunk_count: Override for the number of chunks of a long script

        Returns:
            GenerationSuccess, or GenerationFailure carrying status and retry hint
        """
        self.total_start_time = time.time()
        self.stages = self._new_stages()
        script_id: Optional[str] = None
        result: GenerationResult

        console.print(Panel.fit(
            f"Longscript\n"
            f"Topic: {brief.display_title} • Duration: {brief.duration or 'default'}s • Tier: {tier.value}",
            style="bold blue",
        ))

        try:
            result = self._execute(brief, user_id, tier, chunk_count)
            script_id = result.script_id
        except ScriptGenerationError as e:
            console.print(f"[red]{e.title}: {e.details}[/red]")
            result = GenerationFailure(error=e.title, details=e.details, retry=e.retry, status=e.status)
        except Exception as e:
            console.print(f"[red]Unexpected error: {e}[/red]")
            result = GenerationFailure(error="Script generation failed", details=str(e), retry=True, status=500)
        finally:
            self.last_stats = self._collect_stats()

        if self.save_stats:
            self._save_stage_stats(brief, script_id)
        self._print_summary(result)
        return result

    def _execute(
        self,
        brief: ContentBrief,
        user_id: str,
        tier: ModelTier,
        chunk_count: Optional[int],
    ) -> GenerationSuccess:
        """Execute the pipeline stages."""
        settings = self.config.config
        deadline = Deadline(settings.generation.request_timeout_seconds, clock=self.clock)

        with self._run_stage("request") as stage:
            self.rate_limiter.check(user_id)
            if not brief.topic.strip():
                raise InputValidationError("The brief needs a topic")
            stage.complete({"remaining_requests": self.rate_limiter.remaining(user_id)})

        with self._run_stage("research") as stage:
            brief, assessment = self._prepare_research(brief)
            stage.complete({
                "sources": len(brief.sources),
                "substantive": assessment.substantive_sources,
                "research_words": assessment.research_words,
                "score": assessment.score.overall_score,
                "long_form_adequacy": assessment.long_form_adequacy,
            })

        with self._run_stage("credits") as stage:
            cost = CreditCalculator(settings.credits, settings.generation).estimate(brief.duration, tier)
            balance = self.ledger.get_balance(user_id)
            if not self.ledger.check_balance(user_id, cost.credits):
                raise InsufficientCreditsError(
                    f"This script costs {cost.credits} credits; your balance is {balance}"
                )
            stage.complete({"credits": cost.credits, "balance": balance})

        with self._run_stage("planning") as stage:
            provider = self._get_llm_provider()
            prompt_builder = PromptBuilder(settings.generation)
            executor = GenerationExecutor(
                provider,
                policy=settings.generation,
                prompt_builder=prompt_builder,
                deadline=deadline,
                sleep=self.sleep,
                max_output_tokens=settings.llm.max_output_tokens,
            )
            planner = DurationPlanner(settings.generation)
            plan = planner.plan(brief.duration, brief.content_points, chunk_count)
            outline, content_plan = self._plan_content(brief, plan, planner, executor)
            stage.complete({
                "minutes": plan.total_minutes,
                "chunks": plan.chunk_count,
                "min_words_per_chunk": plan.min_words_per_chunk,
                "outline": outline is not None,
            })

        with self._run_stage("generation") as stage:
            generator = ScriptGenerator(
                executor,
                model=settings.llm.model_for(tier),
                prompt_builder=prompt_builder,
                policy=settings.generation,
                temperature=settings.llm.temperature,
                max_output_tokens=settings.llm.max_output_tokens,
            )
            generated = generator.generate(brief, plan, outline, content_plan)
            usage = provider.get_usage_stats()
            stage.complete({
                "words": generated.stitched.word_count,
                "chunk_attempts": sum(chunk.attempts for chunk in generated.chunks),
                "removed_sections": len(generated.stitched.removed_sections),
                "api_calls": usage.get("api_calls", 0),
                "tokens_used": usage.get("total_tokens", 0),
                "cost_estimate": usage.get("estimated_cost", 0.0),
            })

        with self._run_stage("gate") as stage:
            draft = self._run_gate(generated, plan, assessment)
            stage.complete({"words": draft.word_count, "expected": draft.expected_words, "tags": len(draft.tags)})

        with self._run_stage("persist") as stage:
            record = ScriptRecord(
                user_id=user_id,
                topic=brief.display_title,
                script=draft.text,
                word_count=draft.word_count,
                model=settings.llm.model_for(tier),
                tier=tier,
                duration_seconds=plan.total_minutes * 60,
                credits_used=cost.credits,
                research_source_count=len(brief.sources),
                research_score=assessment.score.overall_score,
                content_points=[point.model_dump() for point in brief.content_points],
                chunk_count=plan.chunk_count,
                outline_used=generated.outline_used,
                generated_at=pendulum.now("UTC").to_iso8601_string(),
            )
            script_id = self.store.save(record) if self.store else None
            try:
                receipt = self.ledger.debit(user_id, cost.credits, reference=script_id or "")
            except Exception:
                # An uncharged script is never kept
                if script_id:
                    self.store.delete(script_id)
                    console.print(f"[yellow]Debit failed; removed script {script_id}[/yellow]")
                    script_id = None
                raise
            stage.complete({"script_id": script_id, "credits": receipt.credits, "balance": receipt.balance_after})

        return GenerationSuccess(script=draft.text, credits_used=cost.credits, script_id=script_id)

    def _prepare_research(self, brief: ContentBrief) -> Tuple[ContentBrief, ResearchAssessment]:
        sources = brief.sources
        if any(not source.content_already_fetched for source in sources):
            sources = self.fetcher.fetch_sources_sync(sources)
            brief = brief.model_copy(update={"sources": sources})
        settings = self.config.config
        validator = ResearchValidator(settings.research)
        assessment = validator.validate(brief)

        planner = DurationPlanner(settings.generation)
        if settings.research.long_form_gate and planner.is_long_form(brief.duration):
            check = validator.validate_long_form(brief, planner.total_minutes(brief.duration))
            assessment.long_form_adequacy = check.adequacy_percent
        return brief, assessment

    def _plan_content(
        self,
        brief: ContentBrief,
        plan: ChunkPlan,
        planner: DurationPlanner,
        executor: GenerationExecutor,
    ) -> Tuple[Optional[Outline], Optional[ContentPlan]]:
        """Outline for long scripts, mechanical content plan as the fallback."""
        if not plan.chunked:
            return None, None

        if planner.needs_outline(plan):
            llm = self.config.config.llm
            generator = OutlineGenerator(
                executor,
                model=llm.planning_model or llm.model_for(ModelTier.BALANCED),
                temperature=llm.outline_temperature,
            )
            try:
                return generator.generate(brief, plan), None
            except PlanningError as e:
                console.print(f"[yellow]Outline unavailable ({e.details}); using content plan[/yellow]")

        return None, ContentPlanner().plan(brief, plan)

    def _run_gate(self, generated: GeneratedScript, plan: ChunkPlan, assessment: ResearchAssessment) -> ScriptDraft:
        gate = CompletenessGate(self.config.config.generation)
        draft = gate.evaluate(
            generated.text,
            expected_words=plan.target_words,
            description_optional=assessment.high_quality,
            raw_length=generated.stitched.raw_length,
        )
        if not draft.passed:
            failed = [check for check in draft.checks if not check.passed]
            raise IncompleteScriptError(
                [check.name for check in failed],
                "; ".join(check.detail for check in failed),
            )
        if not draft.has_timestamps:
            console.print("[dim]Description has no timestamps[/dim]")
        return draft

    def _collect_stats(self) -> Dict:
        stats = {
            "pipeline": {
                "total_duration": time.time() - self.total_start_time if self.total_start_time else 0,
                "completed_at": pendulum.now("UTC").to_iso8601_string(),
            },
            "stages": {},
        }
        for stage in self.stages:
            stats["stages"][stage.name] = {
                "duration": stage.duration,
                "success": stage.success,
                "error": stage.error,
                "stats": stage.stats,
            }
        return stats

    def _save_stage_stats(self, brief: ContentBrief, script_id: Optional[str]) -> Path:
        """Save pipeline stage statistics."""
        run_dir = self.config.get_run_dir(pendulum.now("UTC").to_date_string())
        if script_id:
            run_dir = run_dir / script_id
            run_dir.mkdir(parents=True, exist_ok=True)
            stats_file = run_dir / "pipeline_stats.json"
        else:
            stats_file = run_dir / f"pipeline_stats_failed_{pendulum.now('UTC').format('HHmmss')}.json"

        with open(stats_file, "w") as f:
            json.dump({"topic": brief.display_title, **self.last_stats}, f, indent=2)
        return stats_file

    def _print_summary(self, result: GenerationResult):
        """Print pipeline execution summary."""
        total_duration = time.time() - self.total_start_time if self.total_start_time else 0

        table = Table(title="Pipeline Summary")
        table.add_column("Stage", style="cyan")
        table.add_column("Status", style="bold")
        table.add_column("Duration", style="yellow")
        table.add_column("Details", style="dim")

        for stage in self.stages:
            if not stage.started:
                table.add_row(stage.name.title(), "[dim]-[/dim]", "-", "skipped")
                continue
            status = "[green]✓[/green]" if stage.success else "[red]✗[/red]"
            duration = f"{stage.duration:.1f}s" if stage.duration > 0 else "-"

            details = ""
            if stage.success and stage.stats:
                if stage.name == "research":
                    details = f"{stage.stats.get('substantive', 0)} substantive, {stage.stats.get('research_words', 0)} words"
                elif stage.name == "credits":
                    details = f"{stage.stats.get('credits', 0)} credits (balance {stage.stats.get('balance', 0)})"
                elif stage.name == "planning":
                    details = f"{stage.stats.get('chunks', 1)} chunk(s), {stage.stats.get('minutes', 0)} min"
                elif stage.name == "generation":
                    details = f"{stage.stats.get('words', 0)} words, {stage.stats.get('api_calls', 0)} calls"
                elif stage.name == "gate":
                    details = f"{stage.stats.get('words', 0)}/{stage.stats.get('expected', 0)} words"
                elif stage.name == "persist":
                    details = f"script {stage.stats.get('script_id') or '-'}"
            elif not stage.success:
                details = stage.error or "Failed"

            table.add_row(stage.name.title(), status, duration, details)

        console.print("\n")
        console.print(table)

        if isinstance(result, GenerationSuccess):
            console.print(Panel(
                f"[green]Script generated[/green]\n\n"
                f"Credits used: {result.credits_used}\n"
                f"Script id: {result.script_id or '-'}\n"
                f"Duration: {total_duration:.1f} seconds",
                style="green",
            ))
        else:
            console.print(Panel(
                f"[red]{result.error}[/red]\n\n"
                f"{result.details}\n"
                f"Status: {result.status} • Retry: {'yes' if result.retry else 'no'}\n"
                f"No credits were charged.",
                style="red",
            ))
