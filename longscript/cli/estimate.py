"""Estimate command implementation."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ..config import Config
from ..models import ModelTier
from ..planning import CreditCalculator, DurationPlanner

console = Console()


def estimate_command(
    minutes: int = typer.Option(..., "--minutes", "-m", help="Target duration in minutes", min=1),
    tier: ModelTier = typer.Option(ModelTier.BALANCED, "--tier", "-t", help="Model tier"),
    chunks: Optional[int] = typer.Option(None, "--chunks", help="Chunk count for long scripts", min=1),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Config file path"),
) -> None:
    """Show the credit cost and chunk plan for a duration without generating anything."""
    try:
        config = Config.load_or_default(config_path)
        settings = config.config
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    duration = minutes * 60
    cost = CreditCalculator(settings.credits, settings.generation).estimate(duration, tier)
    planner = DurationPlanner(settings.generation)
    plan = planner.plan(duration, chunk_count=chunks)

    table = Table(title=f"{minutes}-minute script, {tier.value} tier")
    table.add_column("Item", style="cyan")
    table.add_column("Value", style="bold")
    table.add_row("Credits", str(cost.credits))
    table.add_row("Model", settings.llm.model_for(tier))
    table.add_row("Target words", str(plan.target_words))
    table.add_row("Chunks", str(plan.chunk_count) + (" (chunked)" if plan.chunked else ""))
    table.add_row("Min words per chunk", str(plan.min_words_per_chunk))
    table.add_row("Outline", "yes" if planner.needs_outline(plan) else "no")
    console.print(table)
