"""Generate command implementation."""

import json
from pathlib import Path
from typing import Optional, Tuple

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console

from ..config import Config
from ..db import PostgresLedger, PostgresScriptStore
from ..integrations import BillingLedger, FileScriptStore, InMemoryLedger, ScriptStore
from ..models import ContentBrief, GenerationSuccess, ModelTier
from ..pipeline import PipelineOrchestrator

console = Console()


def load_brief(path: Path) -> ContentBrief:
    """Load a content brief from a YAML or JSON file."""
    if not path.exists():
        raise FileNotFoundError(f"Brief file not found: {path}")

    with open(path) as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in brief file: {e}")

    if not isinstance(data, dict):
        raise ValueError("Brief file must contain a mapping")
    try:
        return ContentBrief(**data)
    except ValidationError as e:
        raise ValueError(f"Invalid brief: {e}")


def build_backends(config: Config, user: str, credits: int) -> Tuple[BillingLedger, ScriptStore]:
    """Postgres ledger and store when configured, otherwise a local ledger and the workspace."""
    db_config = config.get_db_config()
    if db_config is not None:
        return PostgresLedger(db_config), PostgresScriptStore(db_config)
    return InMemoryLedger({user: credits}), FileScriptStore(config)


def generate_command(
    brief_path: Path = typer.Argument(..., help="Content brief (YAML or JSON)"),
    tier: ModelTier = typer.Option(ModelTier.BALANCED, "--tier", "-t", help="Model tier"),
    user: str = typer.Option("local", "--user", "-u", help="User the request is charged to"),
    credits: int = typer.Option(
        100, "--credits", help="Starting balance for the local ledger (ignored with Postgres)", min=0
    ),
    chunks: Optional[int] = typer.Option(None, "--chunks", help="Chunk count for long scripts", min=1),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Config file path"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Also write the script here"),
) -> None:
    """Generate a script from a content brief."""
    try:
        brief = load_brief(brief_path)
        config = Config.load_or_default(config_path)
        ledger, store = build_backends(config, user, credits)
        orchestrator = PipelineOrchestrator(config, ledger=ledger, store=store)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    try:
        result = orchestrator.run(brief, user_id=user, tier=tier, chunk_count=chunks)
    except KeyboardInterrupt:
        console.print("\n[yellow]Generation interrupted by user[/yellow]")
        raise typer.Exit(1)

    console.print_json(json.dumps({k: v for k, v in result.to_response().items() if k != "script"}))
    if not isinstance(result, GenerationSuccess):
        raise typer.Exit(1)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(result.script, encoding="utf-8")
        console.print(f"✅ Script written to {output}")
