"""Credits command implementation."""

from pathlib import Path
from typing import Optional

import typer
from psycopg import OperationalError
from rich.console import Console
from rich.table import Table

from ..config import Config
from ..db import PostgresLedger, PostgresScriptStore

console = Console()


def credits_command(
    user: str = typer.Argument(..., help="User id"),
    grant: Optional[int] = typer.Option(None, "--grant", "-g", help="Credits to add", min=1),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Config file path"),
) -> None:
    """Show (or top up) a user's credit balance and recent scripts."""
    try:
        config = Config.load_or_default(config_path)
        db_config = config.get_db_config()
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if db_config is None:
        console.print("[yellow]Credits are only tracked when Postgres is configured (longscript init --db).[/yellow]")
        raise typer.Exit(1)

    ledger = PostgresLedger(db_config)
    try:
        if grant:
            balance = ledger.grant(user, grant)
            console.print(f"✅ Granted {grant} credits to {user}")
        else:
            balance = ledger.get_balance(user)
        recent = PostgresScriptStore(db_config).list_for_user(user, limit=10)
    except OperationalError as e:
        console.print(f"[red]Database unavailable: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"\n[bold]{user}[/bold]: {balance} credits")
    if not recent:
        return

    table = Table(title="Recent scripts")
    table.add_column("ID", style="dim")
    table.add_column("Topic", style="cyan")
    table.add_column("Words", justify="right")
    table.add_column("Tier")
    table.add_column("Credits", justify="right", style="yellow")
    for row in recent:
        table.add_row(row["id"], row["topic"], str(row["word_count"]), row["tier"], str(row["credits_used"]))
    console.print(table)
