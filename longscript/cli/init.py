"""Init command implementation."""

from pathlib import Path

import typer
from psycopg.errors import DatabaseError
from rich.console import Console
from rich.panel import Panel

from ..config import Config, ConfigModel, LLMConfig, PostgresConfig, save_config
from ..db import init_database, validate_connection

console = Console()


def init_command(
    config_dir: Path = typer.Option(
        Path.home() / ".config" / "longscript",
        "--config-dir",
        "-c",
        help="Configuration directory",
    ),
    workspace: Path = typer.Option(
        Path.home() / "Longscript",
        "--workspace",
        "-w",
        help="Workspace root directory",
    ),
    provider: str = typer.Option("openai", "--provider", help="LLM provider (openai or mock)"),
    use_db: bool = typer.Option(
        False,
        "--db/--no-db",
        help="Store scripts and credits in Postgres instead of the workspace",
    ),
    db_host: str = typer.Option("localhost", "--db-host", help="Postgres host"),
    db_port: int = typer.Option(5432, "--db-port", help="Postgres port"),
    db_name: str = typer.Option("longscript", "--db-name", help="Database name"),
    db_user: str = typer.Option("longscript_user", "--db-user", help="Database user"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config file"),
) -> None:
    """Initialize Longscript configuration, workspace and (optionally) database."""
    console.print(Panel.fit("Longscript - Initialization", style="bold blue"))

    config_path = config_dir / "config.yaml"
    if config_path.exists() and not force:
        console.print(f"[yellow]Config already exists: {config_path} (use --force to overwrite)[/yellow]")
        raise typer.Exit(1)

    if provider not in ("openai", "mock"):
        console.print(f"[red]Unknown provider: {provider}[/red]")
        raise typer.Exit(1)

    postgres = None
    if use_db:
        postgres = PostgresConfig(
            host=db_host,
            port=db_port,
            database=db_name,
            user=db_user,
            password_env="LONGSCRIPT_DB_PASSWORD",
        )

    config = ConfigModel(workspace_root=str(workspace), llm=LLMConfig(provider=provider), postgres=postgres)
    save_config(config, config_path)
    console.print(f"✅ Created config: {config_path}")

    workspace.mkdir(parents=True, exist_ok=True)
    console.print(f"✅ Created workspace: {workspace}")

    if use_db:
        console.print("\n[bold]Testing database connection...[/bold]")
        db_config = Config.from_model(config, config_path).get_db_config()

        if not validate_connection(db_config):
            console.print(
                "[red]❌ Database connection failed![/red]\n"
                "Please ensure Postgres is running and credentials are correct.\n"
                "Set the password via environment variable: "
                "[bold]export LONGSCRIPT_DB_PASSWORD=your_password[/bold]"
            )
            raise typer.Exit(1)
        console.print("✅ Database connection successful")

        console.print("\n[bold]Initializing database schema...[/bold]")
        try:
            init_database(db_config)
            console.print("✅ Database schema initialized")
        except DatabaseError as e:
            console.print(f"[red]❌ Failed to initialize database: {e}[/red]")
            raise typer.Exit(1)

    next_steps = []
    if use_db:
        next_steps.append("Set database password: [bold]export LONGSCRIPT_DB_PASSWORD=your_password[/bold]")
        next_steps.append("Grant credits: [bold]longscript credits USER --grant 100[/bold]")
    if provider == "openai":
        next_steps.append("Set LLM API key: [bold]export OPENAI_API_KEY=your_key[/bold]")
    next_steps.append("Run: [bold]longscript generate brief.yaml[/bold]")

    console.print(
        Panel(
            f"[green]✅ Longscript initialized successfully![/green]\n\n"
            f"Configuration: {config_path}\n"
            f"Workspace: {workspace}\n\n"
            f"Next steps:\n"
            + "\n".join(f"{n}. {step}" for n, step in enumerate(next_steps, start=1)),
            style="green",
        )
    )
