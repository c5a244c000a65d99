"""Main CLI application."""

import typer
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

from .credits import credits_command
from .estimate import estimate_command
from .generate import generate_command
from .init import init_command

app = typer.Typer(
    name="longscript",
    help="Longscript - long-form narrated video script generator",
    no_args_is_help=True,
)

# Register commands
app.command("init")(init_command)
app.command("estimate")(estimate_command)
app.command("generate")(generate_command)
app.command("credits")(credits_command)


if __name__ == "__main__":
    app()
