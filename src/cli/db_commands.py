"""Database bootstrap command."""

import typer
from rich.console import Console
from sqlalchemy.exc import SQLAlchemyError

from src.dailymenu.runtime.init_db import init_db

console = Console()


def init_db_command() -> None:
    """Create the companies and users tables if they do not exist."""
    try:
        init_db()
    except SQLAlchemyError as e:
        console.print(f"[red]❌ Failed to initialize database: {e}[/red]")
        raise typer.Exit(code=1) from e
    console.print("[green]✅ Database initialized[/green]")
