"""Operator commands for the companies relation."""

import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from src.cli.utils import elevated_session
from src.dailymenu.entities.core.company import Company, CompanyTable

console = Console()

companies_app = typer.Typer(help="Manage subscribed companies")


@companies_app.command("add")
def add_company(name: str = typer.Argument(..., help="Company name")) -> None:
    """Register a subscribed company."""
    company = Company(name=name)
    with elevated_session() as session:
        try:
            session.add(CompanyTable(**company.model_dump()))
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            console.print(f"[red]❌ Failed to add company: {e}[/red]")
            raise typer.Exit(code=1) from e
    console.print(f"[green]✅ Added company '{name}' ({company.id})[/green]")


@companies_app.command("list")
def list_companies() -> None:
    """List subscribed companies."""
    with elevated_session() as session:
        rows = session.exec(select(CompanyTable).order_by(CompanyTable.name)).all()

    if not rows:
        console.print("[yellow]No companies found[/yellow]")
        return

    table = Table(title="Companies")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Active", style="yellow")
    for row in rows:
        table.add_row(row.id, row.name, "✅" if row.is_active else "❌")
    console.print(table)
