"""Main CLI application module."""

import typer

from .company_commands import companies_app
from .db_commands import init_db_command
from .user_commands import users_app

# Create the main CLI application
app = typer.Typer(
    help="Daily Menu operator CLI",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Register command groups
app.command("init-db")(init_db_command)
app.add_typer(users_app, name="users")
app.add_typer(companies_app, name="companies")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
