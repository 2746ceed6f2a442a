"""Operator commands for the users relation.

Rows created with ``seed`` carry a placeholder id; the first sign-in of
that email relinks the row to the auth provider's id.
"""

import uuid

import typer
from rich.console import Console
from rich.table import Table

from src.cli.utils import elevated_session
from src.dailymenu.core.exceptions import StoreError
from src.dailymenu.entities.core.user import (
    ElevatedUserStore,
    InternalUser,
    Role,
    UserUpdate,
)

console = Console()

users_app = typer.Typer(help="Manage internal user records")


def _update_by_email(email: str, changes: UserUpdate, done: str) -> None:
    with elevated_session() as session:
        store = ElevatedUserStore(session)
        try:
            user = store.find_by_email(email)
            if user is None:
                console.print(f"[red]❌ No user with email '{email}'[/red]")
                raise typer.Exit(code=1)
            store.update(user.id, changes)
        except StoreError as e:
            console.print(f"[red]❌ Failed to update user: {e}[/red]")
            raise typer.Exit(code=1) from e
    console.print(f"[green]✅ {done}[/green]")


@users_app.command("list")
def list_users(
    role: Role | None = typer.Option(None, "--role", "-r", help="Only users with this role"),
    inactive: bool = typer.Option(False, "--inactive", help="Only inactive users"),
) -> None:
    """List internal users."""
    with elevated_session() as session:
        try:
            users = ElevatedUserStore(session).list_all()
        except StoreError as e:
            console.print(f"[red]❌ Failed to list users: {e}[/red]")
            raise typer.Exit(code=1) from e

    if role is not None:
        users = [u for u in users if u.role == role]
    if inactive:
        users = [u for u in users if not u.is_active]

    if not users:
        console.print("[yellow]No users found[/yellow]")
        return

    table = Table(title="Users")
    table.add_column("ID", style="cyan")
    table.add_column("Email", style="blue")
    table.add_column("Name", style="magenta")
    table.add_column("Role", style="green")
    table.add_column("Company", style="white")
    table.add_column("Active", style="yellow")

    for user in users:
        table.add_row(
            user.id,
            user.email,
            user.full_name or "",
            user.role.value,
            user.company_id or "-",
            "✅" if user.is_active else "❌",
        )

    console.print(table)
    console.print(f"\n[green]Found {len(users)} users[/green]")


@users_app.command("seed")
def seed_user(
    email: str = typer.Argument(..., help="Email the person will sign in with"),
    full_name: str | None = typer.Option(None, "--name", "-n", help="Display name"),
    role: Role = typer.Option(Role.EMPLOYEE, "--role", "-r", help="Access role"),
    company_id: str | None = typer.Option(None, "--company", "-c", help="Company id"),
    phone: str | None = typer.Option(None, "--phone", help="Phone number"),
) -> None:
    """Pre-create a user row before the person first signs in."""
    with elevated_session() as session:
        store = ElevatedUserStore(session)
        try:
            if store.find_by_email(email) is not None:
                console.print(f"[red]❌ A user with email '{email}' already exists[/red]")
                raise typer.Exit(code=1)
            user = store.insert(
                InternalUser(
                    id=f"seed-{uuid.uuid4().hex[:12]}",
                    email=email,
                    full_name=full_name or email.split("@", 1)[0],
                    phone=phone,
                    company_id=company_id,
                    role=role,
                )
            )
        except StoreError as e:
            console.print(f"[red]❌ Failed to seed user: {e}[/red]")
            raise typer.Exit(code=1) from e

    console.print(f"[green]✅ Seeded {user.email} as {user.role.value} ({user.id})[/green]")


@users_app.command("set-role")
def set_role(
    email: str = typer.Argument(..., help="Email of the user"),
    role: Role = typer.Argument(..., help="New role"),
) -> None:
    """Change a user's role."""
    _update_by_email(email, UserUpdate(role=role), f"{email} is now {role.value}")


@users_app.command("set-company")
def set_company(
    email: str = typer.Argument(..., help="Email of the user"),
    company_id: str = typer.Argument(..., help="Company id"),
) -> None:
    """Assign a user to a company."""
    _update_by_email(email, UserUpdate(company_id=company_id), f"{email} assigned to {company_id}")


@users_app.command("activate")
def activate(email: str = typer.Argument(..., help="Email of the user")) -> None:
    """Allow a user to sign in again."""
    _update_by_email(email, UserUpdate(is_active=True), f"{email} activated")


@users_app.command("deactivate")
def deactivate(email: str = typer.Argument(..., help="Email of the user")) -> None:
    """Lock a user out; their next request lands on the inactive-account page."""
    _update_by_email(email, UserUpdate(is_active=False), f"{email} deactivated")
