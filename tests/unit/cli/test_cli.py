"""Tests for the operator CLI."""

from collections.abc import Generator

import pytest
from sqlmodel import Session, create_engine
from typer.testing import CliRunner

from src.cli import app
from src.dailymenu.entities.core.user import ElevatedUserStore, InternalUser, Role
from src.dailymenu.runtime.config.config_data import ConfigData, DatabaseConfig
from src.dailymenu.runtime.context import with_context

runner = CliRunner()


@pytest.fixture
def database_url(tmp_path) -> Generator[str]:
    """Point the CLI at an initialized sqlite file."""
    url = f"sqlite:///{tmp_path / 'cli.db'}"
    with with_context(ConfigData(database=DatabaseConfig(url=url))):
        result = runner.invoke(app, ["init-db"])
        assert result.exit_code == 0, result.output
        yield url


@pytest.fixture
def find_user(database_url: str):
    def _find(email: str) -> InternalUser | None:
        engine = create_engine(database_url)
        try:
            with Session(engine) as session:
                return ElevatedUserStore(session).find_by_email(email)
        finally:
            engine.dispose()

    return _find


def test_init_db_reports_success(database_url):
    result = runner.invoke(app, ["init-db"])

    assert result.exit_code == 0
    assert "Database initialized" in result.output


def test_seed_creates_placeholder_row(database_url, find_user):
    result = runner.invoke(
        app, ["users", "seed", "Chef@Example.com", "--name", "Chef", "--role", "kitchen"]
    )

    assert result.exit_code == 0, result.output
    user = find_user("chef@example.com")
    assert user is not None
    assert user.id.startswith("seed-")
    assert user.role == Role.KITCHEN
    assert user.full_name == "Chef"


def test_seed_refuses_duplicate_email(database_url):
    runner.invoke(app, ["users", "seed", "a@x.com"])

    result = runner.invoke(app, ["users", "seed", "A@x.com"])

    assert result.exit_code == 1
    assert "already exists" in result.output


def test_set_role_and_company(database_url, find_user):
    runner.invoke(app, ["users", "seed", "a@x.com"])

    role_result = runner.invoke(app, ["users", "set-role", "a@x.com", "menu_editor"])
    company_result = runner.invoke(app, ["users", "set-company", "a@x.com", "company-9"])

    assert role_result.exit_code == 0, role_result.output
    assert company_result.exit_code == 0, company_result.output
    user = find_user("a@x.com")
    assert user.role == Role.MENU_EDITOR
    assert user.company_id == "company-9"


def test_set_role_rejects_unknown_role(database_url):
    runner.invoke(app, ["users", "seed", "a@x.com"])

    result = runner.invoke(app, ["users", "set-role", "a@x.com", "owner"])

    assert result.exit_code == 2


def test_deactivate_and_activate(database_url, find_user):
    runner.invoke(app, ["users", "seed", "a@x.com"])

    runner.invoke(app, ["users", "deactivate", "a@x.com"])
    assert find_user("a@x.com").is_active is False

    runner.invoke(app, ["users", "activate", "a@x.com"])
    assert find_user("a@x.com").is_active is True


def test_update_unknown_email_fails(database_url):
    result = runner.invoke(app, ["users", "deactivate", "ghost@x.com"])

    assert result.exit_code == 1
    assert "No user with email" in result.output


def test_list_filters(database_url):
    runner.invoke(app, ["users", "seed", "a@x.com"])
    runner.invoke(app, ["users", "seed", "b@x.com", "--role", "kitchen"])
    runner.invoke(app, ["users", "deactivate", "a@x.com"])

    everyone = runner.invoke(app, ["users", "list"])
    kitchen = runner.invoke(app, ["users", "list", "--role", "kitchen"])
    inactive = runner.invoke(app, ["users", "list", "--inactive"])

    assert "Found 2 users" in everyone.output
    assert "Found 1 users" in kitchen.output
    assert "Found 1 users" in inactive.output


def test_list_empty(database_url):
    result = runner.invoke(app, ["users", "list"])

    assert result.exit_code == 0
    assert "No users found" in result.output


def test_companies(database_url):
    empty = runner.invoke(app, ["companies", "list"])
    added = runner.invoke(app, ["companies", "add", "Acme"])
    listed = runner.invoke(app, ["companies", "list"])

    assert "No companies found" in empty.output
    assert added.exit_code == 0, added.output
    assert "Added company 'Acme'" in added.output
    assert "Acme" in listed.output
