"""CLI commands for the journal service.

Commands:
- serve: run the HTTP API
- init-db: create the database schema
- add-user: provision a user (users are not created over HTTP)
- add-discipline: add a discipline to the catalog
- issue-token: print a bearer token for a user email
"""

from pathlib import Path
from typing import Optional

import typer
import uvicorn
from rich.console import Console

from journal.config.app_config import AppConfig, ConfigError, load_app_config
from journal.core.models import Role
from journal.core.tokens import DEFAULT_EXPIRES_IN, issue_token as make_token
from journal.db.courses_repository import insert_discipline
from journal.db.database import init_db
from journal.db.errors import StorageError
from journal.db.users_repository import insert_user
from journal.utils.log_setup import setup_logging

app = typer.Typer(
    name="journal",
    help="Role-based academic records service.",
    no_args_is_help=True,
)

console = Console()


def _config_option():
    return typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config YAML (defaults to $CONFIG_PATH)",
    )


def _load_config_or_exit(config_path: Optional[Path]) -> AppConfig:
    """Load configuration, or exit with a readable error."""
    try:
        config = load_app_config(config_path)
    except ConfigError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    setup_logging(config.env)
    return config


@app.command()
def serve(config_path: Optional[Path] = _config_option()) -> None:
    """Run the HTTP API."""
    from journal.web.api import create_app

    config = _load_config_or_exit(config_path)
    server = config.http_server

    console.print(
        f"[green]Starting journal[/green] env={config.env} "
        f"address={server.address}"
    )
    uvicorn.run(
        create_app(config),
        host=server.host,
        port=server.port,
        timeout_keep_alive=int(server.idle_timeout),
        log_config=None,
    )


@app.command(name="init-db")
def init_database(config_path: Optional[Path] = _config_option()) -> None:
    """Create the database schema (idempotent)."""
    config = _load_config_or_exit(config_path)
    init_db(config.storage_path)
    console.print(f"[green]✓[/green] Database ready at {config.storage_path}")


@app.command(name="add-user")
def add_user(
    email: str = typer.Argument(..., help="Login email"),
    role: Role = typer.Argument(..., help="admin, teacher or student"),
    last_name: str = typer.Option("", "--last-name", help="Family name"),
    first_name: str = typer.Option("", "--first-name", help="Given name"),
    patronymic: str = typer.Option("", "--patronymic", help="Patronymic"),
    config_path: Optional[Path] = _config_option(),
) -> None:
    """Provision a user."""
    config = _load_config_or_exit(config_path)
    init_db(config.storage_path)

    try:
        user_id = insert_user(email, role, last_name, first_name, patronymic)
    except StorageError as e:
        console.print(f"[red]✗ Failed to add user: {e.cause}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓[/green] User {email} ({role.value}) id={user_id}")


@app.command(name="add-discipline")
def add_discipline(
    name: str = typer.Argument(..., help="Discipline name"),
    config_path: Optional[Path] = _config_option(),
) -> None:
    """Add a discipline to the catalog."""
    config = _load_config_or_exit(config_path)
    init_db(config.storage_path)

    try:
        discipline_id = insert_discipline(name)
    except StorageError as e:
        console.print(f"[red]✗ Failed to add discipline: {e.cause}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓[/green] Discipline '{name}' id={discipline_id}")


@app.command(name="issue-token")
def issue_token(
    email: str = typer.Argument(..., help="Email placed in the token"),
    expires_in: int = typer.Option(
        DEFAULT_EXPIRES_IN, "--expires-in", help="Lifetime in seconds"
    ),
    config_path: Optional[Path] = _config_option(),
) -> None:
    """Print a bearer token signed with the service secret."""
    config = _load_config_or_exit(config_path)
    # plain print: the token must be copy-pasteable without rich markup
    print(make_token(email, config.secret, expires_in=expires_in))


if __name__ == "__main__":
    app()
