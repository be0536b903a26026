#!/usr/bin/env python3
"""CLI interface for Murasaki development utilities.

Bootstraps Keycloak, prepares the database, runs the API and smoke-tests the
whole login and post flow against a running instance.
"""

import asyncio
import subprocess
import sys
from pathlib import Path

import httpx
import requests
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .setup_keycloak import KeycloakSetup, print_env
from .verify_flow import FlowCheckFailed, verify_flow

# Initialize Rich console for colored output
console = Console()

app = typer.Typer(
    name="murasaki-dev",
    help="Murasaki development CLI - Keycloak bootstrap, database and smoke tests",
    rich_markup_mode="rich",
)


def get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent.parent


def run_command(
    command: list[str],
    cwd: Path | None = None,
    check: bool = True,
) -> subprocess.CompletedProcess:
    """Run a shell command with proper error handling."""
    try:
        return subprocess.run(
            command,
            cwd=cwd or get_project_root(),
            check=check,
            text=True,
        )
    except subprocess.CalledProcessError as e:
        console.print(f"[red]Command failed: {' '.join(command)}[/red]")
        console.print(f"[red]Exit code: {e.returncode}[/red]")
        raise typer.Exit(1) from e


@app.command(name="setup-keycloak")
def setup_keycloak(
    keycloak_url: str = typer.Option(
        "http://localhost:8080", help="Base URL of the Keycloak server"
    ),
    realm: str = typer.Option("murasaki-poc", help="Realm to create"),
    client_id: str = typer.Option("murasaki-backend", help="Backend client ID"),
    admin_username: str = typer.Option("admin", help="Keycloak admin username"),
    admin_password: str = typer.Option("admin", help="Keycloak admin password"),
) -> None:
    """
    Create the realm, backend client and test user in Keycloak.

    Safe to re-run: existing resources are left untouched.
    """
    console.print(
        Panel.fit("[bold blue]Configuring Keycloak[/bold blue]", border_style="blue")
    )
    setup = KeycloakSetup(keycloak_url, realm_name=realm, client_id=client_id)
    try:
        result = setup.setup_all(admin_username, admin_password)
    except (requests.RequestException, RuntimeError) as e:
        console.print(f"[red]Keycloak setup failed: {e}[/red]")
        raise typer.Exit(1) from e

    print_env(result, realm)
    console.print("\n[green]Keycloak setup complete.[/green]")


@app.command(name="verify-flow")
def verify_flow_command(
    api_url: str = typer.Option("http://localhost:5556", help="Base URL of the API"),
    email: str = typer.Option("testuser@example.com", help="Test user email"),
    password: str = typer.Option("password", help="Test user password"),
) -> None:
    """
    Smoke-test login, post creation and the unauthorized path.
    """
    try:
        report = verify_flow(api_url, email, password)
    except FlowCheckFailed as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from e
    except httpx.HTTPError as e:
        console.print(f"[red]Cannot reach API at {api_url}: {e}[/red]")
        raise typer.Exit(1) from e

    for step in report.steps:
        console.print(f"[green]ok[/green] {step}")
    if report.post:
        console.print(report.post)
    console.print("\n[bold green]Verification passed![/bold green]")


async def _check_db(subject: str | None = None):
    from src.murasaki.core.services.database.db_session import DbSessionService
    from src.murasaki.entities.core.user import UserRepository
    from src.murasaki.entities.service.post import PostRepository

    db_service = DbSessionService()
    try:
        async with db_service.get_session() as session:
            users = UserRepository(session)
            user = await users.get_by_subject(subject) if subject else None
            return (
                await users.count(),
                await PostRepository(session).count(),
                user,
            )
    finally:
        await db_service.dispose()


@app.command(name="check-db")
def check_db(
    subject: str | None = typer.Option(
        None, help="Also show the local user mirrored for this identity-provider subject"
    ),
) -> None:
    """
    Connect to the configured database and count users and posts.
    """
    from sqlalchemy.exc import SQLAlchemyError

    try:
        users, posts, user = asyncio.run(_check_db(subject))
    except SQLAlchemyError as e:
        console.print(f"[red]Error connecting to database: {e}[/red]")
        raise typer.Exit(1) from e

    table = Table(title="Database")
    table.add_column("Table")
    table.add_column("Rows", justify="right")
    table.add_row("users", str(users))
    table.add_row("posts", str(posts))
    console.print("[green]Successfully connected to the database[/green]")
    console.print(table)

    if subject:
        if user is None:
            console.print(f"[yellow]No local user for subject {subject}[/yellow]")
        else:
            console.print(
                f"User {user.id}: email={user.email} "
                f"name={user.first_name} {user.last_name}"
            )


@app.command(name="init-db")
def init_db_command() -> None:
    """
    Create all database tables.
    """
    from src.murasaki.runtime.init_db import init_db

    init_db()
    console.print("[green]Database tables created[/green]")


@app.command(name="start-server")
def start_server(
    host: str | None = typer.Option(None, help="Host to bind (default from config)"),
    port: int | None = typer.Option(None, help="Port to bind (default from config)"),
    reload: bool = typer.Option(True, help="Enable auto-reload on code changes"),
    log_level: str = typer.Option(
        "info", help="Log level (debug, info, warning, error, critical)"
    ),
) -> None:
    """
    Start the API with uvicorn.
    """
    from src.murasaki.runtime.context import get_config

    app_config = get_config().app
    host = host or app_config.host
    port = port or app_config.port

    cmd = [
        sys.executable,
        "-m",
        "uvicorn",
        "src.murasaki.api.http.app:app",
        "--host",
        host,
        "--port",
        str(port),
        "--log-level",
        log_level,
        "--no-access-log",
    ]
    if reload:
        cmd.extend(["--reload", "--reload-dir", "src"])

    console.print(f"[blue]Running:[/blue] {' '.join(cmd)}")
    console.print(f"[blue]Server will be available at:[/blue] http://{host}:{port}")
    console.print("[dim]Press Ctrl+C to stop the server[/dim]")

    try:
        run_command(cmd)
    except KeyboardInterrupt:
        console.print("\n[yellow]Server stopped by user[/yellow]")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
