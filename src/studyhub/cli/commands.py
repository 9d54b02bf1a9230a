"""CLI commands for the StudyHub backend.

Commands:
- serve: run the Web API with uvicorn
- init-db: create the local SQLite schema
- show-config: print the effective configuration
"""

from pathlib import Path

import typer
import uvicorn
from rich.console import Console
from rich.table import Table

from studyhub.config.app_config import get_config_path, load_app_config
from studyhub.db.database import init_db as do_init_db

app = typer.Typer(
    name="studyhub",
    help="Study management backend: classes, quizzes, flashcards and progress.",
    no_args_is_help=True,
)

console = Console()


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address (default: from config)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port (default: from config)"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the Web API."""
    config = load_app_config()
    host = host or config.server.host
    port = port or config.server.port

    console.print(f"[blue]Starting StudyHub API on http://{host}:{port}[/blue]")
    console.print(f"  [dim]backend:[/dim] {config.backend.kind}")
    uvicorn.run("studyhub.web.api:app", host=host, port=port, reload=reload)


@app.command(name="init-db")
def init_db(
    path: Path | None = typer.Option(None, "--path", help="Database file (default: from config)"),
) -> None:
    """Create the SQLite schema if it does not exist."""
    config = load_app_config()
    if path is None and config.backend.kind != "sqlite":
        console.print("[yellow]⚠ Backend is not sqlite; nothing to initialize[/yellow]")
        raise typer.Exit(code=1)

    db_path = do_init_db(path or Path(config.backend.sqlite_path))
    console.print("[green]✓ Database ready[/green]")
    console.print(f"  [dim]path:[/dim] {db_path}")


@app.command(name="show-config")
def show_config() -> None:
    """Print the effective configuration."""
    try:
        config = load_app_config(force_reload=True)
    except ValueError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    source = get_config_path()
    console.print(f"[dim]source:[/dim] {source if source.exists() else 'built-in defaults'}")

    table = Table(show_header=True, header_style="bold")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("backend.kind", config.backend.kind)
    if config.backend.kind == "sqlite":
        table.add_row("backend.sqlite_path", config.backend.sqlite_path)
    else:
        table.add_row("backend.supabase_url_env", config.backend.supabase_url_env)
        table.add_row("backend.supabase_key_env", config.backend.supabase_key_env)
    table.add_row("auth.jwt_secret_env", config.auth.jwt_secret_env)
    table.add_row("auth.access_token_ttl_minutes", str(config.auth.access_token_ttl_minutes))
    table.add_row("auth.client_url", config.auth.client_url)
    table.add_row("server.host", config.server.host)
    table.add_row("server.port", str(config.server.port))
    table.add_row("server.cors_origins", ", ".join(config.server.cors_origins))

    console.print(table)


if __name__ == "__main__":
    app()
