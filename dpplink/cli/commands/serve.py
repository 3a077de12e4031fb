"""``dpplink serve``: run the HTTP resolver under uvicorn."""

from __future__ import annotations

import typer
import uvicorn

from dpplink.cli.runtime import console, settings_with
from dpplink.server.app import create_app


def serve_cmd(
    host: str = typer.Option(None, "--host", help="Bind address (default: DPP_HOST)."),
    port: int = typer.Option(None, "--port", "-p", help="Port (default: DPP_PORT)."),
    ledger_db: str = typer.Option(None, "--ledger", "-l", help="Path to the ledger SQLite database."),
    links_db: str = typer.Option(None, "--links", help="Path to the link directory database."),
) -> None:
    """Serve ``/resolver/01/{gtin}/10/{lot}/21/{serial}`` and ``/health``."""
    settings = settings_with(ledger_db, links_db)
    bind_host = host or settings.host
    bind_port = port or settings.port
    console.print(
        f"[bold cyan]Resolver listening on http://{bind_host}:{bind_port}[/bold cyan] "
        f"[dim](ledger={settings.ledger_path}, links={settings.links_db_path})[/dim]"
    )
    uvicorn.run(
        create_app(settings=settings),
        host=bind_host,
        port=bind_port,
        log_level=settings.log_level.lower(),
    )
