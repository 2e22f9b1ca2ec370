"""Development server command."""

import typer
import uvicorn
from rich.panel import Panel

from src.bookshelf.runtime.context import get_config

from .index_commands import console

server_app = typer.Typer(help="🚀 Run the HTTP API")


@server_app.command("start")
def start_server(
    host: str | None = typer.Option(None, help="Host to bind the server to (defaults to config)"),
    port: int | None = typer.Option(None, help="Port to bind the server to (defaults to config)"),
    reload: bool = typer.Option(False, help="Enable auto-reload on code changes"),
) -> None:
    """Start the FastAPI server with uvicorn."""
    config = get_config()
    console.print(
        Panel.fit(
            "[bold green]Starting Bookshelf API[/bold green]",
            border_style="green",
        )
    )
    uvicorn.run(
        "src.bookshelf.api.http.app:app",
        host=host or config.app.host,
        port=port or config.app.port,
        reload=reload,
        access_log=False,  # Request logging happens in middleware
    )
