"""Primary store and search index maintenance commands."""

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from src.bookshelf.core.services import BookService, DbSessionService
from src.bookshelf.core.storage import SearchIndexError, get_search_index
from src.bookshelf.runtime.context import get_config
from src.bookshelf.runtime.init_db import init_db as create_tables

console = Console()

index_app = typer.Typer(help="🔎 Manage the book table and its search index")


@index_app.command("init-db")
def init_db() -> None:
    """Create the database tables."""
    create_tables()
    console.print("[green]✅ Database tables created[/green]")


@index_app.command("ensure")
def ensure_index(
    recreate: bool = typer.Option(
        False, "--recreate", help="Drop the index first and create it from scratch"
    ),
) -> None:
    """Create the search index with the book mapping if it is missing."""
    config = get_config()
    try:
        search_index = get_search_index(config.search, config.app.environment)
    except SearchIndexError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(code=1) from e

    search_index.ensure_index(recreate=recreate)
    console.print(f"[green]✅ Index '{config.search.index_name}' ready[/green]")


@index_app.command("reindex")
def reindex(
    batch_size: int | None = typer.Option(
        None, "--batch-size", "-b", help="Books per bulk request (defaults to config)"
    ),
    recreate: bool = typer.Option(
        False, "--recreate", help="Drop and recreate the index before reindexing"
    ),
) -> None:
    """Rebuild the search index from the primary store.

    Repairs any divergence left behind by index writes that failed after the
    database commit.
    """
    config = get_config()
    console.print(
        Panel.fit(
            f"[bold blue]Reindexing books into '{config.search.index_name}'[/bold blue]",
            border_style="blue",
        )
    )

    try:
        search_index = get_search_index(config.search, config.app.environment)
    except SearchIndexError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(code=1) from e

    search_index.ensure_index(recreate=recreate)

    database_service = DbSessionService()
    with database_service.session_scope() as session:
        total = BookService(session, search_index).reindex(
            batch_size or config.search.reindex_batch_size
        )

    table = Table(title="Reindex summary")
    table.add_column("Index", style="cyan")
    table.add_column("Books", style="green", justify="right")
    table.add_row(config.search.index_name, str(total))
    console.print(table)
