"""Main CLI application module."""

import typer

from .index_commands import index_app
from .server_commands import server_app

# Create the main CLI application
app = typer.Typer(
    help="📚 Bookshelf CLI - database, search index and server commands",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Register command groups
app.add_typer(index_app, name="index")
app.add_typer(server_app, name="server")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
