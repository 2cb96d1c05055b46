"""Main CLI application module."""

import typer

from src.gs1link.runtime.context import get_config
from src.gs1link.runtime.init_db import init_db
from src.gs1link.runtime.log_setup import configure_logging

from .product_commands import products_app
from .utils import console

app = typer.Typer(
    help="🏷️  gs1link - GS1 product registry",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(products_app, name="products")


@app.command("init-db")
def init_db_command() -> None:
    """🗄️ Create the database tables."""
    init_db()
    console.print("[green]✅ Database initialized[/green]")


@app.command("serve")
def serve(
    host: str = typer.Option(None, help="Bind address (defaults to app.host)"),
    port: int = typer.Option(None, help="Port (defaults to app.port)"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
) -> None:
    """🚀 Run the HTTP API with uvicorn."""
    import uvicorn

    config = get_config()
    configure_logging(config)
    uvicorn.run(
        "src.gs1link.api.http.app:build_app",
        factory=True,
        host=host or config.app.host,
        port=port or config.app.port,
        reload=reload,
        access_log=False,
    )


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
