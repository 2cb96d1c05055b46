"""Shared utilities for CLI commands."""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

import typer
from rich.console import Console

from src.gs1link.core.errors import Gs1LinkError, ValidationError
from src.gs1link.core.services import (
    AssetStore,
    DbSessionService,
    IdentityResolver,
    LinkEncoder,
    ProductUpsertService,
    build_asset_store,
)
from src.gs1link.entities.service.product import ProductRepository
from src.gs1link.runtime.context import get_config

# Initialize Rich console for colored output
console = Console()


@dataclass
class CliServices:
    repository: ProductRepository
    resolver: IdentityResolver
    upsert: ProductUpsertService
    encoder: LinkEncoder
    assets: AssetStore


@contextmanager
def open_services() -> Iterator[CliServices]:
    """Wire the same services the API uses, for one CLI invocation."""
    config = get_config()
    database = DbSessionService(config)
    assets = build_asset_store(config)
    session = database.get_session()
    repository = ProductRepository(session)
    try:
        yield CliServices(
            repository=repository,
            resolver=IdentityResolver(repository),
            upsert=ProductUpsertService(
                repository, assets, uploads=config.uploads, gtin_config=config.gtin
            ),
            encoder=LinkEncoder(config.app.origin, config.symbols),
            assets=assets,
        )
    finally:
        session.close()
        assets.close()
        database.dispose()


def link_encoder() -> LinkEncoder:
    """Encoder for commands that only render symbols and need no store."""
    config = get_config()
    return LinkEncoder(config.app.origin, config.symbols)

def fail(error: Gs1LinkError) -> None:
    """Print a domain error and exit with a non-zero status."""
    console.print(f"[red]❌ {error.message}[/red]")
    if isinstance(error, ValidationError):
        for field_error in error.errors:
            console.print(f"[red]   {field_error.field}: {field_error.message}[/red]")
    raise typer.Exit(1)
