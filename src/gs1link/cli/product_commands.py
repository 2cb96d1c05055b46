"""Product registry CLI commands."""

from pathlib import Path

import typer
from rich.panel import Panel
from rich.table import Table

from src.gs1link.core.errors import Gs1LinkError
from src.gs1link.core.gtin import validate_gtin
from src.gs1link.core.services import select_symbology
from src.gs1link.entities.service.product import Product

from .utils import console, fail, link_encoder, open_services

products_app = typer.Typer(help="📦 Product registry commands")


def _product_panel(product: Product, link: str) -> Panel:
    lines = [
        f"[bold]{product.product_name}[/bold]",
        f"GTIN: [cyan]{product.gtin}[/cyan]  ({select_symbology(product.gtin).upper()})",
        f"ID: [dim]{product.id}[/dim]",
    ]
    for label, value in (
        ("Brand", product.brand),
        ("Category", product.category),
        ("Weight", product.weight),
        ("Origin", product.origin),
        ("Image", product.image_url),
    ):
        if value:
            lines.append(f"{label}: {value}")
    lines.append(f"Link: [green]{link}[/green]")
    return Panel.fit("\n".join(lines), border_style="cyan")


@products_app.command("check")
def check(gtin: str = typer.Argument(..., help="GTIN to look up")) -> None:
    """🔎 Tell whether a GTIN is already registered."""
    with open_services() as services:
        try:
            resolution = services.resolver.resolve(gtin)
        except Gs1LinkError as e:
            fail(e)

        if resolution.exists:
            console.print(f"[yellow]GTIN {gtin} is registered[/yellow]")
            console.print(_product_panel(resolution.product, services.encoder.link_for(gtin)))
        else:
            console.print(f"[green]GTIN {gtin} is new[/green]")
        console.print(f"[dim]Allowed actions: {', '.join(resolution.allowed_actions)}[/dim]")


@products_app.command("list")
def list_products() -> None:
    """📋 List registered products, newest first."""
    with open_services() as services:
        try:
            products = services.repository.list_all()
        except Gs1LinkError as e:
            fail(e)

        if not products:
            console.print("[yellow]No products registered[/yellow]")
            return

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("GTIN", style="cyan")
        table.add_column("Name", style="green")
        table.add_column("Brand", style="blue")
        table.add_column("Created", style="dim")
        table.add_column("ID", style="dim")
        for product in products:
            table.add_row(
                product.gtin,
                product.product_name,
                product.brand or "",
                product.created_at.strftime("%Y-%m-%d"),
                product.id,
            )
        console.print(table)
        console.print(f"\n[dim]Showing {len(products)} products[/dim]")


@products_app.command("show")
def show(gtin: str = typer.Argument(..., help="GTIN of the product")) -> None:
    """🏷️ Show one product and its canonical link."""
    with open_services() as services:
        try:
            resolution = services.resolver.resolve(gtin)
        except Gs1LinkError as e:
            fail(e)
        if not resolution.exists:
            console.print(f"[red]❌ No product found with GTIN {gtin}[/red]")
            raise typer.Exit(1)
        console.print(_product_panel(resolution.product, services.encoder.link_for(gtin)))


@products_app.command("delete")
def delete(
    product_id: str = typer.Argument(..., help="Product id (not the GTIN)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """🗑️ Delete a product and its image."""
    if not yes and not typer.confirm(f"Delete product {product_id}?"):
        raise typer.Abort()
    with open_services() as services:
        try:
            removed = services.upsert.delete(product_id)
        except Gs1LinkError as e:
            fail(e)
        console.print(f"[green]✅ Deleted {removed.product_name} ({removed.gtin})[/green]")


@products_app.command("barcode")
def barcode(
    gtin: str = typer.Argument(..., help="GTIN to encode"),
    output: Path = typer.Option(None, "--output", "-o", help="Target SVG file"),
) -> None:
    """▮▯ Write the linear barcode of a GTIN as SVG."""
    try:
        validate_gtin(gtin)
        symbol = link_encoder().render_barcode(gtin)
    except Gs1LinkError as e:
        fail(e)
    target = output or Path(symbol.filename)
    target.write_bytes(symbol.data)
    console.print(f"[green]✅ {symbol.symbology.upper()} barcode written to {target}[/green]")


@products_app.command("qr")
def qr(
    gtin: str = typer.Argument(..., help="GTIN whose canonical link to encode"),
    output: Path = typer.Option(None, "--output", "-o", help="Target .png or .svg file"),
) -> None:
    """🔳 Write the QR code of a GTIN's canonical link."""
    kind = "svg" if output is not None and output.suffix.lower() == ".svg" else "png"
    encoder = link_encoder()
    try:
        validate_gtin(gtin)
        symbol = encoder.render_qr(gtin, kind=kind)
        link = encoder.link_for(gtin)
    except Gs1LinkError as e:
        fail(e)
    target = output or Path(symbol.filename)
    target.write_bytes(symbol.data)
    console.print(f"[green]✅ QR code for {link} written to {target}[/green]")
