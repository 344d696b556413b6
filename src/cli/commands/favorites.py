"""Favorites CLI commands."""

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_components, run_async

console = Console()


@click.group()
def fav():
    """Favorite quotes."""
    pass


@fav.command("add")
@click.argument("quote_id")
def fav_add(quote_id: str):
    """Favorite a quote."""
    c = get_components()
    if quote_id not in c["catalog"]:
        console.print(f"[red]Unknown quote:[/] {quote_id}")
        raise SystemExit(1)

    async def add(c):
        return await c["app"].favorite(quote_id)

    if run_async(c, add):
        console.print(f"[green]Favorited[/] {quote_id}")
    else:
        console.print(f"[dim]{quote_id} is already a favorite[/]")


@fav.command("remove")
@click.argument("quote_id")
def fav_remove(quote_id: str):
    """Unfavorite a quote."""
    c = get_components()

    async def remove(c):
        return await c["app"].unfavorite(quote_id)

    if run_async(c, remove):
        console.print(f"Removed {quote_id} from favorites")
    else:
        console.print(f"[dim]{quote_id} was not a favorite[/]")


@fav.command("list")
def fav_list():
    """List favorites, newest first."""
    c = get_components()
    marks = c["local"].favorites.all()
    if not marks:
        console.print("[yellow]No favorites yet.[/]")
        return

    table = Table(title="Favorites")
    table.add_column("Quote", style="cyan")
    table.add_column("Author")
    table.add_column("Saved", style="dim")
    for mark in marks:
        quote = c["catalog"].get(mark.quote_id)
        table.add_row(mark.quote_id, quote.author if quote else "?", f"{mark.saved_at:%Y-%m-%d}")
    console.print(table)
