"""Quote CLI commands."""

import click
from rich.console import Console
from rich.panel import Panel

from cli.utils import get_components, run_async

console = Console()


def render_quote(quote) -> Panel:
    attribution = f"— {quote.author}"
    if quote.source:
        attribution += f", [italic]{quote.source}[/]"
    themes = f"\n[dim]{', '.join(quote.themes)}[/]" if quote.themes else ""
    return Panel(f"“{quote.text}”\n\n{attribution}{themes}", title=f"[cyan]{quote.id}[/]")


@click.group()
def quote():
    """Daily quotes."""
    pass


@quote.command("today")
def quote_today():
    """Show today's quote (records the view)."""
    c = get_components()

    async def show(c):
        return await c["app"].open_today()

    console.print(render_quote(run_async(c, show)))


@quote.command("another")
@click.option("--current", "current_id", help="Id of the quote being skipped")
def quote_another(current_id):
    """Skip to another quote (max 3 per day)."""
    c = get_components()

    async def another(c):
        return await c["app"].another(current_id)

    result = run_async(c, another)
    if result is None:
        console.print("[yellow]No more fresh quotes today. Come back tomorrow.[/]")
        return
    console.print(render_quote(result))


@quote.command("next")
def quote_next():
    """Preview the scorer's pick without recording a view."""
    c = get_components()
    console.print(render_quote(c["scorer"].select_next()))


@quote.command("show")
@click.argument("quote_id")
def quote_show(quote_id):
    """Show a quote by id."""
    c = get_components()
    found = c["catalog"].get(quote_id)
    if not found:
        console.print(f"[red]Unknown quote:[/] {quote_id}")
        raise SystemExit(1)
    console.print(render_quote(found))
