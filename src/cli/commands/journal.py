"""Journal CLI commands."""

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_components, run_async

console = Console()


@click.group()
def journal():
    """Reflections on quotes."""
    pass


@journal.command("write")
@click.argument("quote_id")
@click.argument("content", required=False)
def journal_write(quote_id: str, content: str):
    """Write or update the reflection for a quote. Opens editor if no content provided."""
    c = get_components()
    if quote_id not in c["catalog"]:
        console.print(f"[red]Unknown quote:[/] {quote_id}")
        raise SystemExit(1)

    if not content:
        existing = c["local"].journal.get(quote_id)
        content = click.edit(existing.content if existing else "")
        if not content or not content.strip():
            console.print("[yellow]No content provided, cancelled.[/]")
            return

    async def write(c):
        return await c["app"].reflect(quote_id, content.strip())

    try:
        is_new = run_async(c, write)
    except ValueError as e:
        console.print(f"[red]{e}[/]")
        raise SystemExit(1)
    console.print(f"[green]{'Saved' if is_new else 'Updated'}[/] reflection for {quote_id}")


@journal.command("show")
@click.argument("quote_id")
def journal_show(quote_id: str):
    """Show the reflection for a quote."""
    c = get_components()
    entry = c["local"].journal.get(quote_id)
    if not entry:
        console.print(f"[yellow]No reflection for {quote_id}[/]")
        return
    quote = c["catalog"].get(quote_id)
    if quote:
        console.print(f"[dim]“{quote.text}” — {quote.author}[/]\n")
    console.print(entry.content)
    console.print(f"\n[dim]updated {entry.updated_at:%Y-%m-%d %H:%M}[/]")


@journal.command("list")
@click.option("-n", "--limit", default=10, help="Number of entries")
def journal_list(limit: int):
    """List recent reflections."""
    c = get_components()
    entries = c["local"].journal.recent(limit)
    if not entries:
        console.print("[yellow]No reflections yet.[/]")
        return

    table = Table(title=f"Reflections ({c['local'].journal.count()} total)")
    table.add_column("Quote", style="cyan")
    table.add_column("Updated", style="dim")
    table.add_column("Reflection")
    for entry in entries:
        preview = entry.content[:60] + ("…" if len(entry.content) > 60 else "")
        table.add_row(entry.quote_id, f"{entry.updated_at:%Y-%m-%d}", preview)
    console.print(table)
