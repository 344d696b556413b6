"""Signal/affinity CLI commands."""

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_components

console = Console()


@click.group()
def signals():
    """Behavioral signals and topic affinity."""
    pass


@signals.command("show")
def signals_show():
    """Show per-topic affinity scores."""
    c = get_components()
    scores = c["scorer"].affinity_scores()
    total = c["local"].signals.count()
    if not scores:
        console.print(f"[dim]No topic affinity yet ({total} signals recorded).[/]")
        return

    table = Table(title=f"Topic affinity ({total} signals)")
    table.add_column("Topic", style="cyan")
    table.add_column("Score", justify="right")
    for topic, score in sorted(scores.items(), key=lambda kv: kv[1], reverse=True):
        style = "green" if score > 0 else "red" if score < 0 else "dim"
        table.add_row(topic, f"[{style}]{score:+d}[/{style}]")
    console.print(table)
