"""Journey CLI commands."""

import click
from rich.console import Console
from rich.table import Table

from cli.commands.quotes import render_quote
from cli.utils import get_components, run_async

console = Console()


@click.group()
def journey():
    """Guided multi-day journeys."""
    pass


@journey.command("list")
def journey_list():
    """Available journeys and the one in progress."""
    c = get_components()
    app = c["app"]
    active = c["local"].journeys.active()

    table = Table(title="Journeys")
    table.add_column("Id", style="cyan")
    table.add_column("Journey")
    table.add_column("Days", justify="right")
    table.add_column("Status")
    completed_ids = {j.journey_id for j in c["local"].journeys.completed()}
    for definition in app.journeys.values():
        if active and active.journey_id == definition.id:
            status = f"[green]day {active.day}[/]"
        elif definition.id in completed_ids:
            status = "[dim]completed[/]"
        else:
            status = ""
        title = f"{definition.emoji} {definition.title}".strip()
        table.add_row(definition.id, title, str(definition.duration), status)
    console.print(table)


@journey.command("start")
@click.argument("journey_id")
def journey_start(journey_id: str):
    """Begin a journey."""
    c = get_components()
    try:
        started = c["app"].start_journey(journey_id)
    except ValueError as e:
        console.print(f"[red]{e}[/]")
        raise SystemExit(1)
    definition = c["app"].journeys[started.journey_id]
    console.print(f"[green]Started[/] {definition.title}: {definition.duration} days")


@journey.command("today")
def journey_today():
    """Show the active journey's quote for today."""
    c = get_components()

    async def show(c):
        return await c["app"].journey_quote()

    result = run_async(c, show)
    if result is None:
        console.print("[yellow]No journey in progress.[/] Start one with 'quotidian journey start'.")
        return
    active = c["local"].journeys.active()
    definition = c["app"].journeys.get(active.journey_id)
    if definition:
        console.print(f"[bold]{definition.title}[/] day {active.day} of {definition.duration}")
    console.print(render_quote(result))


@journey.command("next")
def journey_next():
    """Move on to the next day."""
    c = get_components()
    result = c["app"].advance_journey()
    if result is None:
        console.print("[yellow]No journey in progress.[/]")
    elif result.completed_at:
        console.print(f"[green]Journey complete![/] {len(result.quotes_shown)} quotes over {result.day} days.")
    else:
        console.print(f"Day {result.day}")


@journey.command("exit")
def journey_exit():
    """Abandon the active journey."""
    c = get_components()
    if c["app"].exit_journey():
        console.print("Journey exited")
    else:
        console.print("[dim]No journey in progress[/]")


@journey.command("done")
def journey_done():
    """Completed journeys."""
    c = get_components()
    completed = c["local"].journeys.completed()
    if not completed:
        console.print("[yellow]No completed journeys yet.[/]")
        return
    for entry in completed:
        definition = c["app"].journeys.get(entry.journey_id)
        title = definition.title if definition else entry.journey_id
        console.print(f"  • {title} [dim](finished {entry.completed_at:%Y-%m-%d})[/]")
