"""Preferences CLI commands."""

from datetime import date

import click
from rich.console import Console

from cli.utils import get_components, run_async
from storage.engagement import is_significant_time_difference, should_recalculate_timing

console = Console()


@click.group()
def prefs():
    """User preferences."""
    pass


@prefs.command("show")
def prefs_show():
    """Show saved preferences."""
    c = get_components()
    p = c["local"].preferences.get()
    if not p:
        console.print("[yellow]Not onboarded yet. Run 'quotidian prefs set'.[/]")
        return
    console.print(f"[bold]Name:[/] {p.name}")
    console.print(f"[bold]Notification time:[/] {p.notification_time}")
    console.print(f"[bold]Onboarded:[/] {p.onboarded_at:%Y-%m-%d}")
    if p.algorithm_enabled_at:
        console.print(f"[bold]Personalized since:[/] {p.algorithm_enabled_at:%Y-%m-%d}")


@prefs.command("set")
@click.option("--name", required=True, help="Display name")
@click.option("--time", "notification_time", default="08:00", show_default=True, help="HH:MM")
def prefs_set(name: str, notification_time: str):
    """Save name and notification time."""
    c = get_components()

    async def save(c):
        return await c["app"].save_preferences(name, notification_time)

    try:
        run_async(c, save)
    except ValueError as e:
        console.print(f"[red]{e}[/]")
        raise SystemExit(1)
    console.print("[green]Preferences saved.[/]")


@prefs.command("suggest-time")
def prefs_suggest_time():
    """Suggest a notification time from engagement history."""
    c = get_components()
    local = c["local"]
    suggested = local.engagement.calculate_optimal_time()
    if not suggested:
        console.print("[dim]Not enough engagement data yet.[/]")
        return

    current = local.preferences.get()
    console.print(f"Suggested notification time: [cyan]{suggested}[/]")
    if current and is_significant_time_difference(suggested, current.notification_time):
        console.print(f"[yellow]Differs from your current time ({current.notification_time}).[/]")
    if should_recalculate_timing(local.preferences.last_timing_calculation_date()):
        local.preferences.save_timing_calculation_date(date.today().isoformat())
