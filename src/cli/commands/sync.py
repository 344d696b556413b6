"""Sync CLI commands."""

import asyncio

import click
from rich.console import Console
from rich.table import Table

from cli.utils import check_connectivity, get_components, run_async
from observability import log_run_summary, metrics
from sync import RemoteError, SyncListeners

console = Console()


def _require_remote(c: dict) -> None:
    if not c["ctx"].configured:
        console.print("[yellow]No remote backend configured; running local-only.[/]")
        raise SystemExit(0)


@click.group()
def sync():
    """Sync with the remote store."""
    pass


@sync.command("status")
def sync_status():
    """Show connectivity, session and pending work."""
    c = get_components()

    async def status(c):
        online = c["connectivity"].online
        return online, (await c["ctx"].user_id()) if online else None

    online, user_id = run_async(c, status)
    console.print(f"[bold]Remote:[/] {'configured' if c['ctx'].configured else 'not configured'}")
    console.print(f"[bold]Online:[/] {'yes' if online else 'no'}")
    if user_id:
        signed_in = "yes"
    elif c["ctx"].signed_in:
        signed_in = "session held, not verified"
    else:
        signed_in = "no"
    console.print(f"[bold]Signed in:[/] {signed_in}")

    pending = c["sync"].queue.pending()
    console.print(f"[bold]Pending syncs:[/] {len(pending)}")
    for entry in pending:
        console.print(f"  • {entry.type} [dim](queued {entry.created_at:%Y-%m-%d %H:%M})[/]")


@sync.command("run")
def sync_run():
    """Drain queued syncs now."""
    c = get_components()
    _require_remote(c)

    async def drain(c):
        return await c["sync"].process_pending_syncs()

    result = run_async(c, drain)
    log_run_summary()
    console.print(f"Processed: [green]{result.processed}[/]  Failed: [red]{result.failed}[/]")
    for error in result.errors:
        console.print(f"  [red]{error}[/]")
    if result.failed:
        raise SystemExit(1)


@sync.command("all")
@click.option("--conflicts", "show_conflicts", is_flag=True, help="Show conflict decisions")
def sync_all(show_conflicts: bool):
    """Full two-way sync of every data type."""
    c = get_components()
    _require_remote(c)

    async def full(c):
        return await c["sync"].sync_all()

    result = run_async(c, full)
    table = Table(title="Sync")
    table.add_column("Type", style="cyan")
    table.add_column("Result")
    table.add_column("Rows", justify="right")
    for sync_type, r in result.results.items():
        status = "[green]ok[/]" if r.success else f"[red]{r.error}[/]"
        table.add_row(str(sync_type), status, str(r.count or 0))
    console.print(table)

    if show_conflicts:
        summary = c["ctx"].resolver.summary()
        console.print(
            f"Conflicts: {summary['total']} "
            f"(local {summary['by_winner']['local']}, remote {summary['by_winner']['remote']})"
        )
        for record in c["ctx"].resolver.records():
            console.print(f"  {record.type}:{record.key} → {record.winner}")
    console.print(f"[dim]{metrics.get('conflicts.resolved')} conflict checks[/]")
    if not result.success:
        raise SystemExit(1)


@sync.command("link")
@click.argument("email")
def sync_link(email: str):
    """Email a sign-in link."""
    c = get_components()
    _require_remote(c)

    async def send(c):
        await c["auth"].sign_in_with_link(email)

    try:
        run_async(c, send)
    except RemoteError as e:
        console.print(f"[red]{e.message}[/]")
        raise SystemExit(1)
    console.print("Check your inbox. Put the access token in config as remote.access_token.")


@sync.command("watch")
@click.option("--interval", type=float, default=None, help="Seconds between connectivity probes")
def sync_watch(interval):
    """Stay running: drain the queue on reconnect, full sync on sign-in."""
    c = get_components()
    _require_remote(c)
    poll = interval or c["config_model"].sync.poll_interval_seconds
    shown = {"pending": None}

    def show_pending(count: int):
        if count != shown["pending"]:
            shown["pending"] = count
            console.print(f"[dim]Pending syncs: {count}[/]")

    async def watch(c):
        listeners = SyncListeners(
            c["sync"], c["connectivity"], auth=c["auth"], poll_interval=poll, on_pending_count=show_pending
        )
        listeners.start()
        try:
            # leftovers from an earlier offline session
            await c["sync"].process_pending_syncs()
            while True:
                await asyncio.sleep(poll)
                await check_connectivity(c)
        finally:
            await listeners.stop()
            log_run_summary()

    console.print("Watching for connectivity changes. Press Ctrl+C to stop")
    try:
        run_async(c, watch)
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped[/]")
