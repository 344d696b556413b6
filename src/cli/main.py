"""CLI entry point for quotidian."""

import click
from rich.console import Console

from cli.commands.favorites import fav
from cli.commands.journal import journal
from cli.commands.journeys import journey
from cli.commands.prefs import prefs
from cli.commands.quotes import quote
from cli.commands.signals import signals
from cli.commands.sync import sync
from cli.config import load_config_model
from cli.logging_config import setup_logging

console = Console()


@click.group()
@click.version_option(version="0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """Quotidian - a daily quote to reflect on."""
    try:
        config = load_config_model()
    except ValueError as e:
        console.print(f"[red]Config error:[/] {e}")
        raise SystemExit(1)
    log_cfg = config.logging
    setup_logging(
        json_mode=log_cfg.json_mode,
        level="DEBUG" if verbose else log_cfg.level,
        log_file=config.paths.log_file,
        file_level=log_cfg.file_level,
    )


cli.add_command(quote)
cli.add_command(journal)
cli.add_command(journey)
cli.add_command(fav)
cli.add_command(prefs)
cli.add_command(signals)
cli.add_command(sync)


if __name__ == "__main__":
    cli()
