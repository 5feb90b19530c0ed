"""CLI entry point for screenboard."""

from __future__ import annotations

import logging
import sys
from typing import Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from screenboard.capture.runner import CaptureOptions
from screenboard.config_loader import LoadedConfig, load_config
from screenboard.errors import ScreenboardError
from screenboard.orchestrator import Orchestrator
from screenboard.studio.server import run_studio_server

console = Console()


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load(ctx: click.Context) -> LoadedConfig:
    try:
        return load_config(".", ctx.obj["config"])
    except FileNotFoundError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(1)
    except ValidationError as e:
        console.print(f"[red]Invalid config:[/red]\n{escape(str(e))}")
        sys.exit(1)


def _build(ctx: click.Context, loaded: LoadedConfig) -> None:
    opts = ctx.obj
    options = CaptureOptions(
        base_url=opts["base_url"],
        out_dir=opts["out_dir"],
        headless=opts["headless"] if opts["headless"] is not None else True,
        debug=opts["verbose"],
    )
    try:
        results = Orchestrator(loaded.config, options).run_build()
    except ScreenboardError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(1)

    console.print("\n[bold green]Board Complete[/bold green]")
    table = Table(title="Build Summary")
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    table.add_row("Screenshots", str(results["screens"]))
    table.add_row("Flows", str(results["flows"]))
    table.add_row("Discovered URLs", str(results["discovered_urls"]))
    table.add_row("Duration", f"{results['duration']}s")
    console.print(table)
    console.print(f"  Board generated in [blue]{results['out_dir']}[/blue]")


def _studio(ctx: click.Context, loaded: LoadedConfig, open_browser: bool) -> None:
    opts = ctx.obj
    run_studio_server(
        loaded.config,
        port=opts["port"],
        base_url=opts["base_url"],
        out_dir=opts["out_dir"],
        open_browser=open_browser,
    )


@click.group(invoke_without_command=True)
@click.option("--config", "-c", "config_path", default=None, help="Config file path")
@click.option("--base-url", default=None, help="Base URL for the app")
@click.option("--out-dir", default=None, help="Output directory")
@click.option("--port", default=7331, show_default=True, help="Studio port")
@click.option("--headless/--no-headless", default=None, help="Run the browser headless")
@click.option("--open", "open_browser", is_flag=True, help="Open Studio in the browser")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[str],
    base_url: Optional[str],
    out_dir: Optional[str],
    port: int,
    headless: Optional[bool],
    open_browser: bool,
    verbose: bool,
) -> None:
    """Generate a visual map of UI screens and flows."""
    setup_logging(verbose)
    ctx.obj = {
        "config": config_path,
        "base_url": base_url,
        "out_dir": out_dir,
        "port": port,
        "headless": headless,
        "open": open_browser,
        "verbose": verbose,
    }
    if ctx.invoked_subcommand is not None:
        return

    loaded = _load(ctx)
    if loaded.has_any:
        _build(ctx, loaded)
    else:
        console.print("[yellow]No config found, starting Studio[/yellow]")
        _studio(ctx, loaded, open_browser=True)


@cli.command()
@click.pass_context
def build(ctx: click.Context) -> None:
    """Capture screens and flows and write the manifest."""
    _build(ctx, _load(ctx))


@cli.command()
@click.pass_context
def studio(ctx: click.Context) -> None:
    """Launch the Studio API for interactive capture and recording."""
    _studio(ctx, _load(ctx), open_browser=ctx.obj["open"])


if __name__ == "__main__":
    cli()
