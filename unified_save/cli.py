"""
Unified Save CLI

Command-line interface for inspecting and serving save slots.
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from . import __version__
from .backends import SlotBackend, create_backend
from .config import load_config, create_default_config, UnifiedSaveConfig
from .errors import SnapshotFormatError
from .slots import SlotPolicy
from .snapshot.models import UnifiedSnapshot
from .telemetry import configure_telemetry


console = Console()

DEFAULT_CONFIG_FILE = "unified-save.yaml"


def _get_config(ctx) -> UnifiedSaveConfig:
    config_path = ctx.obj.get("config_path")
    if config_path:
        return load_config(config_path)
    if Path(DEFAULT_CONFIG_FILE).exists():
        return load_config(DEFAULT_CONFIG_FILE)
    return UnifiedSaveConfig()


def _get_backend(ctx) -> SlotBackend:
    config = _get_config(ctx)
    return create_backend(config.backend, config.settings)


async def _with_backend(backend: SlotBackend, operation):
    try:
        return await operation(backend)
    finally:
        await backend.aclose()


@click.group()
@click.version_option(__version__, prog_name="unified-save")
@click.option("--config", "-c", "config_path", type=click.Path(), help="Path to config file")
@click.pass_context
def cli(ctx, config_path: str):
    """Unified Save - snapshot slots for distributed application state"""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.command()
@click.option("--path", "-o", "output", default=DEFAULT_CONFIG_FILE, help="Where to write the config")
def init(output: str):
    """Initialize a new configuration file."""
    config_path = Path(output)

    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return

    config_path.write_text(create_default_config())
    console.print(f"[green]✓[/green] Created {config_path}")
    console.print("\nEdit the file to configure your slots, then run:")
    console.print(f"  [cyan]unified-save -c {config_path} slots list[/cyan]")


# =============================================================================
# Slot Commands
# =============================================================================

@cli.group()
def slots():
    """Inspect stored save slots."""
    pass


@slots.command("list")
@click.option("--prefix", "-p", default=None, help="Only keys starting with this prefix")
@click.pass_context
def slots_list(ctx, prefix: Optional[str]):
    """List stored slots."""
    backend = _get_backend(ctx)
    keys = asyncio.run(_with_backend(backend, lambda b: b.list_keys(prefix)))

    if not keys:
        console.print("[yellow]No slots stored[/yellow]")
        return

    table = Table(title=f"Slots ({backend.describe()})")
    table.add_column("Key", style="cyan")
    for key in keys:
        table.add_row(key)
    console.print(table)


@slots.command("show")
@click.argument("key")
@click.pass_context
def slots_show(ctx, key: str):
    """Show metadata and entries of a slot."""
    backend = _get_backend(ctx)
    raw = asyncio.run(_with_backend(backend, lambda b: b.load(key)))

    if raw is None:
        console.print(f"[red]✗[/red] Slot not found: {key}")
        sys.exit(1)

    try:
        snapshot = UnifiedSnapshot.from_json(raw)
    except SnapshotFormatError as e:
        console.print(f"[red]✗[/red] Unreadable slot: {e}")
        sys.exit(1)

    meta = snapshot.metadata
    console.print(Panel(
        f"[bold]Slot:[/bold] {meta.slot_key or key}\n"
        f"[bold]Format version:[/bold] {snapshot.format_version}\n"
        f"[bold]Captured:[/bold] {snapshot.captured_at}\n"
        f"[bold]Player:[/bold] {meta.player_name or '-'}\n"
        f"[bold]Location:[/bold] {meta.location or '-'}\n"
        f"[bold]Play time:[/bold] {meta.play_time_seconds:.0f}s",
        title=f"💾 {key}",
    ))

    table = Table(title="Entries")
    table.add_column("Subsystem", style="cyan")
    table.add_column("Kind")
    table.add_column("Size", justify="right")
    for entry in snapshot.entries:
        table.add_row(entry.subsystem_id, entry.payload_kind, str(len(entry.payload)))
    console.print(table)


@slots.command("delete")
@click.argument("key")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def slots_delete(ctx, key: str, yes: bool):
    """Delete a slot."""
    if not yes and not click.confirm(f"Delete slot {key}?"):
        return

    backend = _get_backend(ctx)
    if asyncio.run(_with_backend(backend, lambda b: b.delete(key))):
        console.print(f"[green]✓[/green] Deleted {key}")
    else:
        console.print(f"[red]✗[/red] Failed to delete {key}")
        sys.exit(1)


@slots.command("keys")
@click.pass_context
def slots_keys(ctx):
    """Show the slot keys derived from settings."""
    config = _get_config(ctx)
    policy = SlotPolicy(config.settings)

    table = Table(title="Slot Keys")
    table.add_column("Index", justify="right")
    table.add_column("Manual", style="cyan")
    table.add_column("Auto-save", style="green")

    if policy.use_save_slots:
        for i in range(policy.max_slots):
            table.add_row(str(i), policy.manual_key(i), policy.autosave_key(i))
    else:
        table.add_row("-", config.settings.manual_prefix, config.settings.autosave_prefix)
    console.print(table)


# =============================================================================
# Server Commands
# =============================================================================

@cli.command()
@click.option("--host", "-h", default=None, help="Host to bind to")
@click.option("--port", "-p", default=None, type=int, help="Port to bind to")
@click.pass_context
def serve(ctx, host: Optional[str], port: Optional[int]):
    """Serve the configured backend over HTTP."""
    import logging
    import uvicorn

    from .server import create_app

    logging.basicConfig(level=logging.INFO)

    config = _get_config(ctx)
    if host:
        config.server.host = host
    if port:
        config.server.port = port
    configure_telemetry(config.telemetry)

    console.print(Panel(
        f"[bold]Unified Save v{__version__}[/bold]\n"
        f"Serving slots on [cyan]http://{config.server.host}:{config.server.port}[/cyan]",
        title="🚀 Starting"
    ))

    uvicorn.run(
        create_app(config),
        host=config.server.host,
        port=config.server.port,
        log_level="info",
    )


# =============================================================================
# Main
# =============================================================================

def main():
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
