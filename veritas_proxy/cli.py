"""
Veritas API Proxy CLI

Command-line interface for the Veritas API proxy.
"""

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from . import __version__
from .config import load_config, config_from_env, create_default_config, DEFAULT_PORT


console = Console()


@click.group()
@click.version_option(__version__, prog_name="veritas-proxy")
@click.option("--config", "-c", "config_path", type=click.Path(), help="Path to config file")
@click.pass_context
def cli(ctx, config_path: str):
    """Veritas API Proxy - Forwarding gateway for chat, stock and crypto APIs"""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


def _load(ctx):
    config_path = ctx.obj.get("config_path")
    if config_path and Path(config_path).exists():
        return load_config(config_path)
    return config_from_env()


# =============================================================================
# Server Commands
# =============================================================================

@cli.command()
@click.option("--host", "-h", default=None, help="Host to bind to")
@click.option("--port", "-p", default=None, type=int, help="Port to bind to (default: $PORT or 3000)")
@click.option("--reload", is_flag=True, help="Enable auto-reload")
@click.pass_context
def start(ctx, host: str, port: int, reload: bool):
    """Start the Veritas API Proxy server."""
    config_path = ctx.obj.get("config_path")

    if config_path and not Path(config_path).exists():
        console.print(f"[red]✗[/red] Config file not found: {config_path}")
        sys.exit(1)

    try:
        config = _load(ctx)
    except ValueError as e:
        console.print(f"[red]✗[/red] Invalid configuration: {e}")
        sys.exit(1)

    if config_path:
        console.print(f"[green]✓[/green] Loaded config from {config_path}")

    bind_host = host or config.server.host
    bind_port = port or config.server.port

    console.print(Panel(
        f"[bold]Veritas API Proxy v{__version__}[/bold]\n"
        f"Starting server on [cyan]http://{bind_host}:{bind_port}[/cyan]\n"
        f"Trending crypto: {', '.join(config.trending.crypto_providers)}",
        title="Starting"
    ))

    from .server import main as server_main
    server_main(config_path, host=host, port=port, reload=reload)


@cli.command()
@click.option("--port", "-p", default=None, type=int, help="Server port")
@click.pass_context
def status(ctx, port: int):
    """Show server status."""
    import httpx

    if port is None:
        try:
            port = _load(ctx).server.port
        except ValueError:
            port = DEFAULT_PORT

    try:
        response = httpx.get(f"http://localhost:{port}/")
        data = response.json()

        console.print(Panel(
            f"[bold green]Running[/bold green]\n\n"
            f"Port: {port}\n"
            f"Status: {data.get('status', 'unknown')}",
            title="Veritas API Proxy Status"
        ))
    except Exception as e:
        console.print(f"[red]✗[/red] Server not running: {e}")
        sys.exit(1)


@cli.command()
def init():
    """Initialize a new configuration file."""
    config_path = Path("veritas.yaml")

    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return

    config_path.write_text(create_default_config())
    console.print(f"[green]✓[/green] Created {config_path}")
    console.print("\nEdit the file to choose providers and timeouts, then run:")
    console.print("  [cyan]veritas-proxy -c veritas.yaml start[/cyan]")


@cli.command()
@click.pass_context
def routes(ctx):
    """List the routes the proxy serves."""
    from .gateway import ForwardingGateway
    from .routes import build_route_table

    try:
        config = _load(ctx)
    except ValueError as e:
        console.print(f"[red]✗[/red] Invalid configuration: {e}")
        sys.exit(1)

    table = Table(title="Routes")
    table.add_column("Method", style="cyan")
    table.add_column("Path")
    table.add_column("Name")
    table.add_column("Timeout", justify="right")

    for route in build_route_table(ForwardingGateway(config)):
        timeout = f"{config.trending.timeout:g}s" if route.timeout_bound else "-"
        table.add_row(route.method, route.path, route.name, timeout)

    console.print(table)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
