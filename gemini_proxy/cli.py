"""
Gemini Proxy CLI

Command-line interface for running and poking the proxy server.
"""

import sys
import json
from pathlib import Path

import click
import httpx
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from . import __version__
from .config import load_config, create_default_config, ProxyConfig


console = Console()


def _server_settings(ctx, port: int = None) -> ProxyConfig:
    """Config from --config if given, with --port applied."""
    config_path = ctx.obj.get("config_path")
    config = ProxyConfig()
    if config_path and Path(config_path).exists():
        config = load_config(config_path)
    if port is not None:
        config.server.port = port
    return config


@click.group()
@click.version_option(__version__, prog_name="gemini-proxy")
@click.option("--config", "-c", "config_path", type=click.Path(), help="Path to config file")
@click.pass_context
def cli(ctx, config_path: str):
    """Gemini Proxy - Rate-limited relay for the Gemini API"""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


# =============================================================================
# Server Commands
# =============================================================================

@cli.command()
@click.option("--host", "-h", default=None, help="Host to bind to")
@click.option("--port", "-p", default=None, type=int, help="Port to bind to")
@click.option("--reload", is_flag=True, default=None, help="Enable auto-reload")
@click.pass_context
def start(ctx, host: str, port: int, reload: bool):
    """Start the Gemini Proxy server."""
    config_path = ctx.obj.get("config_path")

    if config_path:
        if not Path(config_path).exists():
            console.print(f"[red]✗[/red] Config file not found: {config_path}")
            sys.exit(1)
        console.print(f"[green]✓[/green] Loaded config from {config_path}")

    config = _server_settings(ctx, port)
    host = host or config.server.host

    console.print(Panel(
        f"[bold]Gemini Proxy v{__version__}[/bold]\n"
        f"Starting server on [cyan]http://{host}:{config.server.port}{config.server.path}[/cyan]",
        title="Starting"
    ))

    from .server import main as server_main
    server_main(config_path, host=host, port=config.server.port, reload=reload)


@cli.command()
@click.option("--port", "-p", default=None, type=int, help="Server port")
@click.pass_context
def status(ctx, port: int):
    """Show server status."""
    config = _server_settings(ctx, port)

    try:
        response = httpx.get(f"http://localhost:{config.server.port}/health")
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        console.print(f"[red]✗[/red] Server not running: {e}")
        sys.exit(1)

    stats = data.get("stats", {})
    table = Table(title="Gemini Proxy Status")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    for key in ("requests_total", "requests_rejected", "rate_limited", "upstream_errors", "internal_errors"):
        table.add_row(key, str(stats.get(key, 0)))

    rate = stats.get("rate_limit")
    if rate:
        table.add_row("window", f"{rate['count']}/{rate['limit']} per {rate['window_seconds']:g}s")
    else:
        table.add_row("window", "disabled")

    console.print(table)


@cli.command()
def init():
    """Initialize a new configuration file."""
    config_path = Path("gemini-proxy.yaml")

    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return

    config_path.write_text(create_default_config())
    console.print(f"[green]✓[/green] Created {config_path}")
    console.print("\nSet GEMINI_API_KEY in the environment, then run:")
    console.print("  [cyan]gemini-proxy -c gemini-proxy.yaml start[/cyan]")


# =============================================================================
# Prompt Commands
# =============================================================================

@cli.command()
@click.argument("prompt")
@click.option("--system", "-s", "system_instruction", default=None, help="System instruction")
@click.option("--port", "-p", default=None, type=int, help="Server port")
@click.option("--raw", is_flag=True, help="Print the full JSON response")
@click.pass_context
def ask(ctx, prompt: str, system_instruction: str, port: int, raw: bool):
    """Send a prompt through a running proxy."""
    config = _server_settings(ctx, port)
    url = f"http://localhost:{config.server.port}{config.server.path}"

    body = {"prompt": prompt}
    if system_instruction:
        body["systemInstruction"] = system_instruction

    try:
        response = httpx.post(url, json=body, timeout=config.upstream.timeout)
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        console.print(f"[red]✗[/red] Request failed: {e}")
        sys.exit(1)

    if response.status_code != 200:
        console.print(f"[red]✗[/red] {response.status_code}: {data.get('error')}")
        if data.get("details"):
            console.print(data["details"])
        sys.exit(1)

    if raw:
        console.print_json(json.dumps(data))
        return

    text = candidate_text(data)
    if text is None:
        console.print("[yellow]No text in response[/yellow]")
        console.print_json(json.dumps(data))
        return

    console.print(Panel(text, title="Gemini"))


def candidate_text(data) -> str | None:
    """Concatenated text parts of the first candidate, if any."""
    if not isinstance(data, dict):
        return None
    candidates = data.get("candidates") or []
    if not candidates:
        return None
    parts = (candidates[0].get("content") or {}).get("parts") or []
    texts = [p.get("text") for p in parts if isinstance(p, dict) and p.get("text")]
    return "".join(texts) if texts else None


# =============================================================================
# Main
# =============================================================================

def main():
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
