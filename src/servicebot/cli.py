"""
servicebot CLI

Usage:
    servicebot chat              - Interactive chat in the terminal
    servicebot telegram          - Run the Telegram bot
    servicebot serve             - Run the HTTP API
    servicebot services          - List the service catalog
    servicebot config            - Show the effective configuration file
    servicebot version           - Show version
"""
import asyncio

import typer
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from servicebot import __version__
from servicebot.core.config import YAML_CONFIG, settings
from servicebot.core.logging import configure_logging
from servicebot.services.registry import ServiceRegistry

app = typer.Typer(
    name="servicebot",
    help="servicebot - pick an AI service in chat, feed it inputs, run it",
    add_completion=False,
)
console = Console()


# =============================================================================
# Channel Commands
# =============================================================================

@app.command()
def chat(session: str = typer.Option("cli", help="Session id to chat as")):
    """Start an interactive chat session in the terminal."""
    from servicebot.interfaces.cli.channel import CLIChannel
    from servicebot.services.engine import build_engine

    channel = CLIChannel(build_engine(), session_id=session)
    try:
        asyncio.run(channel.run())
    except KeyboardInterrupt:
        console.print("\n[dim]Goodbye![/dim]")


async def _run_telegram() -> None:
    from servicebot.interfaces.telegram.channel import TelegramChannel
    from servicebot.services.engine import build_engine

    channel = TelegramChannel(build_engine())
    await channel.start()
    try:
        await asyncio.Event().wait()
    finally:
        await channel.stop()


@app.command()
def telegram():
    """Run the Telegram bot until interrupted."""
    if not settings.telegram.bot_token:
        console.print("[red]Error: TELEGRAM_BOT_TOKEN is not configured[/red]")
        raise typer.Exit(1)

    console.print("[bold green]Starting Telegram bot[/bold green] [dim](Ctrl+C to stop)[/dim]")
    try:
        asyncio.run(_run_telegram())
    except KeyboardInterrupt:
        console.print("[dim]Stopped[/dim]")


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind address"),
    port: int = typer.Option(8080, help="Port"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("servicebot.main:app", host=host, port=port, reload=reload, log_level="info")


# =============================================================================
# Inspection Commands
# =============================================================================

@app.command()
def services():
    """List the service catalog."""
    registry = ServiceRegistry.load(settings.registry.services_file)

    table = Table(title="Services")
    table.add_column("Id", justify="right", style="cyan")
    table.add_column("Name")
    table.add_column("Type", style="magenta")
    table.add_column("Inputs")

    for descriptor in registry:
        inputs = ", ".join(f"{p.name} ({p.type})" for p in descriptor.params) or "-"
        table.add_row(str(descriptor.id), descriptor.name, descriptor.type.value, inputs)

    console.print(table)
    console.print(f"\n[dim]Total: {len(registry)} services[/dim]")


@app.command()
def config():
    """Show the loaded configuration file."""
    config_path = settings.paths.root / "config.yml"
    if not YAML_CONFIG or not config_path.exists():
        console.print("[yellow]No config.yml loaded; using environment and defaults[/yellow]")
        return

    syntax = Syntax(config_path.read_text(), "yaml", theme="monokai", line_numbers=True)
    console.print(syntax)


@app.command()
def version():
    """Show servicebot version."""
    console.print(f"[bold]servicebot {__version__}[/bold]")


def main():
    """Main entry point for the CLI."""
    configure_logging(settings.logging.level, settings.logging.format)
    app()


if __name__ == "__main__":
    main()
