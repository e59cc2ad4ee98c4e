"""
CLI for script delivery.
"""

import asyncio
import json
import sys

import click
from rich.console import Console
from rich.table import Table

from opiumlink.config import get_config
from opiumlink.delivery.core import Dispatcher

console = Console()


def _dispatcher() -> Dispatcher:
    try:
        return Dispatcher(get_config())
    except ValueError as e:
        raise click.ClickException(f"Invalid configuration: {e}") from None


def _print_status(message: str) -> None:
    color = "green" if message.startswith("Successfully") else "red"
    console.print(f"[{color}]{message}[/{color}]")


@click.group()
def run():
    """Deliver scripts to Opiumware and check which instances are running.

    \b
    Examples:
        # Send a script to every running instance
        opiumlink run execute "print('hello')"

        # Send a script file to one port
        opiumlink run execute --file script.lua --port 8393

        # Show which ports are reachable
        opiumlink run status
    """
    pass


@run.command()
@click.argument("script", required=False)
@click.option("--file", "-f", "script_file", type=click.File("r", encoding="utf-8"),
              help="Read the script from a file")
@click.option("--port", "-p", default="ALL", show_default=True,
              help="Target port, or ALL for every configured port")
def execute(script: str | None, script_file, port: str):
    """Send a script to one port or to all ports.

    \b
    Examples:
        opiumlink run execute "print('hello')"
        opiumlink run execute -f script.lua -p 8392
        cat script.lua | opiumlink run execute -f -
    """
    if script_file is not None:
        if script is not None:
            raise click.UsageError("Give either a SCRIPT argument or --file, not both")
        script = script_file.read()
    if script is None:
        raise click.UsageError("Provide a SCRIPT argument or --file")

    message = asyncio.run(_dispatcher().execute(script, port))
    _print_status(message)
    if not message.startswith("Successfully"):
        sys.exit(1)


@run.command()
@click.argument("port", required=False)
def attach(port: str | None):
    """Probe for a running instance without sending anything.

    Without PORT, stops at the first reachable configured port.
    """
    dispatcher = _dispatcher()
    if port is None:
        message = asyncio.run(dispatcher.attach_any())
    else:
        message = asyncio.run(dispatcher.attach_to_port(port))
    _print_status(message)
    if not message.startswith("Successfully"):
        sys.exit(1)


@run.command()
@click.argument("port")
def check(port: str):
    """Check whether PORT accepts connections (exit code 1 if not)."""
    if asyncio.run(_dispatcher().check_port(port)):
        console.print(f"[green]Port {port} is reachable[/green]")
        return
    console.print(f"[red]Port {port} is not reachable[/red]")
    sys.exit(1)


@run.command()
@click.option("--json-output", "json_out", is_flag=True, help="Output as JSON")
def status(json_out: bool):
    """Show reachability of every configured port."""
    dispatcher = _dispatcher()
    results = asyncio.run(dispatcher.port_status())

    if json_out:
        click.echo(json.dumps({
            "host": dispatcher.config.host,
            "ports": {str(p): up for p, up in results.items()},
        }, indent=2))
        return

    table = Table(title=f"Opiumware ports on {dispatcher.config.host}")
    table.add_column("Port", style="cyan", justify="right")
    table.add_column("Status")

    for port, up in results.items():
        table.add_row(str(port), "[green]● open[/green]" if up else "[dim]○ closed[/dim]")

    console.print(table)
    console.print(f"\n[dim]{sum(results.values())} of {len(results)} port(s) reachable[/dim]")


@run.command()
@click.argument("port")
def detach(port: str):
    """Detach from PORT. Nothing is sent; connections are never held open."""
    console.print(_dispatcher().detach(port))


if __name__ == "__main__":
    run()
