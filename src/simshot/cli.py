"""simshot CLI - run the MCP server and inspect simulator setup."""

import asyncio
import json

import typer

from simshot import __version__
from simshot.config import get_settings

app = typer.Typer(
    name="simshot",
    help="iOS simulator screenshots for AI coding assistants, over MCP.",
    no_args_is_help=True,
)

CLIENT_CONFIG = {
    "mcpServers": {
        "ios-simulator": {
            "command": "simshot",
            "args": ["serve"],
        },
    },
}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"simshot {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """simshot - simulator screenshots for coding assistants."""
    pass


@app.command()
def serve() -> None:
    """Run the MCP server on stdio."""
    from simshot.server import main as run_server

    run_server()


@app.command()
def status() -> None:
    """Show booted simulators and where screenshots are stored."""
    from simshot.simulator import DeviceProbe, make_runner

    settings = get_settings()
    probe = DeviceProbe(make_runner(settings.command_timeout))
    result = asyncio.run(probe.status())

    booted = [d for d in result.devices if d.is_booted]
    if booted:
        for device in booted:
            typer.echo(f"Booted: {device.name} ({device.runtime})")
    elif result.devices:
        typer.echo("No booted iOS simulator found")
        typer.echo("   Boot one with the boot_simulator tool or: open -a Simulator")
    else:
        typer.echo("Could not list simulators. Make sure Xcode is installed.")

    typer.echo(f"Screenshots: {settings.screenshots_path}")
    typer.echo(f"Watching:    {settings.watch_root}")


@app.command()
def config() -> None:
    """Print the MCP client configuration snippet."""
    typer.echo(json.dumps(CLIENT_CONFIG, indent=2))


if __name__ == "__main__":
    app()
