from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_reading, render_readings, render_snapshot


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Query readings and the rolling snapshot from the aggregator service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Aggregator API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each HTTP request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("readings")
def readings_command(ctx: typer.Context) -> None:
    """List every stored reading."""
    state = _get_state(ctx)
    render_readings(state.client.list_readings())


@app.command("latest")
def latest_command(ctx: typer.Context) -> None:
    """Show the most recent reading."""
    state = _get_state(ctx)
    render_reading(state.client.get_latest())


@app.command("window")
def window_command(
    ctx: typer.Context,
    minutes: Optional[float] = typer.Option(
        None,
        "--minutes",
        "-m",
        min=0.01,
        help="Trailing window length; defaults to the server's recent window.",
    ),
) -> None:
    """List readings taken within a trailing window."""
    state = _get_state(ctx)
    readings = state.client.get_window(minutes)
    title = f"Readings in last {minutes:g} min" if minutes is not None else "Recent readings"
    render_readings(readings, title=title)


@app.command("snapshot")
def snapshot_command(ctx: typer.Context) -> None:
    """Show the current rolling snapshot."""
    state = _get_state(ctx)
    render_snapshot(state.client.get_snapshot())
