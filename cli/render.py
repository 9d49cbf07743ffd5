from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer

_MEASUREMENTS = ("luminosity", "sound", "temperature", "humidity")


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _format_value(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value)


def _measurement_pairs(payload: Dict[str, Any]) -> List[tuple[str, str]]:
    return [
        (name, f"{_format_value(payload.get(name))} ({payload.get(f'{name}_grade')})")
        for name in _MEASUREMENTS
    ]


def render_reading(payload: Dict[str, Any]) -> None:
    echo_heading("Reading")
    echo_key_values([("taken_at", payload.get("taken_at")), *_measurement_pairs(payload)])


def render_readings(readings: List[Dict[str, Any]], title: str = "Readings") -> None:
    echo_heading(f"{title} ({len(readings)})")
    if not readings:
        typer.echo("No readings recorded.")
        return
    for reading in readings:
        cells = " ".join(
            f"{name}={_format_value(reading.get(name))}/{reading.get(f'{name}_grade')}"
            for name in _MEASUREMENTS
        )
        typer.echo(f"  - {reading.get('taken_at')} {cells}")


def render_snapshot(payload: Dict[str, Any]) -> None:
    echo_heading("Current Snapshot")
    echo_key_values([("reading_count", payload.get("reading_count")), *_measurement_pairs(payload)])
