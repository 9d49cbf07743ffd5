from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest
import typer
from typer.testing import CliRunner

from cli.app import app

_READING = {
    "luminosity": 410.0,
    "luminosity_grade": "Good",
    "sound": 52.5,
    "sound_grade": "Moderate",
    "temperature": 21.0,
    "temperature_grade": "Good",
    "humidity": 64.0,
    "humidity_grade": "Poor",
    "taken_at": "2024-01-01T12:00:00Z",
}


class StubClient:
    def __init__(self, config) -> None:
        self.config = config
        self.window_calls: List[Optional[float]] = []
        self.closed = False

    def list_readings(self) -> List[Dict[str, Any]]:
        return [_READING, dict(_READING, taken_at="2024-01-01T12:01:00Z")]

    def get_latest(self) -> Dict[str, Any]:
        return _READING

    def get_window(self, minutes: Optional[float] = None) -> List[Dict[str, Any]]:
        self.window_calls.append(minutes)
        return [_READING]

    def get_snapshot(self) -> Dict[str, Any]:
        payload = {key: value for key, value in _READING.items() if key != "taken_at"}
        payload["reading_count"] = 12
        return payload

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def stub(monkeypatch) -> StubClient:
    stub = StubClient(config=None)

    def factory(config):
        stub.config = config
        return stub

    monkeypatch.setattr("cli.app.ApiClient", factory)
    return stub


def test_readings_command(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["readings"])

    assert result.exit_code == 0
    assert "Readings (2)" in result.stdout
    assert "temperature=21.00/Good" in result.stdout
    assert stub.closed is True


def test_latest_command(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["latest"])

    assert result.exit_code == 0
    assert "taken_at: 2024-01-01T12:00:00Z" in result.stdout
    assert "humidity: 64.00 (Poor)" in result.stdout


def test_window_command_passes_minutes(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["window", "--minutes", "5"])

    assert result.exit_code == 0
    assert "Readings in last 5 min (1)" in result.stdout
    assert stub.window_calls == [5.0]


def test_window_command_defaults_to_server_window(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["window"])

    assert result.exit_code == 0
    assert "Recent readings (1)" in result.stdout
    assert stub.window_calls == [None]


def test_snapshot_command(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["snapshot"])

    assert result.exit_code == 0
    assert "Current Snapshot" in result.stdout
    assert "reading_count: 12" in result.stdout
    assert "sound: 52.50 (Moderate)" in result.stdout


def test_base_url_option_reaches_client(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["--base-url", "http://sensors.local:9000/", "latest"])

    assert result.exit_code == 0
    assert stub.config.base_url == "http://sensors.local:9000"


def test_http_error_exits_with_failure(runner: CliRunner, monkeypatch) -> None:
    class NotFoundClient(StubClient):
        def get_snapshot(self) -> Dict[str, Any]:
            typer.secho("Request failed with status 404: no snapshot", err=True)
            raise typer.Exit(code=1)

    monkeypatch.setattr("cli.app.ApiClient", NotFoundClient)

    result = runner.invoke(app, ["snapshot"])

    assert result.exit_code == 1
