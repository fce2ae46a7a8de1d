"""Typer CLI entrypoint."""

from __future__ import annotations

import logging
import sys
import threading
import time

import typer

from sppctl.api import (
    AdapterDisabled,
    AdapterDisabling,
    AdapterEnabled,
    AdapterEnabling,
    ConnectedTo,
    Endpoint,
    Event,
    Session,
    SppctlError,
)

app = typer.Typer(help="Stream text lines to Bluetooth Serial Port Profile devices")

_EVENT_LABELS = {
    AdapterEnabling: "Bluetooth is being enabled",
    AdapterEnabled: "Bluetooth enabled",
    AdapterDisabling: "Bluetooth is being disabled",
    AdapterDisabled: "Bluetooth disabled",
}


def _describe(event: Event) -> str:
    if isinstance(event, ConnectedTo):
        return f"Connected to {event.name} ({event.address})"
    return _EVENT_LABELS[type(event)]


def _echo_event(event: Event) -> None:
    typer.echo(_describe(event))


def _build_session(sink=_echo_event) -> Session:
    session = Session(sink)
    for warning in getattr(session, "runtime_warnings", ()):
        typer.echo(f"Warning: {warning}", err=True)
    return session


def _target(session: Session, device: str | None) -> Endpoint:
    address = device or session.settings.target
    if not address:
        raise typer.BadParameter("No device given and no 'target' configured", param_hint="--device")
    return Endpoint(address=address)


def _open_connection(session: Session, device: str | None) -> None:
    if not session.initialize():
        typer.echo("Error: no Bluetooth controller available", err=True)
        raise typer.Exit(code=1)
    if not session.adapter.is_enabled():
        typer.echo("Error: Bluetooth is disabled. Run 'sppctl enable' first.", err=True)
        raise typer.Exit(code=1)
    endpoint = _target(session, device)
    session.connection.connect(endpoint)
    session.dispatcher.wait_idle()
    if not session.connection.is_connected():
        typer.echo(f"Error: could not connect to {endpoint.address}", err=True)
        raise typer.Exit(code=1)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command("status")
def status() -> None:
    """Show whether a Bluetooth controller is present and powered."""
    try:
        with _build_session() as session:
            if not session.initialize():
                typer.echo("Bluetooth: unavailable")
                raise typer.Exit(code=1)
            state = "enabled" if session.adapter.is_enabled() else "disabled"
            typer.echo(f"Bluetooth: {state}")
    except SppctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("enable")
def enable(
    wait: bool = typer.Option(False, "--wait", help="Wait until the adapter reports enabled"),
    timeout: float = typer.Option(10.0, "--timeout", help="Seconds to wait with --wait"),
) -> None:
    """Power on the local Bluetooth adapter."""
    enabled = threading.Event()

    def on_event(event: Event) -> None:
        _echo_event(event)
        if isinstance(event, AdapterEnabled):
            enabled.set()

    try:
        with _build_session(on_event) as session:
            if not session.initialize():
                typer.echo("Error: no Bluetooth controller available", err=True)
                raise typer.Exit(code=1)
            if wait:
                session.adapter.subscribe()
            if not session.adapter.request_enable():
                typer.echo("Bluetooth already enabled")
                return
            typer.echo("Requested Bluetooth power on")
            if wait and not enabled.wait(timeout):
                typer.echo(f"Error: adapter not enabled after {timeout:g}s", err=True)
                raise typer.Exit(code=1)
    except SppctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("devices")
def list_devices() -> None:
    """List Bluetooth devices known to the local adapter."""
    try:
        with _build_session() as session:
            devices = session.known_devices()
            if not devices:
                typer.echo("No Bluetooth devices found")
                return
            for device in devices:
                typer.echo(f"{device.address} {device.name or '<unknown-device>'}")
    except SppctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("send")
def send(
    messages: list[str] = typer.Argument(..., help="Lines to send, one per argument"),
    device: str | None = typer.Option(None, "--device", help="Target Bluetooth address"),
) -> None:
    """Connect, send each MESSAGE as one CR LF terminated line, then disconnect."""
    try:
        with _build_session() as session:
            _open_connection(session, device)
            for message in messages:
                session.connection.send(message)
            typer.echo(f"Sent {len(messages)} line(s)")
    except SppctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("stream")
def stream(
    device: str | None = typer.Option(None, "--device", help="Target Bluetooth address"),
) -> None:
    """Relay lines read from stdin to the device until end of input."""
    try:
        with _build_session() as session:
            _open_connection(session, device)
            count = 0
            for line in sys.stdin:
                session.connection.send(line.rstrip("\r\n"))
                count += 1
            typer.echo(f"Sent {count} line(s)", err=True)
    except SppctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("watch")
def watch() -> None:
    """Print adapter power-state changes until interrupted."""
    try:
        with _build_session() as session:
            if not session.initialize():
                typer.echo("Error: no Bluetooth controller available", err=True)
                raise typer.Exit(code=1)
            session.adapter.subscribe()
            try:
                while True:
                    time.sleep(1.0)
            except KeyboardInterrupt:
                pass
    except SppctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


def run() -> None:
    app()


if __name__ == "__main__":
    run()
