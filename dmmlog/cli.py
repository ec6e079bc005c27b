"""Typer CLI entrypoint."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TextIO

import typer

from dmmlog.config import CliOptions, RunSettings, load_config, resolve_settings
from dmmlog.core.commands import MeasurementOptions
from dmmlog.core.errors import DmmlogError, SettingsError
from dmmlog.core.scheduler import cancel_on_signals
from dmmlog.core.service import MeterService
from dmmlog.output.csv_sink import open_sink
from dmmlog.output.progress import NullProgress, TqdmProgress
from dmmlog.transports.tcp import DEFAULT_PORT

app = typer.Typer(help="Log readings from a networked digital multimeter over SCPI")


def _trace(debug: bool) -> TextIO | None:
    return sys.stderr if debug else None


def _messages(message: str | None, message_from: Path | None) -> list[str]:
    if message is not None and message_from is not None:
        raise SettingsError("Options --message and --message-from cannot be used together")
    if message_from is not None:
        try:
            message = message_from.read_text(encoding="utf-8")
        except OSError as exc:
            raise SettingsError(f"Could not read message file {message_from}: {exc}") from exc
    return message.splitlines() if message else []


def _progress(settings: RunSettings, output: Path | None) -> TqdmProgress | NullProgress:
    if output is None:
        return NullProgress()
    return TqdmProgress(settings.samples)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress details to stderr"),
) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@app.command("log")
def log_readings(
    host: str = typer.Argument(..., help="Network name or IP address of the instrument"),
    output: Path | None = typer.Argument(None, help="CSV file to write; stdout if omitted"),
    interval: float | None = typer.Option(None, "--interval", help="Sampling interval in seconds [default: 1.0]"),
    rate: float | None = typer.Option(None, "--rate", help="Sampling rate in hertz"),
    samples: int | None = typer.Option(None, "-n", "--samples", help="Number of samples [default: unlimited]"),
    port: int | None = typer.Option(None, "--port", help=f"Network port for SCPI [default: {DEFAULT_PORT}]"),
    voltage: str | None = typer.Option(
        None, "-U", "--voltage", "--volts", "--volt", metavar="RANGE", help="Measure voltage"
    ),
    current: str | None = typer.Option(
        None, "-I", "--current", "--amperes", "--ampere", metavar="RANGE", help="Measure current"
    ),
    resistance: str | None = typer.Option(
        None, "-R", "--resistance", "--ohms", "--ohm", metavar="RANGE", help="Measure resistance"
    ),
    ac: bool = typer.Option(False, "--ac/--dc", "--AC/--DC", help="AC or DC mode for voltage and current"),
    four_wire: bool = typer.Option(
        False,
        "--four-wire/--two-wire",
        "-4/-2",
        "--4-wire/--2-wire",
        "--four/--two",
        help="4-wire or 2-wire resistance",
    ),
    resolution: str | None = typer.Option(None, "--resolution", "--res", help="Resolution in measurement units"),
    nplc: str | None = typer.Option(None, "--nplc", help="Integration time in power line cycles"),
    command: list[str] | None = typer.Option(None, "--command", "-c", help="Extra SCPI configuration command"),
    reset: bool = typer.Option(False, "--reset", help="Reset the instrument before logging"),
    drop_slow: bool = typer.Option(False, "--drop-slow", help="Skip overdue ticks and slow reads"),
    beep: bool = typer.Option(False, "--beep", help="Beep the instrument when logging finished"),
    debug: bool = typer.Option(False, "--debug", help="Print SCPI communication to stderr"),
    message: str | None = typer.Option(None, "-m", "--message", "--msg", help="Add a message to the CSV header"),
    message_from: Path | None = typer.Option(
        None, "--message-from", "--msg-from", help="Add file content to the CSV header"
    ),
    config: Path | None = typer.Option(None, "--config", help="YAML file with default options"),
) -> None:
    """Sample the instrument at a fixed cadence and write CSV records."""
    try:
        options = CliOptions(
            host=host,
            port=port,
            interval=interval,
            rate=rate,
            samples=samples,
            measurement=MeasurementOptions(
                voltage=voltage,
                current=current,
                resistance=resistance,
                ac=ac,
                four_wire=four_wire,
                resolution=resolution,
                nplc=nplc,
            ),
            commands=tuple(command or ()),
            reset=reset,
            beep=beep,
            debug=debug,
            drop_slow=drop_slow,
        )
        settings = resolve_settings(options, load_config(config))
        messages = _messages(message, message_from)

        with cancel_on_signals() as cancel:
            with MeterService.connect(settings.host, settings.port, trace=_trace(settings.debug)) as service:
                with open_sink(output) as sink, _progress(settings, output) as progress:
                    summary = service.record(
                        sink,
                        settings,
                        messages=messages,
                        progress=progress,
                        cancel=cancel,
                    )
    except DmmlogError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None

    if summary.cancelled:
        typer.echo(f"Interrupted after {summary.taken} samples", err=True)
    if summary.skipped or summary.discarded:
        typer.echo(
            f"Dropped {summary.skipped} overdue and {summary.discarded} slow samples",
            err=True,
        )


@app.command("identify")
def identify(
    host: str = typer.Argument(..., help="Network name or IP address of the instrument"),
    port: int = typer.Option(DEFAULT_PORT, "--port", help="Network port for SCPI"),
    debug: bool = typer.Option(False, "--debug", help="Print SCPI communication to stderr"),
) -> None:
    """Print the instrument identification."""
    try:
        with MeterService.connect(host, port, trace=_trace(debug)) as service:
            ident = service.identify()
    except DmmlogError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None

    typer.echo(f"Manufacturer: {ident.manufacturer}")
    typer.echo(f"Model: {ident.model}")
    typer.echo(f"Serial: {ident.serial}")
    typer.echo(f"Firmware: {ident.firmware}")


@app.command("read")
def read_once(
    host: str = typer.Argument(..., help="Network name or IP address of the instrument"),
    port: int = typer.Option(DEFAULT_PORT, "--port", help="Network port for SCPI"),
    debug: bool = typer.Option(False, "--debug", help="Print SCPI communication to stderr"),
) -> None:
    """Take a single reading with the current instrument configuration."""
    try:
        with MeterService.connect(host, port, trace=_trace(debug)) as service:
            value = service.read()
    except DmmlogError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None

    typer.echo(f"{value!r}")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
