"""Stable public API for building tooling on top of dmmlog.

This module is the supported integration surface for third-party callers.
Avoid importing from private/internal modules unless intentionally depending on
non-stable internals.
"""

from __future__ import annotations

import math
import sys
from collections.abc import Iterable

from dmmlog.core.errors import (
    ConfigurationError,
    DmmlogError,
    ProtocolError,
    ResponseParseError,
    SettingsError,
    TransportConnectError,
    TransportDecodeError,
    TransportError,
    TransportIOError,
    TransportTimeoutError,
)
from dmmlog.core.model import (
    UNLIMITED_SAMPLES,
    DeviceError,
    Identification,
    Reading,
    RunSummary,
    Sample,
)
from dmmlog.core.scheduler import CancellationFlag, cancel_on_signals
from dmmlog.core.service import MeterService
from dmmlog.output.base import ProgressIndicator, SampleSink
from dmmlog.output.csv_sink import CsvSink
from dmmlog.transports.base import Transport
from dmmlog.transports.tcp import DEFAULT_PORT, TCPTransport

__all__ = [
    "DmmlogError",
    "SettingsError",
    "TransportError",
    "TransportConnectError",
    "TransportIOError",
    "TransportTimeoutError",
    "TransportDecodeError",
    "ResponseParseError",
    "ProtocolError",
    "ConfigurationError",
    "DeviceError",
    "Identification",
    "Reading",
    "RunSummary",
    "Sample",
    "CancellationFlag",
    "cancel_on_signals",
    "CsvSink",
    "SampleSink",
    "ProgressIndicator",
    "Transport",
    "UNLIMITED_SAMPLES",
    "Client",
]


class Client:
    """Public client for logging readings from one networked multimeter.

    A `Client` owns one instrument connection. Use `Client.connect` for a
    TCP instrument, or pass any object implementing the transport protocol.
    """

    def __init__(self, transport: Transport) -> None:
        self._service = MeterService(transport)

    @classmethod
    def connect(cls, host: str, port: int = DEFAULT_PORT, *, debug: bool = False) -> Client:
        return cls(TCPTransport.connect(host, port, trace=sys.stderr if debug else None))

    def identify(self) -> Identification:
        return self._service.identify()

    def configure(self, commands: Iterable[str] = (), *, reset: bool = False) -> None:
        self._service.configure(commands, reset=reset)

    def read(self) -> float:
        return self._service.read()

    def beep(self) -> None:
        self._service.beep()

    def log(
        self,
        sink: SampleSink,
        *,
        period: float,
        count: int | None = None,
        drop_slow: bool = False,
        progress: ProgressIndicator | None = None,
        cancel: CancellationFlag | None = None,
    ) -> RunSummary:
        if not math.isfinite(period) or period <= 0:
            raise SettingsError(f"Sampling interval {period} seconds is not allowed")
        if count is not None and count <= 0:
            raise SettingsError(f"Number of samples {count} is not allowed")
        return self._service.log(
            sink,
            period=period,
            count=UNLIMITED_SAMPLES if count is None else count,
            drop_slow=drop_slow,
            progress=progress,
            cancel=cancel,
        )

    def close(self) -> None:
        self._service.close()

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
