"""Service layer used by CLI and API frontends."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import TextIO

from dmmlog.config import RunSettings
from dmmlog.core.errors import ConfigurationError
from dmmlog.core.instrument import Instrument
from dmmlog.core.model import UNLIMITED_SAMPLES, Identification, RunSummary
from dmmlog.core.runner import run
from dmmlog.core.scheduler import CancellationFlag, Scheduler
from dmmlog.output.base import LogSink, ProgressIndicator, SampleSink
from dmmlog.transports.base import Transport
from dmmlog.transports.tcp import DEFAULT_PORT, DEFAULT_TIMEOUT_S, TCPTransport

LOGGER = logging.getLogger(__name__)


class MeterService:
    """One logging session against one instrument connection."""

    def __init__(self, transport: Transport, *, clock: Callable[[], float] = time.monotonic) -> None:
        self.instrument = Instrument(transport, clock=clock)

    @classmethod
    def connect(
        cls,
        host: str,
        port: int = DEFAULT_PORT,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        trace: TextIO | None = None,
    ) -> MeterService:
        LOGGER.info("Connecting to instrument %s port %d", host, port)
        return cls(TCPTransport.connect(host, port, timeout_s=timeout_s, trace=trace))

    def identify(self) -> Identification:
        return self.instrument.identify()

    def configure(self, commands: Iterable[str], *, reset: bool = False) -> None:
        self.instrument.configure(commands, reset=reset)

    def read(self) -> float:
        return self.instrument.read()

    def beep(self) -> None:
        self.instrument.beep()

    def log(
        self,
        sink: SampleSink,
        *,
        period: float,
        count: int = UNLIMITED_SAMPLES,
        drop_slow: bool = False,
        progress: ProgressIndicator | None = None,
        cancel: CancellationFlag | None = None,
        sleep: Callable[[float], None] = time.sleep,
        wall_clock: Callable[[], datetime] = datetime.now,
    ) -> RunSummary:
        scheduler = Scheduler(cancel or CancellationFlag(), clock=self.instrument.clock, sleep=sleep)
        return run(
            self.instrument,
            sink,
            period=period,
            count=count,
            scheduler=scheduler,
            drop_slow=drop_slow,
            progress=progress,
            wall_clock=wall_clock,
        )

    def record(
        self,
        sink: LogSink,
        settings: RunSettings,
        *,
        messages: Iterable[str] = (),
        progress: ProgressIndicator | None = None,
        cancel: CancellationFlag | None = None,
        sleep: Callable[[float], None] = time.sleep,
        wall_clock: Callable[[], datetime] = datetime.now,
    ) -> RunSummary:
        """Identify, write the header, configure, then sample until done."""
        identification = self.identify()
        LOGGER.info(
            "Instrument: %s %s (serial %s)",
            identification.manufacturer,
            identification.model,
            identification.serial,
        )
        sink.write_header(identification, messages)

        try:
            self.configure(settings.commands, reset=settings.reset)
        except ConfigurationError as exc:
            sink.write_comment(f"Instrument error {exc.code}: {exc.text}")
            raise

        summary = self.log(
            sink,
            period=settings.period,
            count=settings.samples,
            drop_slow=settings.drop_slow,
            progress=progress,
            cancel=cancel,
            sleep=sleep,
            wall_clock=wall_clock,
        )

        if settings.beep:
            self.beep()
        return summary

    def close(self) -> None:
        self.instrument.close()

    def __enter__(self) -> MeterService:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
