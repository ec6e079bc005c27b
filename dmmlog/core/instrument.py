"""SCPI multimeter semantics layered on a line transport."""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable, Iterable

from dmmlog.core.errors import ConfigurationError, ProtocolError, ResponseParseError
from dmmlog.core.model import UNKNOWN, DeviceError, Identification, Reading
from dmmlog.transports.base import Transport

_ERROR_RE = re.compile(r'^\s*([-+]?\d+)\s*,\s*"(.*)"\s*$')
_NUMBER_RE = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
LOGGER = logging.getLogger(__name__)


def parse_identification(response: str) -> Identification:
    """Parse an ``*IDN?`` response.

    Instruments that do not report the four-field form get the whole
    response as model and ``?`` for the other fields.
    """
    fields = response.split(",")
    if len(fields) == 4:
        manufacturer, model, serial, firmware = (field.strip() for field in fields)
        return Identification(manufacturer=manufacturer, model=model, serial=serial, firmware=firmware)
    return Identification(manufacturer=UNKNOWN, model=response.strip(), serial=UNKNOWN, firmware=UNKNOWN)


def parse_error(response: str) -> DeviceError | None:
    match = _ERROR_RE.match(response)
    if not match:
        raise ProtocolError(f"Could not parse error response from instrument: {response!r}")
    code = int(match.group(1))
    if code == 0:
        return None
    return DeviceError(code=code, text=match.group(2))


class Instrument:
    def __init__(self, transport: Transport, *, clock: Callable[[], float] = time.monotonic) -> None:
        self.transport = transport
        self.clock = clock

    def send(self, command: str) -> None:
        self.transport.send(command)

    def identify(self) -> Identification:
        return parse_identification(self.transport.request("*IDN?"))

    def fetch_error(self) -> DeviceError | None:
        return parse_error(self.transport.request("SYST:ERR?"))

    def configure(self, commands: Iterable[str], reset: bool = False) -> None:
        """Clear instrument state, then send configuration commands in order.

        Raises ConfigurationError carrying the instrument's code and text if
        either the clear or the configuration batch leaves an error queued.
        """
        self.transport.send("*RST" if reset else "*CLS")

        error = self.fetch_error()
        if error is not None:
            raise ConfigurationError("Clearing error state failed", error)

        commands = list(commands)
        if not commands:
            return

        for command in commands:
            LOGGER.info("Configuring instrument: %s", command)
            self.transport.send(command)

        error = self.fetch_error()
        if error is not None:
            raise ConfigurationError("Configuring instrument failed", error)

    def read(self) -> float:
        response = self.transport.request("READ?")
        if not _NUMBER_RE.fullmatch(response):
            raise ResponseParseError(f"Instrument returned a non-numeric reading: {response!r}")
        return float(response)

    def timed_read(self) -> Reading:
        captured_at = self.clock()
        value = self.read()
        latency = self.clock() - captured_at
        return Reading(captured_at=captured_at, latency=latency, value=value)

    def beep(self) -> None:
        self.transport.send("SYST:BEEP")

    def close(self) -> None:
        self.transport.close()
