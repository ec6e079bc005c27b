"""Core data models used across instrument, runner, output, and CLI."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

UNKNOWN = "?"
UNLIMITED_SAMPLES = 2**32 - 1


@dataclass(frozen=True)
class Identification:
    manufacturer: str
    model: str
    serial: str
    firmware: str


@dataclass(frozen=True)
class DeviceError:
    code: int
    text: str


@dataclass(frozen=True)
class Reading:
    """One timed read: monotonic capture instant, round-trip latency, value."""

    captured_at: float
    latency: float
    value: float


@dataclass(frozen=True)
class Sample:
    sequence: int
    timestamp: datetime
    captured_at: float
    moment: float
    delay: float
    latency: float
    value: float


@dataclass(frozen=True)
class SchedulePlan:
    start: float
    period: float
    count: int = UNLIMITED_SAMPLES

    def instant(self, tick: int) -> float:
        return self.start + tick * self.period


@dataclass(frozen=True)
class RunSummary:
    taken: int
    skipped: int
    discarded: int
    cancelled: bool
