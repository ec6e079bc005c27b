"""Output interfaces consumed by the sampling loop."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from dmmlog.core.model import Identification, Sample


class SampleSink(Protocol):
    def write_sample(self, sample: Sample) -> None:
        """Append one accepted sample."""

    def write_comment(self, text: str) -> None:
        """Append a free-text annotation line."""


class LogSink(SampleSink, Protocol):
    def write_header(self, identification: Identification, messages: Iterable[str] = ()) -> None:
        """Write the instrument header and column names."""


class ProgressIndicator(Protocol):
    def update(self, reading: float) -> None:
        """Advance by one sample and show ``reading``."""
