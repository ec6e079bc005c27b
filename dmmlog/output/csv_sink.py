"""CSV output for logged samples."""

from __future__ import annotations

import csv
import sys
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TextIO

from dmmlog.core.errors import DmmlogError
from dmmlog.core.model import Identification, Sample

COLUMNS = ("sequence", "date", "time", "moment", "delay", "latency", "reading")


class CsvSink:
    """Append-only CSV writer; every record is flushed as it is written."""

    def __init__(self, stream: TextIO) -> None:
        self.stream = stream
        self._writer = csv.writer(stream, lineterminator="\n")

    def write_header(self, identification: Identification, messages: Iterable[str] = ()) -> None:
        self.write_comment(f"Manufacturer: {identification.manufacturer}")
        self.write_comment(f"Model: {identification.model}")
        self.write_comment(f"Serial: {identification.serial}")
        self.write_comment(f"Firmware: {identification.firmware}")
        for message in messages:
            self.write_comment(message)
        self._writer.writerow(COLUMNS)
        self.stream.flush()

    def write_sample(self, sample: Sample) -> None:
        self._writer.writerow(
            (
                sample.sequence,
                sample.timestamp.strftime("%Y-%m-%d"),
                sample.timestamp.strftime("%H:%M:%S.%f")[:-3],
                repr(sample.moment),
                repr(sample.delay),
                repr(sample.latency),
                repr(sample.value),
            )
        )
        self.stream.flush()

    def write_comment(self, text: str) -> None:
        for line in text.splitlines() or [""]:
            self.stream.write(f"# {line}\n")
        self.stream.flush()


@contextmanager
def open_sink(path: str | Path | None) -> Iterator[CsvSink]:
    """Yield a sink writing to ``path``, or to stdout when ``path`` is None."""
    if path is None:
        yield CsvSink(sys.stdout)
        return

    try:
        stream = open(path, "w", encoding="utf-8", newline="")
    except OSError as exc:
        raise DmmlogError(f"Could not open output file {path}: {exc}") from exc
    with stream:
        yield CsvSink(stream)
