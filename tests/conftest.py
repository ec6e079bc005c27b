from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

import pytest

from dmmlog.core.model import Identification, Sample


class FakeClock:
    """Monotonic clock that only moves when slept on or advanced."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class ScriptedTransport:
    """Replays canned responses per query and records every sent line.

    A response that is an exception instance is raised instead of returned.
    Each ``READ?`` advances ``clock`` by the next entry of ``latencies``.
    """

    def __init__(
        self,
        responses: dict[str, list[object]] | None = None,
        *,
        clock: FakeClock | None = None,
        latencies: Iterable[float] = (),
    ) -> None:
        self.responses = {query: list(replies) for query, replies in (responses or {}).items()}
        self.clock = clock
        self.latencies = list(latencies)
        self.sent: list[str] = []
        self.closed = False
        self._pending: str | None = None

    def send(self, line: str) -> None:
        self.sent.append(line)
        self._pending = line

    def receive(self) -> str:
        query, self._pending = self._pending, None
        if query == "READ?" and self.clock is not None and self.latencies:
            self.clock.advance(self.latencies.pop(0))
        replies = self.responses.get(query or "")
        if not replies:
            raise AssertionError(f"No scripted response for {query!r}")
        reply = replies.pop(0) if len(replies) > 1 else replies[0]
        if isinstance(reply, Exception):
            raise reply
        return str(reply)

    def request(self, line: str) -> str:
        self.send(line)
        return self.receive()

    def close(self) -> None:
        self.closed = True


class ListSink:
    def __init__(self) -> None:
        self.header: tuple[Identification, tuple[str, ...]] | None = None
        self.samples: list[Sample] = []
        self.comments: list[str] = []
        self.events: list[str] = []

    def write_header(self, identification: Identification, messages: Iterable[str] = ()) -> None:
        self.header = (identification, tuple(messages))
        self.events.append("header")

    def write_sample(self, sample: Sample) -> None:
        self.samples.append(sample)
        self.events.append(f"sample {sample.sequence}")

    def write_comment(self, text: str) -> None:
        self.comments.append(text)
        self.events.append(f"comment {text}")


class ListProgress:
    def __init__(self) -> None:
        self.readings: list[float] = []

    def update(self, reading: float) -> None:
        self.readings.append(reading)


FIXED_WALL_TIME = datetime(2024, 3, 9, 14, 5, 7, 123456)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sink() -> ListSink:
    return ListSink()


@pytest.fixture
def progress() -> ListProgress:
    return ListProgress()
