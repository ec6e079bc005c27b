"""Absolute-time sampling scheduler with cooperative cancellation.

Every tick targets ``start + k * period`` on the monotonic clock, so time
spent reading and writing never accumulates into drift. Waiting happens in
slices of at most ``SLICE_S`` so a termination signal is noticed within about
100 ms even during a long sampling interval.
"""

from __future__ import annotations

import enum
import logging
import signal
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

SLICE_S = 0.1
EXACT_SLEEP_THRESHOLD_S = 0.15
LOGGER = logging.getLogger(__name__)


class Decision(enum.Enum):
    FIRE = "fire"
    CANCELLED = "cancelled"


class CancellationFlag:
    """Set-once flag written by a signal handler and polled by the scheduler.

    Setting is a single attribute store and takes no lock, so a signal
    delivered while the handler is already running cannot block.
    """

    def __init__(self) -> None:
        self._cancelled = False

    def set(self) -> None:
        self._cancelled = True

    def is_set(self) -> bool:
        return self._cancelled


def _termination_signals() -> tuple[signal.Signals, ...]:
    names = ("SIGINT", "SIGTERM", "SIGQUIT")
    return tuple(getattr(signal, name) for name in names if hasattr(signal, name))


def install_signal_handlers(flag: CancellationFlag) -> dict[signal.Signals, Any]:
    """Route termination signals to ``flag``; return the previous handlers."""

    def _handler(signum: int, frame: object) -> None:
        flag.set()

    previous: dict[signal.Signals, Any] = {}
    for signum in _termination_signals():
        previous[signum] = signal.signal(signum, _handler)
    return previous


def restore_signal_handlers(previous: dict[signal.Signals, Any]) -> None:
    for signum, handler in previous.items():
        signal.signal(signum, handler)


@contextmanager
def cancel_on_signals(flag: CancellationFlag | None = None) -> Iterator[CancellationFlag]:
    flag = flag or CancellationFlag()
    previous = install_signal_handlers(flag)
    try:
        yield flag
    finally:
        restore_signal_handlers(previous)


class Scheduler:
    def __init__(
        self,
        flag: CancellationFlag,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.flag = flag
        self.clock = clock
        self.sleep = sleep

    def now(self) -> float:
        return self.clock()

    def wait_until(self, target: float) -> Decision:
        while not self.flag.is_set():
            remaining = target - self.clock()
            if remaining <= 0:
                return Decision.FIRE
            if remaining > EXACT_SLEEP_THRESHOLD_S:
                self.sleep(SLICE_S)
            else:
                self.sleep(remaining)

        LOGGER.debug("Cancellation observed while waiting for %.6f", target)
        return Decision.CANCELLED
