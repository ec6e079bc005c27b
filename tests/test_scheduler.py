from __future__ import annotations

import os
import signal

import pytest
from conftest import FakeClock

from dmmlog.core.scheduler import (
    SLICE_S,
    CancellationFlag,
    Decision,
    Scheduler,
    cancel_on_signals,
)


def test_fires_immediately_when_target_has_passed() -> None:
    clock = FakeClock(start=10.0)
    scheduler = Scheduler(CancellationFlag(), clock=clock, sleep=clock.sleep)

    assert scheduler.wait_until(9.5) is Decision.FIRE
    assert scheduler.wait_until(10.0) is Decision.FIRE
    assert clock.sleeps == []


def test_long_wait_uses_bounded_slices_then_the_remainder() -> None:
    clock = FakeClock(start=0.0)
    scheduler = Scheduler(CancellationFlag(), clock=clock, sleep=clock.sleep)

    assert scheduler.wait_until(0.53) is Decision.FIRE

    assert clock.sleeps[:4] == [SLICE_S] * 4
    assert clock.sleeps[4] == pytest.approx(0.13)
    assert all(step < 0.15 for step in clock.sleeps[4:])
    assert clock.now == pytest.approx(0.53)
    assert clock.now >= 0.53


def test_short_wait_sleeps_exactly_the_remainder() -> None:
    clock = FakeClock(start=0.0)
    scheduler = Scheduler(CancellationFlag(), clock=clock, sleep=clock.sleep)

    assert scheduler.wait_until(0.125) is Decision.FIRE
    assert clock.sleeps == [0.125]


def test_already_cancelled_returns_without_sleeping() -> None:
    clock = FakeClock(start=0.0)
    flag = CancellationFlag()
    flag.set()
    scheduler = Scheduler(flag, clock=clock, sleep=clock.sleep)

    assert scheduler.wait_until(100.0) is Decision.CANCELLED
    assert clock.sleeps == []


def test_cancellation_is_noticed_within_one_slice() -> None:
    clock = FakeClock(start=0.0)
    flag = CancellationFlag()

    def sleep(seconds: float) -> None:
        clock.sleep(seconds)
        if clock.now >= 1.0:
            flag.set()

    scheduler = Scheduler(flag, clock=clock, sleep=sleep)

    assert scheduler.wait_until(60.0) is Decision.CANCELLED
    assert clock.now < 1.0 + SLICE_S + 1e-9


def test_flag_stays_set() -> None:
    flag = CancellationFlag()
    assert not flag.is_set()
    flag.set()
    flag.set()
    assert flag.is_set()


def test_termination_signal_sets_flag_and_handlers_are_restored() -> None:
    before = signal.getsignal(signal.SIGTERM)

    with cancel_on_signals() as flag:
        assert not flag.is_set()
        os.kill(os.getpid(), signal.SIGTERM)
        assert flag.is_set()

    assert signal.getsignal(signal.SIGTERM) == before


def test_interrupt_signal_sets_given_flag() -> None:
    flag = CancellationFlag()
    with cancel_on_signals(flag):
        os.kill(os.getpid(), signal.SIGINT)
    assert flag.is_set()


def test_signal_delivered_during_handler_does_not_block() -> None:
    class NestedDeliveryFlag(CancellationFlag):
        def __setattr__(self, name: str, value: object) -> None:
            if value is True and not self.__dict__.get("_nested"):
                object.__setattr__(self, "_nested", True)
                signal.getsignal(signal.SIGTERM)(signal.SIGTERM, None)
            object.__setattr__(self, name, value)

    flag = NestedDeliveryFlag()
    with cancel_on_signals(flag):
        os.kill(os.getpid(), signal.SIGTERM)
        assert flag.is_set()
        os.kill(os.getpid(), signal.SIGINT)
    assert flag.is_set()
