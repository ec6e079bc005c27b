from __future__ import annotations

import pytest
from conftest import FIXED_WALL_TIME, FakeClock, ListSink, ScriptedTransport

from dmmlog.config import RunSettings
from dmmlog.core.errors import ConfigurationError, TransportIOError
from dmmlog.core.scheduler import CancellationFlag
from dmmlog.core.service import MeterService


def _transport(clock: FakeClock, *, errors: list[object] | None = None) -> ScriptedTransport:
    return ScriptedTransport(
        {
            "*IDN?": ["ACME,Model7,SN123,FW2.0"],
            "SYST:ERR?": errors or ['+0,"No error"'],
            "READ?": ["1.5", "2.5", "3.5"],
        },
        clock=clock,
        latencies=[0.01, 0.01, 0.01],
    )


def test_record_runs_full_session(clock: FakeClock, sink: ListSink) -> None:
    transport = _transport(clock)
    service = MeterService(transport, clock=clock)
    settings = RunSettings(host="dmm", period=0.5, samples=3, commands=("CONF:VOLT:DC 10",), beep=True)

    summary = service.record(
        sink,
        settings,
        messages=["note"],
        sleep=clock.sleep,
        wall_clock=lambda: FIXED_WALL_TIME,
    )

    assert summary.taken == 3
    assert sink.header is not None
    assert sink.header[0].model == "Model7"
    assert sink.header[1] == ("note",)
    assert [s.value for s in sink.samples] == [1.5, 2.5, 3.5]
    assert transport.sent == [
        "*IDN?",
        "*CLS",
        "SYST:ERR?",
        "CONF:VOLT:DC 10",
        "SYST:ERR?",
        "READ?",
        "READ?",
        "READ?",
        "SYST:BEEP",
    ]


def test_record_resets_when_asked(clock: FakeClock, sink: ListSink) -> None:
    transport = _transport(clock)
    service = MeterService(transport, clock=clock)

    service.record(sink, RunSettings(host="dmm", samples=1, reset=True), sleep=clock.sleep)

    assert transport.sent[:3] == ["*IDN?", "*RST", "SYST:ERR?"]
    assert "SYST:BEEP" not in transport.sent


def test_configuration_error_is_annotated_and_aborts(clock: FakeClock, sink: ListSink) -> None:
    transport = _transport(clock, errors=['+0,"No error"', '-113,"Undefined header"'])
    service = MeterService(transport, clock=clock)
    settings = RunSettings(host="dmm", samples=3, commands=("CONF:BOGUS",))

    with pytest.raises(ConfigurationError):
        service.record(sink, settings, sleep=clock.sleep)

    assert sink.comments == ["Instrument error -113: Undefined header"]
    assert sink.samples == []
    assert "READ?" not in transport.sent


def test_log_stops_when_cancelled(clock: FakeClock, sink: ListSink) -> None:
    flag = CancellationFlag()
    flag.set()
    service = MeterService(_transport(clock), clock=clock)

    summary = service.log(sink, period=1.0, count=10, cancel=flag, sleep=clock.sleep)

    assert summary.cancelled
    assert [s.sequence for s in sink.samples] == [0]


def test_context_manager_closes_transport(clock: FakeClock) -> None:
    transport = _transport(clock)
    with MeterService(transport, clock=clock) as service:
        assert service.read() == 1.5
    assert transport.closed


def test_transport_failure_during_identify_propagates(clock: FakeClock, sink: ListSink) -> None:
    transport = ScriptedTransport({"*IDN?": [TransportIOError("connection reset")]})
    service = MeterService(transport, clock=clock)

    with pytest.raises(TransportIOError):
        service.record(sink, RunSettings(host="dmm"), sleep=clock.sleep)

    assert sink.header is None
